"""
Tests for WhatsApp order status formatting and pagination.
"""

import math
import re
from datetime import date

import pytest

from app_config import SUPPORT_PHONE
from models import Order, OrderErrorKind
from services.order_status_formatter import (
    format_date,
    is_delayed,
    clamp_page,
    format_orders_summary,
    format_orders_page,
    format_order_details,
    format_no_orders_found,
    format_error_message,
    format_active_orders_message,
    format_orders_for_whatsapp,
    DELAY_MARKER,
)

MONDAY = date(2025, 12, 22)


def _orders(make_order, n):
    return [make_order(order_id=f"ORD-{i}", alt_id=f"PJ{i}") for i in range(1, n + 1)]


class TestFormatDate:

    @pytest.mark.parametrize("value,expected", [
        ("2025-12-22", "Today"),
        ("2025-12-23", "Tomorrow"),
        ("2025-12-26", "Friday"),
        ("2025-12-29", "Monday"),
        ("2025-12-30", "Dec 30"),
        ("2026-01-10", "Jan 10"),
        ("2025-12-01", "Dec 1"),
        ("2025-12-24T18:30:00Z", "Wednesday"),
        (date(2025, 12, 23), "Tomorrow"),
    ])
    def test_relative_dates(self, value, expected):
        assert format_date(value, today=MONDAY) == expected

    @pytest.mark.parametrize("value", [None, "", "not a date"])
    def test_missing_dates(self, value):
        assert format_date(value, today=MONDAY) == "N/A"


class TestIsDelayed:

    def test_past_due_is_delayed(self, make_order):
        assert is_delayed(make_order(due_in_days=-2))

    def test_future_due_is_not_delayed(self, make_order):
        assert not is_delayed(make_order(due_in_days=2))

    def test_delivered_by_status_text(self, make_order):
        assert not is_delayed(make_order(status="Delivered", status_id=7500, due_in_days=-2))

    def test_delivered_by_status_id(self, make_order):
        assert not is_delayed(make_order(status="Out for delivery", status_id=8000, due_in_days=-2))

    def test_no_expected_date(self, make_order):
        assert not is_delayed(make_order(due_in_days=None))


class TestSummary:

    def test_buckets(self, make_order):
        orders = [
            make_order(status_id=7500),
            make_order(status_id=6000),
            make_order(status_id=3000),
            make_order(status_id=8000),
            make_order(status_id=8010),
        ]
        text = format_orders_summary(orders)
        assert text.startswith("I found 5 orders.")
        for line in ("1 shipping", "1 ready", "1 in production", "1 delivered", "1 cancelled"):
            assert line in text

    def test_singular(self, make_order):
        assert format_orders_summary([make_order()]).startswith("I found 1 order.")

    def test_empty(self):
        assert format_orders_summary([]) == "No orders found."


class TestPagination:

    def test_clamp_page(self):
        assert clamp_page(-1, 5) == 0
        assert clamp_page(9, 5) == 1
        assert clamp_page(1, 5) == 1
        assert clamp_page(3, 0) == 0

    def test_first_page_of_five(self, make_order):
        page = format_orders_page(_orders(make_order, 5), 0, 3)
        assert page.text.startswith("Orders 1-3 (of 5):")
        assert page.has_more
        assert not page.has_prev
        assert page.total_pages == 2
        assert '"Next" for next 2 orders' in page.text
        assert '"Previous"' not in page.text

    def test_second_page_of_five(self, make_order):
        page = format_orders_page(_orders(make_order, 5), 1, 3)
        assert page.text.startswith("Orders 4-5 (of 5):")
        assert not page.has_more
        assert page.has_prev
        assert page.current_page == 1
        assert "4. ORD-4" in page.text
        assert "5. ORD-5" in page.text
        assert "1. ORD-1" not in page.text
        assert '"Previous" for previous orders' in page.text
        assert '"Next"' not in page.text

    def test_out_of_range_page_is_clamped(self, make_order):
        page = format_orders_page(_orders(make_order, 5), 9, 3)
        assert page.current_page == 1
        assert page.text.startswith("Orders 4-5 (of 5):")

    def test_middle_page_has_both_hints(self, make_order):
        page = format_orders_page(_orders(make_order, 7), 1, 3)
        assert page.has_more and page.has_prev
        assert '"Next" for next 1 orders' in page.text

    def test_single_page(self, make_order):
        page = format_orders_page(_orders(make_order, 2), 0, 3)
        assert page.text.endswith("Type order number to view full details.")
        assert not page.has_more and not page.has_prev

    def test_entry_layout_and_delay_marker(self, make_order):
        orders = [
            make_order(order_id="ORD-A", status="Printing", due_in_days=-1),
            make_order(order_id="ORD-B", status="Packing", due_in_days=None),
        ]
        text = format_orders_page(orders, 0, 3).text
        assert "1. ORD-A\n   Printing\n   Due: " in text
        assert DELAY_MARKER in text
        assert "2. ORD-B\n   Packing\n   Due: N/A" in text

    def test_empty(self):
        page = format_orders_page([], 0)
        assert page.text == "No orders found."
        assert page.total_pages == 0


class TestOrderDetails:

    def test_header_and_reference(self, make_order):
        text = format_order_details(make_order(order_id="ORD-1", alt_id="PJ1"))
        assert text.startswith("📦 ORDER DETAILS")
        assert "Order: ORD-1" in text
        assert "Reference: PJ1" in text
        assert "Placed: Today" in text
        assert text.endswith("✓ Everything is on track!")

    def test_shipping(self, make_order):
        assert format_order_details(make_order(status_id=7500)).endswith("On the way!")

    def test_delivered(self, make_order):
        text = format_order_details(make_order(status="Delivered", status_id=8000, due_in_days=-3))
        assert text.endswith("Delivered successfully!")

    def test_cancelled_with_reason(self, make_order):
        text = format_order_details(make_order(status="Payment Error", status_id=8010))
        assert "This order was cancelled." in text
        assert "Reason: Payment Error" in text

    def test_cancelled_with_numeric_status(self, make_order):
        text = format_order_details(make_order(status=8010, status_id=8010))
        assert "This order was cancelled." in text
        assert "Reason:" not in text

    def test_delayed(self, make_order):
        text = format_order_details(make_order(due_in_days=-2))
        assert "DELAYED" in text
        assert "We apologize for the delay." in text

    def test_missing_order(self):
        assert format_order_details(None) == "Order not found."


class TestMessages:

    def test_no_orders_found_names_the_number(self):
        text = format_no_orders_found("9940117071")
        assert "I couldn't find any orders for mobile number 9940117071" in text
        assert SUPPORT_PHONE in text

    @pytest.mark.parametrize("kind", list(OrderErrorKind) + [None])
    def test_every_error_mentions_support(self, kind):
        assert SUPPORT_PHONE in format_error_message(kind)

    def test_error_message_does_not_leak_cause(self):
        text = format_error_message(OrderErrorKind.TOKEN_EXPIRED)
        assert "401" not in text
        assert "token" not in text.lower()

    def test_active_orders_none(self):
        assert "couldn't find any active orders" in format_active_orders_message([], "9876543210")

    def test_active_orders_single(self, make_order):
        text = format_active_orders_message([make_order(alt_id="PJ5", status="Pre-Press")], "9876543210")
        assert text.startswith("Your order *PJ5* is currently *In Production*.")

    def test_active_orders_many(self, make_order):
        text = format_active_orders_message(_orders(make_order, 6), "9876543210")
        assert text.startswith("You have 6 active orders:")
        assert "5. *PJ5*" in text
        assert "*PJ6*" not in text
        assert text.endswith("...and 1 more")


class TestFormatOrdersForWhatsapp:

    def test_one_order_shows_details(self, make_order):
        assert format_orders_for_whatsapp([make_order()]).startswith("📦 ORDER DETAILS")

    def test_up_to_three_orders_on_one_page(self, make_order):
        text = format_orders_for_whatsapp(_orders(make_order, 3), page=2)
        assert text.startswith("I found 3 orders.")
        assert "Orders 1-3 (of 3):" in text
        assert "Type order number to view full details." in text

    def test_more_than_three_uses_requested_page(self, make_order):
        text = format_orders_for_whatsapp(_orders(make_order, 5), page=1)
        assert "Orders 4-5 (of 5):" in text

    def test_no_orders(self):
        assert "I couldn't find any orders" in format_orders_for_whatsapp([])

    def test_no_orders_is_stable(self):
        assert format_orders_for_whatsapp([]) == format_orders_for_whatsapp([])

    @pytest.mark.parametrize("page", [0, 1, 5])
    def test_one_order_has_no_paging_hints(self, make_order, page):
        text = format_orders_for_whatsapp([make_order()], page=page)
        assert "Next" not in text
        assert "Previous" not in text

    @pytest.mark.parametrize("n", [2, 3, 4, 5, 6, 7, 8, 10])
    def test_blocks_per_page(self, make_order, n):
        orders = _orders(make_order, n)
        pages = 1 if n <= 3 else math.ceil(n / 3)
        for page in range(pages):
            text = format_orders_for_whatsapp(orders, page=page)
            blocks = re.findall(r"^\d+\. ORD-\d+$", text, re.M)
            assert len(blocks) == min(3, n - page * 3)
