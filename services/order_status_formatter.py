"""
Formats PIA orders into WhatsApp-safe status messages.

Display strategy:
  - 0 orders   → "couldn't find any orders" help text
  - 1 order    → full detail view
  - 2-3 orders → status summary + every order on one page
  - 4+ orders  → status summary + 3 orders per page with Next/Previous hints
"""

import math
from datetime import date, timedelta
from typing import List, Optional

from models import Order, OrderErrorKind, PageResult, parse_date
from services.pia_client import map_status_for_display
from app_config import (
    ORDER_PAGE_SIZE,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
    SUPPORT_PHONE,
    SUPPORT_EMAIL,
)

_WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

DELAY_MARKER = "⚠️ Delayed"


# ─────────────────────────────────────────────
# DATES
# ─────────────────────────────────────────────

def format_date(value, today: Optional[date] = None) -> str:
    """
    Human-friendly date: "Today", "Tomorrow", a weekday name within the next
    7 days, otherwise "Dec 27". Missing or unparseable dates give "N/A".
    """
    day = parse_date(value)
    if day is None:
        return "N/A"

    today = today or date.today()
    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"

    diff_days = (day - today).days
    if 0 <= diff_days <= 7:
        return _WEEKDAYS[day.weekday()]

    return f"{_MONTHS[day.month - 1]} {day.day}"


def is_delayed(order: Order, today: Optional[date] = None) -> bool:
    """
    Past its expected delivery and not delivered.

    Status text and status id are checked independently because PIA does not
    always update both together.
    """
    if not order.estimated_delivery:
        return False
    today = today or date.today()
    return (
        order.estimated_delivery < today
        and order.status != "Delivered"
        and order.status_id != STATUS_DELIVERED
    )


# ─────────────────────────────────────────────
# SUMMARY (multiple orders)
# ─────────────────────────────────────────────

def format_orders_summary(orders: List[Order]) -> str:
    """Counts by status bucket, e.g. "I found 4 orders.\\n\\n2 shipping\\n2 ready"."""
    if not orders:
        return "No orders found."

    shipping = ready = in_production = delivered = cancelled = 0
    for order in orders:
        status_id = order.status_id or 0
        if status_id >= 8000:
            if status_id == STATUS_DELIVERED:
                delivered += 1
            elif status_id == STATUS_CANCELLED:
                cancelled += 1
        elif status_id >= 7000:
            shipping += 1
        elif status_id >= 5000:
            ready += 1
        else:
            in_production += 1

    count = len(orders)
    lines = [f"I found {count} order{'s' if count > 1 else ''}.", ""]
    if shipping:
        lines.append(f"{shipping} shipping")
    if ready:
        lines.append(f"{ready} ready")
    if in_production:
        lines.append(f"{in_production} in production")
    if delivered:
        lines.append(f"{delivered} delivered")
    if cancelled:
        lines.append(f"{cancelled} cancelled")

    return "\n".join(lines).strip()


# ─────────────────────────────────────────────
# PAGINATED LIST
# ─────────────────────────────────────────────

def clamp_page(page: int, total_orders: int, page_size: int = ORDER_PAGE_SIZE) -> int:
    """Nearest valid zero-based page index for a list of *total_orders*."""
    if total_orders <= 0:
        return 0
    last_page = math.ceil(total_orders / page_size) - 1
    return min(max(int(page or 0), 0), last_page)


def format_orders_page(orders: List[Order], page: int = 0,
                       page_size: int = ORDER_PAGE_SIZE) -> PageResult:
    """Render one page of *orders* (0-indexed *page*) as numbered lines."""
    if not orders:
        return PageResult(text="No orders found.", has_more=False, has_prev=False,
                          current_page=0, total_pages=0)

    total_orders = len(orders)
    total_pages = math.ceil(total_orders / page_size)
    page = clamp_page(page, total_orders, page_size)
    start_idx = page * page_size
    end_idx = min(start_idx + page_size, total_orders)

    lines = [f"Orders {start_idx + 1}-{end_idx} (of {total_orders}):", ""]
    for number, order in enumerate(orders[start_idx:end_idx], start=start_idx + 1):
        due = f"   Due: {format_date(order.estimated_delivery)}"
        if is_delayed(order):
            due += f" {DELAY_MARKER}"
        lines.append(f"{number}. {order.order_id}")
        lines.append(f"   {order.status}")
        lines.append(due)
        lines.append("")

    has_next = end_idx < total_orders
    has_prev = page > 0

    if has_next or has_prev:
        lines.append("Type number to view details, or:")
        if has_prev:
            lines.append('"Previous" for previous orders')
        if has_next:
            lines.append(f'"Next" for next {min(page_size, total_orders - end_idx)} orders')
    else:
        lines.append("Type order number to view full details.")

    return PageResult(
        text="\n".join(lines).strip(),
        has_more=has_next,
        has_prev=has_prev,
        current_page=page,
        total_pages=total_pages,
    )


# ─────────────────────────────────────────────
# SINGLE ORDER
# ─────────────────────────────────────────────

def format_order_details(order: Optional[Order]) -> str:
    """Full detail view of one order."""
    if not order:
        return "Order not found."

    lines = [
        "📦 ORDER DETAILS",
        "",
        f"Order: {order.order_id}",
    ]
    if order.alt_id:
        lines.append(f"Reference: {order.alt_id}")
    lines.extend([
        "",
        f"Status: {order.status}",
        f"Placed: {format_date(order.order_date)}",
        f"Expected: {format_date(order.estimated_delivery)}",
        "",
    ])

    status_id = order.status_id or 0
    if is_delayed(order):
        lines.append("DELAYED")
        lines.append("We apologize for the delay. Our team is working on this.")
    elif 7000 <= status_id < 8000:
        lines.append("On the way!")
    elif status_id == STATUS_DELIVERED:
        lines.append("Delivered successfully!")
    elif status_id == STATUS_CANCELLED:
        lines.append("This order was cancelled.")
        status_text = str(order.status or "")
        if "Error" in status_text or "Issue" in status_text:
            lines.append(f"Reason: {order.status}")
    else:
        lines.append("✓ Everything is on track!")

    return "\n".join(lines).strip()


# ─────────────────────────────────────────────
# NO ORDERS / ERRORS
# ─────────────────────────────────────────────

def format_no_orders_found(mobile: str = "the provided number") -> str:
    return (
        f"I couldn't find any orders for mobile number {mobile}.\n"
        f"\n"
        f"Possible reasons:\n"
        f"• Order was placed with a different number\n"
        f"• Order is more than 6 months old\n"
        f"• Wrong number entered\n"
        f"\n"
        f"Please check:\n"
        f"✓ Registered mobile number\n"
        f"✓ Order confirmation email\n"
        f"\n"
        f"Need help? Contact support: {SUPPORT_PHONE}"
    )


def format_invalid_phone_message() -> str:
    return (
        "Please provide a valid 10-digit mobile number to check your order status.\n"
        f"\n"
        f"Need help? Contact support: {SUPPORT_PHONE}"
    )


def format_error_message(error_kind: Optional[OrderErrorKind]) -> str:
    """Customer-facing text for an order lookup failure. Never exposes the cause."""
    if error_kind == OrderErrorKind.TOKEN_EXPIRED:
        return (
            "Session expired. Please try again in a moment.\n"
            f"\n"
            f"If urgent, contact support: 📞 {SUPPORT_PHONE}"
        )
    if error_kind == OrderErrorKind.TIMEOUT:
        return (
            "Request timed out. Please try again.\n"
            f"\n"
            f"If urgent, contact support: 📞 {SUPPORT_PHONE}"
        )
    if error_kind in (OrderErrorKind.SERVER_ERROR, OrderErrorKind.PIA_ERROR):
        return (
            "I'm having trouble accessing order details right now. "
            "Please try again in a few minutes.\n"
            f"\n"
            f"If urgent, contact support:\n"
            f"📞 {SUPPORT_PHONE}\n"
            f"📧 {SUPPORT_EMAIL}"
        )
    if error_kind == OrderErrorKind.INVALID_PHONE:
        return format_invalid_phone_message()
    return (
        "Unable to fetch order status. Please try again.\n"
        f"\n"
        f"If the issue persists:\n"
        f"📞 Contact support: {SUPPORT_PHONE}"
    )


# ─────────────────────────────────────────────
# ACTIVE ORDER STATUS (standalone endpoint)
# ─────────────────────────────────────────────

def format_no_active_orders(phone: str) -> str:
    return (
        f"We couldn't find any active orders for the phone number *{phone}*.\n"
        f"\n"
        f"If you recently placed an order, it may take a few minutes to reflect "
        f"in our system. For assistance, please call us at *{SUPPORT_PHONE}*."
    )


def format_active_orders_message(active_orders: List[Order], phone: str) -> str:
    """Short status message listing active orders by their PJ reference."""
    if not active_orders:
        return format_no_active_orders(phone)

    if len(active_orders) == 1:
        order = active_orders[0]
        message = (
            f"Your order *{order.alt_id}* is currently "
            f"*{map_status_for_display(order.status)}*."
        )
        if order.estimated_delivery:
            message += f" Expected: {format_date(order.estimated_delivery)}."
        return message

    lines = [f"You have {len(active_orders)} active orders:"]
    for number, order in enumerate(active_orders[:5], start=1):
        line = f"{number}. *{order.alt_id}* - *{map_status_for_display(order.status)}*"
        if order.product_name:
            line += f" ({order.product_name})"
        lines.append(line)
    if len(active_orders) > 5:
        lines.append(f"...and {len(active_orders) - 5} more")
    return "\n".join(lines)


# ─────────────────────────────────────────────
# MAIN ENTRY POINT
# ─────────────────────────────────────────────

def format_orders_for_whatsapp(orders: List[Order], page: int = 0) -> str:
    """Pick the view for the number of orders and render it."""
    if not orders:
        return format_no_orders_found()

    if len(orders) == 1:
        return format_order_details(orders[0])

    summary = format_orders_summary(orders)
    if len(orders) <= ORDER_PAGE_SIZE:
        listing = format_orders_page(orders, 0, len(orders))
    else:
        listing = format_orders_page(orders, page, ORDER_PAGE_SIZE)
    return f"{summary}\n\n{listing.text}"
