"""
Tests for /api/existing-order/status and /api/existing-order/health.
"""

import pytest

from app_config import SUPPORT_PHONE
from models import OrderErrorKind, OrderLookupResult
from services.errors import PIAResponseError


@pytest.fixture
def active_and_delivered(raw_order):
    return [
        raw_order(alt_id="PJ1", status="Printing", status_id=3000),
        raw_order(alt_id="PJ2", status="Delivered", status_id=8000),
    ]


class TestStatus:

    def test_phone_field(self, client, fake_pia_client, fake_llm, active_and_delivered):
        fake_pia_client.search_by_mobile.return_value = OrderLookupResult.ok(
            [], raw_orders=active_and_delivered
        )

        resp = client.post("/api/existing-order/status", json={"phone": "9876543210"})

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["success"] is True
        assert data["message"] == "Your order *PJ1* is currently in *In Production*."
        assert data["metadata"]["phone"] == "9876543210"
        assert data["metadata"]["activeOrderCount"] == 1
        assert "responseTime" in data["metadata"]
        assert "timestamp" in data["metadata"]

    def test_llm_sees_display_statuses(self, client, fake_pia_client, fake_llm,
                                       active_and_delivered):
        fake_pia_client.search_by_mobile.return_value = OrderLookupResult.ok(
            [], raw_orders=active_and_delivered
        )

        client.post("/api/existing-order/status", json={"phone": "9876543210"})

        order_data = fake_llm.write_order_status.call_args.args[0]
        assert order_data == [{
            "orderId": "PJ1",
            "status": "In Production",
            "product": None,
            "quantity": 0,
            "promisedDate": None,
        }]

    def test_llm_failure_falls_back_to_template(self, client, fake_pia_client, fake_llm,
                                                active_and_delivered):
        fake_pia_client.search_by_mobile.return_value = OrderLookupResult.ok(
            [], raw_orders=active_and_delivered
        )
        fake_llm.write_order_status.side_effect = RuntimeError("llm down")

        resp = client.post("/api/existing-order/status", json={"phone": "9876543210"})

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["success"] is True
        assert data["message"].startswith("Your order *PJ1* is currently *In Production*.")

    def test_empty_llm_answer_falls_back_to_template(self, client, fake_pia_client, fake_llm,
                                                     active_and_delivered):
        fake_pia_client.search_by_mobile.return_value = OrderLookupResult.ok(
            [], raw_orders=active_and_delivered
        )
        fake_llm.write_order_status.return_value = ""

        data = client.post("/api/existing-order/status", json={"phone": "9876543210"}).get_json()

        assert data["message"].startswith("Your order *PJ1* is currently *In Production*.")

    def test_phone_field_is_normalised(self, client, fake_pia_client):
        resp = client.post("/api/existing-order/status", json={"phone": "+91 98765 43210"})
        assert resp.get_json()["metadata"]["phone"] == "9876543210"
        fake_pia_client.search_by_mobile.assert_called_once_with("9876543210")

    def test_phone_from_message(self, client, fake_pia_client):
        resp = client.post("/api/existing-order/status",
                           json={"message": "hi, my number is 9876543210"})
        assert resp.status_code == 200
        fake_pia_client.search_by_mobile.assert_called_once_with("9876543210")

    def test_no_active_orders(self, client, fake_pia_client, fake_llm):
        data = client.post("/api/existing-order/status", json={"phone": "9940117071"}).get_json()
        assert data["success"] is True
        assert data["metadata"]["activeOrderCount"] == 0
        assert "couldn't find any active orders" in data["message"]
        fake_llm.write_order_status.assert_not_called()

    @pytest.mark.parametrize("body", [{}, {"phone": "12345"}, {"message": "where is my order"}])
    def test_invalid_phone(self, client, body, fake_pia_client):
        resp = client.post("/api/existing-order/status", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "INVALID_PHONE"
        fake_pia_client.search_by_mobile.assert_not_called()

    @pytest.mark.parametrize("body", [["9876543210"], "9876543210", 42])
    def test_non_object_body(self, client, body, fake_pia_client):
        resp = client.post("/api/existing-order/status", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "INVALID_PHONE"
        fake_pia_client.search_by_mobile.assert_not_called()

    def test_pia_failure(self, client, fake_pia_client):
        fake_pia_client.search_by_mobile.return_value = OrderLookupResult.err(
            OrderErrorKind.TIMEOUT, "timed out"
        )

        resp = client.post("/api/existing-order/status", json={"phone": "9876543210"})

        assert resp.status_code == 500
        data = resp.get_json()
        assert data["error"] == "PIA_ERROR"
        assert SUPPORT_PHONE in data["message"]

    @pytest.mark.parametrize("error", [RuntimeError("boom"), PIAResponseError("not json")])
    def test_unexpected_error(self, client, fake_pia_client, error):
        fake_pia_client.search_by_mobile.side_effect = error

        resp = client.post("/api/existing-order/status", json={"phone": "9876543210"})

        assert resp.status_code == 500
        data = resp.get_json()
        assert data["error"] == "INTERNAL_ERROR"
        assert SUPPORT_PHONE in data["message"]
        assert "boom" not in data["message"]


class TestHealth:

    def test_health(self, client):
        data = client.get("/api/existing-order/health").get_json()
        assert data["status"] == "healthy"
        assert data["service"] == "Existing Order Status System"
        assert data["version"] == "1.0.0"
        assert "timestamp" in data
