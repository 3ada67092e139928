"""
Pytest configuration and fixtures for printo-cs-assistant tests.

Provides an Order factory, a fake PIA client and a Flask test client whose
outbound collaborators (PIA, LLM, Google Sheets, BotSpace) are all mocked, so
no test touches the network.
"""

from datetime import date, timedelta
from unittest.mock import MagicMock, patch

import pytest

from models import Order, OrderLookupResult
from core.session import SessionStore
from services.pia_client import PIAClient


def _raw_order(alt_id="PJ1001", order_id="ORD-1001", status="Printing",
               status_id=3000, order_date=None, promised=None, **extra):
    """A PIA record as it comes over the wire."""
    raw = {
        "orderId": order_id,
        "altId": alt_id,
        "status": status,
        "statusId": status_id,
        "orderDate": order_date or date.today().isoformat(),
        "customerPromisedTAT": promised,
    }
    raw.update(extra)
    return raw


@pytest.fixture
def raw_order():
    """Factory for raw PIA order dicts."""
    return _raw_order


@pytest.fixture
def make_order():
    """Factory for parsed Orders with sensible defaults."""
    def _make(order_id="ORD-1001", alt_id="PJ1001", status="Printing", status_id=3000,
              days_ago=0, due_in_days=3, **kwargs):
        today = date.today()
        return Order(
            order_id=order_id,
            alt_id=alt_id,
            status=status,
            status_id=status_id,
            order_date=today - timedelta(days=days_ago),
            estimated_delivery=(
                today + timedelta(days=due_in_days) if due_in_days is not None else None
            ),
            **kwargs,
        )
    return _make


@pytest.fixture
def fake_pia_client():
    """PIAClient stand-in; set .search_by_mobile.return_value per test."""
    client = MagicMock(spec=PIAClient)
    client.search_by_mobile.return_value = OrderLookupResult.ok([])
    return client


@pytest.fixture
def store():
    """A fresh, empty session store."""
    return SessionStore(ttl_seconds=60, sweep_interval=1)


@pytest.fixture
def fake_llm():
    llm = MagicMock()
    llm.answer.return_value = "We print business cards, t-shirts and more!"
    llm.write_order_status.return_value = "Your order *PJ1* is currently in *In Production*."
    return llm


@pytest.fixture
def fake_sheets():
    return MagicMock()


@pytest.fixture
def fake_botspace():
    botspace = MagicMock()
    botspace.is_configured.return_value = False
    return botspace


@pytest.fixture
def app(fake_pia_client, store, fake_llm, fake_sheets, fake_botspace):
    """Flask app with every outbound collaborator replaced by a mock."""
    from server import create_app

    with patch("routes.chat.pia_client", fake_pia_client), \
         patch("routes.existing_order.pia_client", fake_pia_client), \
         patch("routes.chat.session_store", store), \
         patch("routes.chat.get_llm_client", return_value=fake_llm), \
         patch("services.order_status.get_llm_client", return_value=fake_llm), \
         patch("routes.chat.conversation_logger", fake_sheets), \
         patch("routes.chat.botspace_client", fake_botspace):
        flask_app = create_app()
        flask_app.config["TESTING"] = True
        yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()
