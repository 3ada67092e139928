"""
PIA Order Client
================
Looks up customer orders in PIA (Printo Internal Admin) by phone number.

Uses the legacy chatbot endpoint:
  - GET  {PIA_API_URL}?mobile=<10-digit>   → { data: [...] | null, count, message }
  - POST {PIA_AUTH_URL}                    → { access: <token> }

Every expected upstream condition is mapped onto a small error taxonomy and
returned as an OrderLookupResult; nothing but a malformed body raises.
"""

from typing import Optional, List, Dict, Any

import requests as http_requests

from models import Order, OrderErrorKind, OrderLookupResult
from services.errors import PIAResponseError, PIAAuthError
from chat_logger import get_logger, mask_phone, sanitize_token
from app_config import (
    PIA_API_URL,
    PIA_AUTH_URL,
    PIA_BEARER_TOKEN,
    PIA_USERNAME,
    PIA_PASSWORD,
    PIA_TIMEOUT_SECONDS,
    TERMINAL_STATUS_IDS,
    TERMINAL_STATUS_KEYWORDS,
)

logger = get_logger("printo_cs")

# Internal production stages that customers only ever see as "In Production"
PRODUCTION_STATUS_KEYWORDS = [
    "pre-press",
    "prepress",
    "ready for os",
    "qc",
    "quality",
    "packing",
    "outsourced",
    "vendor",
    "printing",
    "postpress",
    "post press",
    "post-press",
]


# ─────────────────────────────────────────────
# FILTERING & SORTING
# ─────────────────────────────────────────────

def _is_terminal(status: Optional[str], status_id: Optional[int]) -> bool:
    """Terminal if EITHER the id or the status text says so (the two can drift apart)."""
    if status_id in TERMINAL_STATUS_IDS:
        return True
    if status:
        lowered = str(status).lower()
        return any(keyword in lowered for keyword in TERMINAL_STATUS_KEYWORDS)
    return False


def filter_active_orders(raw_orders: List[Dict[str, Any]]) -> List[Order]:
    """
    Turn raw PIA records into the active orders a customer can recognise.

    - Terminal orders (delivered/cancelled/completed/dispatched) are skipped.
    - Orders with line items are filtered per item; each surviving item
      becomes its own Order carrying the parent's altId.
    - Records without an altId are dropped (customers only know PJ codes).
    """
    active: List[Order] = []

    for raw in raw_orders or []:
        if not isinstance(raw, dict):
            continue
        if _is_terminal(raw.get("status"), _status_id(raw)):
            continue
        if not raw.get("altId"):
            continue

        items = raw.get("items")
        if isinstance(items, list) and items:
            for item in items:
                if not isinstance(item, dict):
                    continue
                if _is_terminal(item.get("status"), _status_id(item)):
                    continue
                active.append(Order.from_pia(item, parent=raw))
        else:
            active.append(Order.from_pia(raw))

    return active


def get_active_orders(orders: List[Order]) -> List[Order]:
    """Same terminal/altId rules as filter_active_orders, for parsed Orders."""
    return [
        order for order in orders
        if order.alt_id and not _is_terminal(order.status, order.status_id)
    ]


def customer_visible_orders(orders: List[Order]) -> List[Order]:
    """Orders a customer can recognise (has an altId), terminal ones included."""
    return [order for order in orders if order.alt_id]


def sort_orders_by_recent(orders: List[Order]) -> List[Order]:
    """Most recent orderDate first; orders without a date go last."""
    dated = [o for o in orders if o.order_date]
    undated = [o for o in orders if not o.order_date]
    return sorted(dated, key=lambda o: o.order_date, reverse=True) + undated


def map_status_for_display(status: Optional[str]) -> str:
    """Collapse internal production stages into "In Production" for customers."""
    if not status:
        return "Processing"
    status = str(status)
    normalized = status.lower().strip()
    if any(keyword in normalized for keyword in PRODUCTION_STATUS_KEYWORDS):
        return "In Production"
    return status


def _status_id(raw: Dict[str, Any]) -> Optional[int]:
    value = raw.get("statusId")
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


# ─────────────────────────────────────────────
# CLIENT
# ─────────────────────────────────────────────

class PIAClient:
    """
    Read-only client for PIA order status:
      - search_by_mobile(phone)
      - search_by_email(email)
      - get_order_by_id(order_id, phone)
      - refresh_token() / verify_token()
    """

    def __init__(
        self,
        api_url: str = PIA_API_URL,
        auth_url: str = PIA_AUTH_URL,
        bearer_token: str = PIA_BEARER_TOKEN,
        username: str = PIA_USERNAME,
        password: str = PIA_PASSWORD,
        timeout: int = PIA_TIMEOUT_SECONDS,
    ):
        self.api_url = api_url
        self.auth_url = auth_url
        self.bearer_token = bearer_token
        self.username = username
        self.password = password
        self.timeout = timeout
        self.session = http_requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

        if not self.bearer_token:
            logger.warning("PIA_BEARER_TOKEN not set in environment variables")

    # ─────────────────────────────────────────────
    # ORDER LOOKUPS
    # ─────────────────────────────────────────────

    def search_by_mobile(self, mobile: str) -> OrderLookupResult:
        """Search orders by 10-digit mobile number."""
        logger.info(f"PIA lookup | mobile={mask_phone(mobile)}")
        return self._search({"mobile": mobile}, mask_phone(mobile))

    def search_by_email(self, email: str) -> OrderLookupResult:
        """Search orders by customer email."""
        logger.info("PIA lookup | by email")
        return self._search({"email": email}, "email")

    def get_order_by_id(self, order_id: str, mobile: str) -> dict:
        """
        Find one order among the orders placed with *mobile*.

        Returns:
            {"success": bool, "order": Order | None, "error": str | None}
        """
        result = self.search_by_mobile(mobile)
        if not result.is_ok or not result.orders:
            return {
                "success": False,
                "order": None,
                "error": "No orders found for this mobile number",
            }

        wanted = str(order_id).strip().upper()
        for order in result.orders:
            if order.order_id.upper() == wanted or (order.alt_id or "").upper() == wanted:
                return {"success": True, "order": order, "error": None}

        return {"success": False, "order": None, "error": f"Order {order_id} not found"}

    def _search(self, params: dict, identifier: str) -> OrderLookupResult:
        try:
            resp = self.session.get(
                self.api_url,
                params=params,
                headers={"Authorization": f"Bearer {self.bearer_token}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except http_requests.exceptions.RequestException as e:
            return self._handle_error(e, identifier)

        try:
            body = resp.json()
        except ValueError as e:
            raise PIAResponseError(f"PIA returned a non-JSON body (HTTP {resp.status_code})") from e
        if not isinstance(body, dict):
            raise PIAResponseError(f"PIA returned {type(body).__name__} instead of an object")

        data = body.get("data")
        count = body.get("count")
        message = body.get("message")

        # "No orders" is a successful, empty answer, not a failure
        if data is None:
            logger.info(f"PIA lookup | {identifier} | no orders: {message}")
            return OrderLookupResult.ok([], count=0, message=message or "No orders found")

        if not isinstance(data, list):
            logger.error(f"PIA lookup | {identifier} | unexpected data type {type(data).__name__}")
            return OrderLookupResult.err(
                OrderErrorKind.INVALID_RESPONSE_FORMAT,
                "Invalid response format from PIA",
            )

        raw_orders = [raw for raw in data if isinstance(raw, dict)]
        orders = [Order.from_pia(raw) for raw in raw_orders]
        total = count or len(data)
        logger.info(f"PIA lookup | {identifier} | found {total} orders")
        return OrderLookupResult.ok(orders, count=total, message=message, raw_orders=raw_orders)

    # ─────────────────────────────────────────────
    # AUTHENTICATION
    # ─────────────────────────────────────────────

    def refresh_token(self) -> str:
        """Exchange the stored username/password for a new bearer token."""
        logger.info("Refreshing PIA bearer token...")
        try:
            resp = self.session.post(
                self.auth_url,
                json={"username": self.username, "password": self.password},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            token = resp.json().get("access")
        except (http_requests.exceptions.RequestException, ValueError, AttributeError) as e:
            logger.error(f"PIA token refresh failed: {sanitize_token(str(e))}")
            raise PIAAuthError(str(e)) from e

        if not token:
            logger.error("PIA token refresh failed: no access token in response")
            raise PIAAuthError("No access token in response")

        self.bearer_token = token
        logger.info("PIA token refreshed successfully")
        return token

    def verify_token(self) -> bool:
        """False only when PIA rejects the token with 401."""
        try:
            resp = self.session.get(
                self.api_url,
                params={"mobile": "0000000000"},
                headers={"Authorization": f"Bearer {self.bearer_token}"},
                timeout=self.timeout,
            )
        except http_requests.exceptions.RequestException:
            return True
        return resp.status_code != 401

    # ─────────────────────────────────────────────
    # ERROR MAPPING
    # ─────────────────────────────────────────────

    def _handle_error(self, error: Exception, identifier: str) -> OrderLookupResult:
        """Map a requests exception onto the order error taxonomy."""
        logger.error(f"PIA API error for {identifier}: {sanitize_token(str(error))}")

        response = getattr(error, "response", None)
        status = response.status_code if response is not None else None

        if status == 401:
            return OrderLookupResult.err(
                OrderErrorKind.TOKEN_EXPIRED,
                "Authentication token expired. Please try again.",
            )
        if status == 404:
            return OrderLookupResult.ok([], count=0, message="No orders found")
        if isinstance(error, http_requests.exceptions.Timeout):
            return OrderLookupResult.err(
                OrderErrorKind.TIMEOUT,
                "Request timed out. Please try again.",
            )
        if status is not None and status >= 500:
            return OrderLookupResult.err(
                OrderErrorKind.SERVER_ERROR,
                "PIA system is temporarily unavailable. Please try again later.",
            )
        return OrderLookupResult.err(
            OrderErrorKind.UNKNOWN_ERROR,
            "Unable to fetch order status. Please try again or contact support.",
        )


# Global PIA client instance
pia_client = PIAClient()
