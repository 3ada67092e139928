"""
Order status flow: phone number → PIA lookup → WhatsApp reply.

Entry points:
  - handle_order_status_query(): conversational path, keeps pagination state
    in the session (used by /api/chat and the BotSpace webhook)
  - lookup_active_orders() + generate_active_orders_message(): standalone
    path for /api/existing-order/status
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from models import Order, OrderErrorKind, OrderLookupResult, Session
from phone_extractor import get_phone_from_message
from services.errors import OrderLookupError, PIAResponseError
from services.pia_client import (
    PIAClient,
    pia_client as default_pia_client,
    customer_visible_orders,
    filter_active_orders,
    map_status_for_display,
    sort_orders_by_recent,
)
from services.llm_client import get_llm_client
from services.order_status_formatter import (
    clamp_page,
    format_active_orders_message,
    format_error_message,
    format_invalid_phone_message,
    format_no_active_orders,
    format_no_orders_found,
    format_orders_for_whatsapp,
)
from chat_logger import get_logger, mask_phone

logger = get_logger("printo_cs")


@dataclass
class OrderStatusReply:
    success: bool
    message: str
    phone: Optional[str] = None
    orders_count: int = 0
    error: Optional[OrderErrorKind] = None


def handle_order_status_query(
    message: str,
    session: Session,
    client: Optional[PIAClient] = None,
    phone: Optional[str] = None,
) -> OrderStatusReply:
    """
    Answer an order-status question for *session*.

    *phone* is taken from *message* unless the caller already extracted it.
    Uses the session's stored order page; the page is reset to 0 when the
    phone number differs from the previous lookup, and clamped to the new
    order list. currentOrders / orderPage / orderPhone are written back.
    The caller is expected to hold the session lock.
    """
    client = client or default_pia_client

    phone = phone or get_phone_from_message(message)
    if not phone:
        return OrderStatusReply(
            success=False,
            message=format_invalid_phone_message(),
            error=OrderErrorKind.INVALID_PHONE,
        )

    try:
        result = client.search_by_mobile(phone)
        if not result.is_ok:
            return _lookup_failed(result, phone)
        return _render_orders(result, phone, session)
    except PIAResponseError as e:
        logger.error(f"Order status | phone={mask_phone(phone)} | malformed PIA response: {e}")
        return _internal_error(phone)
    except Exception as e:
        logger.error(f"Order status | phone={mask_phone(phone)} | unexpected error: {e}",
                     exc_info=True)
        return _internal_error(phone)


def _lookup_failed(result: OrderLookupResult, phone: str) -> OrderStatusReply:
    if result.error == OrderErrorKind.TOKEN_EXPIRED:
        logger.error("ALERT: PIA bearer token expired, order lookups are failing")
    else:
        logger.warning(f"Order status | phone={mask_phone(phone)} | error={result.error.value}")
    return OrderStatusReply(
        success=False,
        message=format_error_message(result.error),
        phone=phone,
        error=result.error,
    )


def _render_orders(result: OrderLookupResult, phone: str, session: Session) -> OrderStatusReply:
    """Format the page and only then write the pagination state back."""
    orders = sort_orders_by_recent(customer_visible_orders(result.orders))
    meta = session.metadata

    if not orders:
        meta.current_orders = []
        meta.order_page = 0
        meta.order_phone = phone
        return OrderStatusReply(
            success=True,
            message=format_no_orders_found(phone),
            phone=phone,
            orders_count=0,
        )

    page = meta.order_page or 0
    if meta.order_phone != phone:
        page = 0
    page = clamp_page(page, len(orders))

    reply_text = format_orders_for_whatsapp(orders, page)

    meta.current_orders = orders
    meta.order_page = page
    meta.order_phone = phone

    logger.info(
        f"Order status | phone={mask_phone(phone)} | orders={len(orders)} | page={page}"
    )
    return OrderStatusReply(
        success=True,
        message=reply_text,
        phone=phone,
        orders_count=len(orders),
    )


def lookup_active_orders(phone: str, client: Optional[PIAClient] = None) -> List[Order]:
    """
    Active, customer-recognisable orders for *phone*.

    Raises:
        OrderLookupError: PIA lookup failed (kind carries the cause).
        PIAResponseError: PIA answered with a malformed body.
    """
    client = client or default_pia_client
    result = client.search_by_mobile(phone)
    if not result.is_ok:
        raise OrderLookupError(result.error, result.message or "")

    active = filter_active_orders(result.raw_orders)
    logger.info(
        f"Existing order | phone={mask_phone(phone)} | "
        f"orders={len(result.raw_orders)} | active={len(active)}"
    )
    return active


def order_status_data(active_orders: List[Order]) -> List[Dict[str, Any]]:
    """What the LLM gets to see: PJ code, display status, product, quantity, due date."""
    return [
        {
            "orderId": order.alt_id,
            "status": map_status_for_display(order.status),
            "product": order.product_name,
            "quantity": order.quantity,
            "promisedDate": (
                order.estimated_delivery.isoformat() if order.estimated_delivery else None
            ),
        }
        for order in active_orders
    ]


def generate_active_orders_message(active_orders: List[Order], phone: str, llm=None) -> str:
    """
    Customer-facing status message for the standalone endpoint.

    The LLM (*llm*, or the shared client) words the message from the mapped
    order data; any LLM failure or an empty answer falls back to the fixed
    template.
    """
    if not active_orders:
        return format_no_active_orders(phone)

    try:
        llm = llm or get_llm_client()
        message = llm.write_order_status(order_status_data(active_orders))
    except Exception as e:
        logger.error(f"Existing order | phone={mask_phone(phone)} | LLM error: {e}")
        return format_active_orders_message(active_orders, phone)

    if not message:
        logger.warning(f"Existing order | phone={mask_phone(phone)} | empty LLM message")
        return format_active_orders_message(active_orders, phone)
    return message


def _internal_error(phone: Optional[str]) -> OrderStatusReply:
    return OrderStatusReply(
        success=False,
        message=format_error_message(OrderErrorKind.INTERNAL_ERROR),
        phone=phone,
        error=OrderErrorKind.INTERNAL_ERROR,
    )
