"""Services package - exports all service modules."""

from .errors import PIAResponseError, PIAAuthError, OrderLookupError, BotSpaceError
from .pia_client import (
    PIAClient,
    pia_client,
    filter_active_orders,
    get_active_orders,
    customer_visible_orders,
    sort_orders_by_recent,
    map_status_for_display,
)
from .order_status_formatter import (
    format_orders_for_whatsapp,
    format_orders_page,
    format_order_details,
    format_orders_summary,
    format_no_orders_found,
    format_error_message,
    format_date,
    is_delayed,
)
from .order_status import (
    OrderStatusReply,
    handle_order_status_query,
    lookup_active_orders,
    generate_active_orders_message,
)
from .llm_client import LLMClient, get_llm_client
from .conversation_logger import ConversationLogger, conversation_logger
from .botspace_client import BotSpaceClient, botspace_client

__all__ = [
    "PIAResponseError",
    "PIAAuthError",
    "OrderLookupError",
    "BotSpaceError",
    "PIAClient",
    "pia_client",
    "filter_active_orders",
    "get_active_orders",
    "customer_visible_orders",
    "sort_orders_by_recent",
    "map_status_for_display",
    "format_orders_for_whatsapp",
    "format_orders_page",
    "format_order_details",
    "format_orders_summary",
    "format_no_orders_found",
    "format_error_message",
    "format_date",
    "is_delayed",
    "OrderStatusReply",
    "handle_order_status_query",
    "lookup_active_orders",
    "generate_active_orders_message",
    "LLMClient",
    "get_llm_client",
    "ConversationLogger",
    "conversation_logger",
    "BotSpaceClient",
    "botspace_client",
]
