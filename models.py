"""
Data models for the Printo CS Assistant order-status service.
"""

import time
from datetime import date, datetime
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any


class OrderErrorKind(Enum):
    INVALID_PHONE            = "INVALID_PHONE"
    TOKEN_EXPIRED            = "TOKEN_EXPIRED"
    TIMEOUT                  = "TIMEOUT"
    SERVER_ERROR             = "SERVER_ERROR"
    PIA_ERROR                = "PIA_ERROR"
    INVALID_RESPONSE_FORMAT  = "INVALID_RESPONSE_FORMAT"
    UNKNOWN_ERROR            = "UNKNOWN_ERROR"
    INTERNAL_ERROR           = "INTERNAL_ERROR"


def parse_date(value: Any) -> Optional[date]:
    """Parse PIA date values ("2025-12-27", "2025-12-27T10:30:00Z", date, datetime)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _to_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class Order:
    order_id: str
    status: str = "Processing"
    status_id: Optional[int] = None
    alt_id: Optional[str] = None
    order_date: Optional[date] = None
    estimated_delivery: Optional[date] = None
    product_name: Optional[str] = None
    quantity: int = 0

    # Logistics (only present once the courier is booked)
    tracking_link: Optional[str] = None
    awb: Optional[str] = None
    logistics_initiated: bool = False

    @classmethod
    def from_pia(cls, raw: Dict[str, Any], parent: Optional[Dict[str, Any]] = None) -> "Order":
        """
        Build an Order from a PIA record.

        When *parent* is given, *raw* is a line item of that order: identifiers
        and logistics come from the parent, status and dates prefer the item.
        """
        source = parent or raw
        promised = (
            raw.get("promisedDate")
            or raw.get("estimatedDelivery")
            or source.get("customerPromisedTAT")
            or source.get("estimatedDelivery")
            or source.get("promisedDate")
        )
        order_id = source.get("orderId") or source.get("altId") or ""
        return cls(
            order_id=str(order_id),
            alt_id=source.get("altId") or None,
            status=str(raw.get("status") or source.get("status") or "Processing"),
            status_id=_to_int(raw.get("statusId")) or _to_int(source.get("statusId")),
            order_date=parse_date(source.get("orderDate")),
            estimated_delivery=parse_date(promised),
            product_name=raw.get("productName") or None,
            quantity=_to_int(raw.get("quantity")) or 0,
            tracking_link=source.get("trackingLink") or None,
            awb=source.get("awb") or None,
            logistics_initiated=bool(source.get("logisticsInitiated", False)),
        )


@dataclass
class OrderLookupResult:
    """Outcome of an order API call: Ok(orders) when error is None, Err(kind) otherwise."""
    success: bool
    orders: List[Order] = field(default_factory=list)
    count: int = 0
    error: Optional[OrderErrorKind] = None
    message: Optional[str] = None
    raw_orders: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_ok(self) -> bool:
        return self.success and self.error is None

    @classmethod
    def ok(cls, orders: List[Order], count: Optional[int] = None,
           message: Optional[str] = None,
           raw_orders: Optional[List[Dict[str, Any]]] = None) -> "OrderLookupResult":
        return cls(success=True, orders=orders,
                   count=count if count is not None else len(orders), message=message,
                   raw_orders=raw_orders or [])

    @classmethod
    def err(cls, kind: OrderErrorKind, message: str) -> "OrderLookupResult":
        return cls(success=False, error=kind, message=message)


@dataclass
class PhoneExtraction:
    success: bool
    phone: Optional[str] = None
    error: Optional[str] = None


@dataclass
class PageResult:
    text: str
    has_more: bool
    has_prev: bool
    current_page: int
    total_pages: int


@dataclass
class SessionMetadata:
    start_time: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)

    # Order status pagination
    current_orders: List[Order] = field(default_factory=list)
    order_page: int = 0
    order_phone: Optional[str] = None

    # Conversation bookkeeping for the LLM prompt
    product_interest: Optional[str] = None
    questions_asked: List[str] = field(default_factory=list)
    requirements: Dict[str, Any] = field(default_factory=dict)

    # BotSpace sessions
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None

    def record_question(self, question: str, keep: int) -> None:
        """Remember *question*, keeping only the last *keep* entries."""
        self.questions_asked.append(question)
        if len(self.questions_asked) > keep:
            del self.questions_asked[:len(self.questions_asked) - keep]


@dataclass
class Session:
    session_id: str
    user_id: str
    messages: List[Dict[str, str]] = field(default_factory=list)
    metadata: SessionMetadata = field(default_factory=SessionMetadata)

    def add_exchange(self, question: str, answer: str) -> None:
        self.messages.append({"role": "user", "content": question})
        self.messages.append({"role": "assistant", "content": answer})

    def trim_history(self, keep: int) -> None:
        """Drop older turns once the history holds two full exchanges."""
        if len(self.messages) >= 2 * keep:
            del self.messages[:len(self.messages) - keep]

    def summary(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "startTime": self.metadata.start_time,
            "lastActivity": self.metadata.last_activity,
            "messageCount": len(self.messages),
        }
