from __future__ import annotations

from enum import Enum


class EventType(str, Enum):
    ORDER_APPROVED = "order.approved"
    ORDER_REFUNDED = "order.refunded"
    ORDER_CHARGEBACK = "order.chargeback"
    ORDER_CANCELED = "order.canceled"
    CHECKOUT_ABANDONED = "checkout.abandoned"
    UNKNOWN = "unknown"


# 환불 계열은 전부 같은 intent로 처리
REFUND_EVENT_TYPES: frozenset[EventType] = frozenset(
    {
        EventType.ORDER_REFUNDED,
        EventType.ORDER_CHARGEBACK,
        EventType.ORDER_CANCELED,
    }
)


def parse_event_type(raw: str | None) -> EventType:
    if not raw:
        return EventType.UNKNOWN
    try:
        return EventType(raw)
    except ValueError:
        return EventType.UNKNOWN
