from __future__ import annotations

import hmac
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal, Optional

import pydantic

from kiwirelay.api.v1.schemas.kiwify_webhook import KiwifyOrderData, KiwifyWebhookIn
from kiwirelay.core.errors import MalformedPayload, MissingEmail, Unauthorized
from kiwirelay.core.kiwify_events import REFUND_EVENT_TYPES, EventType, parse_event_type
from kiwirelay.core.products import ProductCatalog, ProductConfig, Suppressed

logger = logging.getLogger(__name__)

Outcome = Literal["intent", "suppressed", "noop"]

# 토큰은 header 우선, 없으면 body의 token
TOKEN_HEADERS: tuple[str, ...] = ("x-kiwify-token", "x-token")


@dataclass(frozen=True)
class WebhookEvent:
    event_type: EventType
    raw_event_type: Optional[str]
    email: str
    full_name: str
    product_id: str
    product_name: str
    token: Optional[str] = None


@dataclass(frozen=True)
class ReconciliationIntent:
    email: str
    name: Optional[str] = None
    groups_to_add: frozenset[str] = field(default_factory=frozenset)
    groups_to_remove: frozenset[str] = field(default_factory=frozenset)
    tags_to_add: frozenset[str] = field(default_factory=frozenset)
    tags_to_remove: frozenset[str] = field(default_factory=frozenset)
    # abandoned cart 전용: 이 그룹에 이미 있으면 intent 전체를 건너뜀
    skip_if_member_of: Optional[str] = None


@dataclass(frozen=True)
class Classification:
    outcome: Outcome
    event: WebhookEvent
    product: Optional[ProductConfig] = None
    intent: Optional[ReconciliationIntent] = None
    reason: Optional[str] = None


def _names(*values: Optional[str]) -> frozenset[str]:
    return frozenset(v for v in values if v)


# -----------------------------
# Intent builders (pure)
# -----------------------------
def approved_intent(email: str, name: str, product: ProductConfig) -> ReconciliationIntent:
    return ReconciliationIntent(
        email=email,
        name=name or None,
        groups_to_add=_names(product.group_client),
        groups_to_remove=_names(product.group_cart_recovery),
        tags_to_add=_names(product.tag_bought),
        tags_to_remove=_names(product.tag_abandoned_cart, product.tag_refund),
    )


def refund_intent(email: str, product: ProductConfig) -> ReconciliationIntent:
    return ReconciliationIntent(
        email=email,
        groups_to_remove=_names(product.group_client),
        tags_to_add=_names(product.tag_refund),
    )


def abandoned_cart_intent(email: str, product: ProductConfig) -> ReconciliationIntent:
    return ReconciliationIntent(
        email=email,
        groups_to_add=_names(product.group_cart_recovery),
        tags_to_add=_names(product.tag_abandoned_cart),
        skip_if_member_of=product.group_client or None,
    )


# -----------------------------
# Parsing / auth
# -----------------------------
def parse_payload(raw_body: bytes) -> KiwifyWebhookIn:
    try:
        return KiwifyWebhookIn.model_validate_json(raw_body)
    except pydantic.ValidationError as e:
        raise MalformedPayload() from e


def provided_token(headers: Mapping[str, str], payload: KiwifyWebhookIn) -> Optional[str]:
    lowered = {k.lower(): v for k, v in headers.items()}
    for name in TOKEN_HEADERS:
        if lowered.get(name):
            return lowered[name]
    if payload.token is None or payload.token == "":
        return None
    return str(payload.token)


def check_token(expected: Optional[str], provided: Optional[str]) -> None:
    if not expected:
        return
    if provided is None or not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise Unauthorized()


def extract_event(payload: KiwifyWebhookIn, token: Optional[str] = None) -> WebhookEvent:
    data = payload.data or KiwifyOrderData()
    email = data.customer_email or data.email
    if not email:
        raise MissingEmail()

    product_id = str(data.product_id) if data.product_id not in (None, "") else ""

    return WebhookEvent(
        event_type=parse_event_type(payload.event),
        raw_event_type=payload.event,
        email=email,
        full_name=data.customer_name or data.name or "",
        product_id=product_id,
        product_name=data.product_name or "",
        token=token,
    )


# -----------------------------
# Entry point
# -----------------------------
def classify(
    raw_body: bytes,
    headers: Mapping[str, str],
    *,
    catalog: ProductCatalog,
    shared_secret: Optional[str] = None,
    process_unknown: bool = False,
) -> Classification:
    """
    Kiwify webhook body -> Classification (I/O 없음).

    Raises:
        MalformedPayload: body가 JSON object가 아님
        Unauthorized: shared secret 불일치
        MissingEmail: email 필드 없음
    """
    # 1) parse
    payload = parse_payload(raw_body)

    # 2) auth
    token = provided_token(headers, payload)
    check_token(shared_secret, token)

    # 3) event fields
    event = extract_event(payload, token)

    # 4) product
    resolved = catalog.resolve(event.product_id, process_unknown=process_unknown)
    if isinstance(resolved, Suppressed):
        logger.info("Unknown product ignored: %r (event=%s)", event.product_id, event.raw_event_type)
        return Classification(outcome="suppressed", event=event, reason=resolved.reason)

    product = resolved

    # 5) event type -> intent
    if event.event_type is EventType.ORDER_APPROVED:
        intent = approved_intent(event.email, event.full_name, product)
    elif event.event_type in REFUND_EVENT_TYPES:
        intent = refund_intent(event.email, product)
    elif event.event_type is EventType.CHECKOUT_ABANDONED:
        intent = abandoned_cart_intent(event.email, product)
    else:
        logger.info("Unhandled event type: %r (email=%s)", event.raw_event_type, event.email)
        return Classification(outcome="noop", event=event, product=product, reason="unhandled_event")

    return Classification(outcome="intent", event=event, product=product, intent=intent)
