from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from kiwirelay.core.config import Settings
from kiwirelay.core.errors import ConfigError, ReconcileError, Unauthorized, ValidationError
from kiwirelay.core.products import ProductCatalog
from kiwirelay.integrations.mailerlite.client import DirectoryClient
from kiwirelay.services.cart_guard import guard_allows
from kiwirelay.services.classifier import classify
from kiwirelay.services.reconciler import ReconcileReport, reconcile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookResponse:
    status_code: int
    text: str
    report: Optional[ReconcileReport] = None


PROCESSED = "Webhook processed"


def process_webhook(
    raw_body: bytes,
    headers: Mapping[str, str],
    *,
    settings: Settings,
    catalog: ProductCatalog,
    client: Optional[DirectoryClient],
) -> WebhookResponse:
    """
    Kiwify webhook 1건 처리: classify -> (cart guard) -> reconcile.
    응답은 항상 status code + 짧은 text. 예상 못한 예외는 호출자(route)가 500으로 바꾼다.
    """
    try:
        if client is None:
            raise ConfigError("Missing MAILERLITE_API_KEY")

        result = classify(
            raw_body,
            headers,
            catalog=catalog,
            shared_secret=settings.shared_secret,
            process_unknown=settings.process_unknown_products,
        )
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return WebhookResponse(500, str(e))
    except Unauthorized:
        logger.warning("Webhook rejected: token mismatch")
        return WebhookResponse(401, "Unauthorized")
    except ValidationError as e:
        logger.warning("Webhook rejected: %s", e)
        return WebhookResponse(400, str(e))

    if result.outcome == "suppressed":
        return WebhookResponse(202, "Ignored unknown product")

    if result.outcome == "noop" or result.intent is None:
        return WebhookResponse(200, PROCESSED)

    intent = result.intent
    logger.info(
        "Event %s for %s (product=%s)",
        result.event.event_type.value,
        intent.email,
        result.product.display_name if result.product else "-",
    )

    # checkout.abandoned: 이미 client group이면 아무것도 안 함
    if not guard_allows(client, intent):
        return WebhookResponse(200, PROCESSED)

    try:
        report = reconcile(
            intent,
            client,
            dry_run=settings.mailerlite_dry_run,
            use_tags=settings.use_tags,
        )
    except ReconcileError as e:
        # subscriber를 못 만들면 중단. sender에게는 200 유지 (재시도 없음)
        logger.error("Reconcile aborted: %s", e)
        return WebhookResponse(200, PROCESSED)

    return WebhookResponse(200, PROCESSED, report=report)
