import logging

from fastapi import FastAPI

from kiwirelay.api.deps import get_catalog
from kiwirelay.api.v1.routers.kiwify_webhook import router as kiwify_router
from kiwirelay.api.v1.routers.liveness import router as liveness_router
from kiwirelay.core.config import settings
from kiwirelay.core.logging import configure_logging

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="kiwirelay", version="0.1.0")
app.include_router(kiwify_router)
app.include_router(liveness_router)  # catch-all, 항상 마지막


@app.on_event("startup")
def validate_settings() -> None:
    catalog = get_catalog()
    logger.info(
        "kiwirelay ready: %d products, unknown=%s, dry_run=%s, tags=%s",
        len(catalog.products),
        settings.process_unknown_products,
        settings.mailerlite_dry_run,
        settings.use_tags,
    )
    if not settings.api_key:
        # 요청마다 500을 돌려주지만 기동은 막지 않음
        logger.error("MAILERLITE_API_KEY is missing. Check your .env file.")
