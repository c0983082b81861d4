import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from kiwirelay.api.deps import directory_client, get_catalog, get_settings
from kiwirelay.core.config import Settings
from kiwirelay.core.products import ProductCatalog
from kiwirelay.integrations.mailerlite.client import DirectoryClient
from kiwirelay.services.webhook_flow import process_webhook

logger = logging.getLogger(__name__)

router = APIRouter(tags=["kiwify"])


@router.post("/webhook", response_class=PlainTextResponse)
async def kiwify_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),  # noqa: B008
    catalog: ProductCatalog = Depends(get_catalog),  # noqa: B008
    client: Optional[DirectoryClient] = Depends(directory_client),  # noqa: B008
):
    payload = await request.body()

    # MailerLite 호출은 blocking(requests)이라 threadpool에서 처리
    try:
        result = await run_in_threadpool(
            process_webhook,
            payload,
            request.headers,
            settings=settings,
            catalog=catalog,
            client=client,
        )
    except Exception:
        logger.exception("Error processing webhook")
        return PlainTextResponse("Error processing webhook", status_code=500)

    return PlainTextResponse(result.text, status_code=result.status_code)
