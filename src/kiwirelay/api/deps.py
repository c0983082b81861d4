from collections.abc import Generator
from functools import lru_cache
from typing import Optional

from fastapi import Depends

from kiwirelay.core.config import Settings, settings
from kiwirelay.core.products import ProductCatalog, build_catalog
from kiwirelay.integrations.mailerlite.client import DirectoryClient, MailerLiteClient


def get_settings() -> Settings:
    return settings


@lru_cache(maxsize=1)
def get_catalog() -> ProductCatalog:
    """FastAPI dependency: 시작 시 한 번 만든 read-only 상품 카탈로그"""
    return build_catalog(settings.product_catalog_file)


def directory_client(s: Settings = Depends(get_settings)) -> Generator[Optional[DirectoryClient], None, None]:  # noqa: B008
    """FastAPI dependency: 요청 단위 MailerLite client. API key가 없으면 None."""
    if not s.api_key:
        yield None
        return

    client = MailerLiteClient.from_settings(s)
    try:
        yield client
    finally:
        client.close()
