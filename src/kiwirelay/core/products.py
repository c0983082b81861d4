from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

logger = logging.getLogger(__name__)

# 상품 설정은 group/tag 이름 묶음 + fallback 여부까지 필요해서 dataclass로 다룸
# 프로세스 시작 시 한 번 만들고 이후엔 읽기만 한다.


@dataclass(frozen=True)
class ProductConfig:
    product_id: str
    display_name: str
    group_client: str
    group_cart_recovery: str
    tag_bought: str
    tag_refund: str
    tag_abandoned_cart: str
    is_unknown_fallback: bool = False


@dataclass(frozen=True)
class Suppressed:
    """에러는 아니지만 원격 변경을 하지 않는 결과."""

    reason: str


# 실제 상품 (Kiwify product id -> MailerLite group/tag 이름)
KNOWN_PRODUCTS: tuple[ProductConfig, ...] = (
    ProductConfig(
        product_id="5fade7e0-f9ee-11ef-af9f-2d476897d216",
        display_name="Planner Inglês em 30 dias",
        group_client="Cliente - Planner Inglês em 30 dias",
        group_cart_recovery="Carrinho Abandonado - Planner Inglês em 30 dias",
        tag_bought="comprou_planner_ingles_30_dias",
        tag_refund="refund_planner_ingles_30_dias",
        tag_abandoned_cart="abandonou_carrinho_planner_ingles_30_dias",
    ),
    ProductConfig(
        product_id="d801b010-cac6-11f0-921a-c7290f9eeec5",
        display_name="Guia do Poliglota",
        group_client="Cliente - Guia do Poliglota",
        group_cart_recovery="Carrinho Abandonado - Guia do Poliglota",
        tag_bought="comprou_guia_do_poliglota",
        tag_refund="refund_guia_do_poliglota",
        tag_abandoned_cart="abandonou_carrinho_guia_do_poliglota",
    ),
)

UNKNOWN_PRODUCT = ProductConfig(
    product_id="",
    display_name="Produto Desconhecido",
    group_client="Clientes – Outros",
    group_cart_recovery="Recuperação Carrinho – Outros",
    tag_bought="comprou_produto_desconhecido",
    tag_refund="refund_produto_desconhecido",
    tag_abandoned_cart="abandonou_carrinho_desconhecido",
    is_unknown_fallback=True,
)

UNKNOWN_PRODUCT_SUPPRESSED = Suppressed(reason="unknown_product")


@dataclass(frozen=True)
class ProductCatalog:
    products: Mapping[str, ProductConfig]
    fallback: ProductConfig = field(default=UNKNOWN_PRODUCT)

    @classmethod
    def from_configs(
        cls,
        configs: Iterable[ProductConfig],
        fallback: ProductConfig = UNKNOWN_PRODUCT,
    ) -> ProductCatalog:
        table = {c.product_id: c for c in configs}
        return cls(products=MappingProxyType(table), fallback=fallback)

    def lookup(self, product_id: str) -> ProductConfig:
        return self.products.get(product_id, self.fallback)

    def resolve(self, product_id: str, *, process_unknown: bool) -> ProductConfig | Suppressed:
        # total function: 항상 config 또는 Suppressed
        cfg = self.lookup(product_id)
        if cfg.is_unknown_fallback and not process_unknown:
            return UNKNOWN_PRODUCT_SUPPRESSED
        return cfg


DEFAULT_CATALOG: ProductCatalog = ProductCatalog.from_configs(KNOWN_PRODUCTS)


def _config_from_dict(raw: dict, *, fallback: bool = False) -> ProductConfig:
    return ProductConfig(
        product_id=str(raw.get("product_id") or ""),
        display_name=raw["display_name"],
        group_client=raw["group_client"],
        group_cart_recovery=raw["group_cart_recovery"],
        tag_bought=raw["tag_bought"],
        tag_refund=raw["tag_refund"],
        tag_abandoned_cart=raw["tag_abandoned_cart"],
        is_unknown_fallback=fallback,
    )


def load_catalog_file(path: str | Path) -> ProductCatalog:
    """
    JSON 파일에서 카탈로그 로드.

    형식: {"products": [{...}, ...], "fallback": {...}}
    fallback이 없으면 기본 UNKNOWN_PRODUCT 사용.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))

    configs = [_config_from_dict(p) for p in data.get("products", [])]
    fallback_raw = data.get("fallback")
    fallback = _config_from_dict(fallback_raw, fallback=True) if fallback_raw else UNKNOWN_PRODUCT

    return ProductCatalog.from_configs(configs, fallback=fallback)


def build_catalog(catalog_file: str | None = None) -> ProductCatalog:
    if catalog_file:
        catalog = load_catalog_file(catalog_file)
        logger.info("Product catalog loaded from %s (%d products)", catalog_file, len(catalog.products))
        return catalog
    return DEFAULT_CATALOG
