"""
Catalog source backed by the ecommerce metadata HTTP API.

Every endpoint answers with an envelope ``{"status": bool, "error": str, "body": {...}}``:

    GET {base_url}?web_ids={tenant_id}  -> body.websites
    GET {base_url}?product={tenant_id}  -> body.products
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import httpx

from ..constants import DISABLED_PRODUCT_STATUSES
from ..logging_utils import get_logger
from ..models import CatalogItem, Tenant
from .base import CatalogSource


logger = get_logger(__name__)


class CatalogApiError(RuntimeError):
    """The metadata API answered with ``status: false`` or an unusable body."""


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def is_indexable_product(product: Mapping[str, Any]) -> bool:
    """Soft-deleted, status-less and disabled products are left out of the catalog."""
    if product.get("deleted_at") or not product.get("status"):
        return False
    return str(product["status"]).lower() not in DISABLED_PRODUCT_STATUSES


def map_product(product: Mapping[str, Any]) -> CatalogItem:
    return CatalogItem(
        item_id=str(product["product_id"]),
        name=product.get("name") or "",
        name_es=product.get("name_es") or "",
        short_description=product.get("short_description") or "",
        description=product.get("description") or "",
        sku=product.get("sku") or "",
        unit_price=_to_float(product.get("unit_price")),
        weight=_to_float(product.get("weight")),
        time_to_serve=_to_int(product.get("time_to_serve")),
    )


def map_website(website: Mapping[str, Any]) -> Tenant:
    return Tenant(
        tenant_id=str(website["website_id"]),
        commercial_activity_id=str(website.get("commercial_activity_id") or ""),
        jurisdiction_id=str(website.get("jurisdiction_id") or ""),
        promotion_name=website.get("promo_name") or "",
        promotion_percentage=str(website.get("promo_percent") or ""),
    )


class HttpCatalogSource(CatalogSource):
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.headers = headers or {"Content-Type": "application/json"}
        self._transport = transport

    async def _fetch(self, params: Dict[str, str]) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers=self.headers,
            transport=self._transport,
        ) as client:
            response = await client.get(self.base_url, params=params)
            response.raise_for_status()
            data = response.json()

        if not data.get("status"):
            raise CatalogApiError(data.get("error") or "Catalog API returned error status")
        body = data.get("body")
        if not isinstance(body, dict):
            raise CatalogApiError("Catalog API response has no body")
        return body

    async def fetch_tenant(self, tenant_id: str) -> Optional[Tenant]:
        body = await self._fetch({"web_ids": tenant_id})
        websites = body.get("websites") or []
        if not websites:
            logger.info("Catalog API does not know ecommerce '%s'", tenant_id)
            return None
        return map_website(websites[0])

    async def fetch_catalog_items(self, tenant_id: str) -> List[CatalogItem]:
        body = await self._fetch({"product": tenant_id})
        products = body.get("products") or []
        items = [map_product(p) for p in products if is_indexable_product(p)]
        logger.info(
            "Fetched %d catalog items for ecommerce '%s' (%d filtered out)",
            len(items),
            tenant_id,
            len(products) - len(items),
        )
        return items
