"""
Abstract base interface for catalog sources.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import CatalogItem, Tenant


class CatalogSource(ABC):
    """
    Read access to the external product catalog.
    """

    @abstractmethod
    async def fetch_tenant(self, tenant_id: str) -> Optional[Tenant]:
        """
        Return the tenant, or None when the source does not know it.
        """

    @abstractmethod
    async def fetch_catalog_items(self, tenant_id: str) -> List[CatalogItem]:
        """
        Return every indexable catalog item of the tenant. An empty list is a
        valid answer and is different from an unknown tenant.
        """
