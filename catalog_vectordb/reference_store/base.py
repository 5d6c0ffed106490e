"""
Abstract base interface for reference stores.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..models import ReferenceSet


class ReferenceStore(ABC):
    """
    Durable record of which vector id is indexed for which catalog item.

    One document per tenant. Writes always overwrite the whole document.
    """

    @abstractmethod
    async def find_reference_set(self, tenant_id: str) -> Optional[ReferenceSet]:
        """
        Return the stored ReferenceSet, or None when the tenant has no document yet.
        """

    @abstractmethod
    async def save_reference_set(self, tenant_id: str, reference_set: ReferenceSet) -> None:
        """
        Persist ``reference_set`` as the tenant's full reference document.
        """
