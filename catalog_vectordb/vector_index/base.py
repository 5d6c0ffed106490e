"""
Abstract base interface for vector indexes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ..models import VectorEntry


class VectorIndex(ABC):
    """
    Minimal write interface the reconciliation engine needs from an index.

    Both operations are keyed by the opaque vector id; upserting an id that is
    already present replaces its vector, deleting an unknown id is a no-op.
    """

    @abstractmethod
    async def upsert(self, entries: Sequence[VectorEntry]) -> None:
        """
        Insert or replace the given vectors.
        """

    @abstractmethod
    async def delete_by_ids(self, ids: Sequence[str]) -> None:
        """
        Remove the vectors stored under ``ids``.
        """
