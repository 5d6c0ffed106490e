"""
Abstract base interface for embedding services.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence


class EmbeddingService(ABC):
    """
    Converts texts into fixed-length vectors.

    Implementations must return exactly one vector per input text, in input
    order. The reconciliation engine verifies the count and refuses to index
    anything when it does not match.
    """

    @abstractmethod
    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed ``texts`` and return one vector per text, in the same order.
        """
