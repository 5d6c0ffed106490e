"""
ChromaDB vector index implementation.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Sequence

import chromadb

from ..constants import DEFAULT_UPSERT_BATCH_SIZE
from ..logging_utils import get_logger
from ..models import VectorEntry
from .base import VectorIndex


logger = get_logger(__name__)


def _flatten_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
    # ChromaDB only supports flat primitive metadata values.
    return {
        key: value if isinstance(value, (str, int, float, bool)) else str(value)
        for key, value in metadata.items()
        if value is not None
    }


class ChromaVectorIndex(VectorIndex):
    def __init__(
        self,
        path: str,
        collection_name: str = "catalog_embeddings",
        max_batch_size: int = DEFAULT_UPSERT_BATCH_SIZE,
        client: Any | None = None,
    ):
        self.path = path
        self.collection_name = collection_name
        self.max_batch_size = max_batch_size
        self.client = client or chromadb.PersistentClient(path=path)
        self.collection = self.client.get_or_create_collection(name=collection_name)

    def _upsert_sync(self, entries: List[VectorEntry]) -> None:
        total = len(entries)
        logger.info(
            "Upserting %d vectors into Chroma collection '%s' (max_batch_size=%d)",
            total,
            self.collection_name,
            self.max_batch_size,
        )
        for batch_start in range(0, total, self.max_batch_size):
            batch = entries[batch_start:batch_start + self.max_batch_size]
            kwargs: Dict[str, Any] = {
                "ids": [entry.id for entry in batch],
                "embeddings": [list(entry.vector) for entry in batch],
            }
            if any(entry.metadata for entry in batch):
                kwargs["metadatas"] = [_flatten_metadata(entry.metadata) for entry in batch]
            self.collection.upsert(**kwargs)

    def _delete_sync(self, ids: List[str]) -> None:
        logger.info("Deleting %d vectors from Chroma collection '%s'", len(ids), self.collection_name)
        for batch_start in range(0, len(ids), self.max_batch_size):
            self.collection.delete(ids=ids[batch_start:batch_start + self.max_batch_size])

    async def upsert(self, entries: Sequence[VectorEntry]) -> None:
        if not entries:
            return
        await asyncio.to_thread(self._upsert_sync, list(entries))

    async def delete_by_ids(self, ids: Sequence[str]) -> None:
        if not ids:
            return
        await asyncio.to_thread(self._delete_sync, list(ids))
