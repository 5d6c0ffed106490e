"""
Milvus vector index implementation.
"""

from __future__ import annotations

import asyncio
import json
from typing import List, Sequence

import numpy as np
from pymilvus import (
    Collection,
    CollectionSchema,
    DataType,
    FieldSchema,
    connections,
    utility,
)

from ..constants import DEFAULT_UPSERT_BATCH_SIZE
from ..logging_utils import get_logger
from ..models import VectorEntry
from .base import VectorIndex


logger = get_logger(__name__)


class MilvusVectorIndex(VectorIndex):
    def __init__(
        self,
        host: str = "localhost",
        port: int = 19530,
        collection_name: str = "catalog_embeddings",
        embedding_dim: int = 1024,
        max_batch_size: int = DEFAULT_UPSERT_BATCH_SIZE,
        user: str | None = None,
        password: str | None = None,
    ):
        """
        Initialize Milvus vector index.

        Args:
            host: Milvus server host
            port: Milvus server port
            collection_name: Name of the collection holding catalog vectors
            embedding_dim: Dimension of the embedding vectors
            max_batch_size: Maximum number of vectors per upsert call
            user: Milvus username for authentication
            password: Milvus password for authentication
        """
        self.host = host
        self.port = port
        self.collection_name = collection_name
        self.embedding_dim = embedding_dim
        self.max_batch_size = max_batch_size

        connect_params = {
            "alias": "default",
            "host": host,
            "port": port,
        }
        if user and password:
            connect_params["user"] = user
            connect_params["password"] = password

        connections.connect(**connect_params)
        self.collection = self._ensure_collection()

    def _ensure_collection(self) -> Collection:
        """Create collection if it doesn't exist, otherwise return existing collection."""
        if utility.has_collection(self.collection_name):
            logger.info("Using existing Milvus collection '%s'", self.collection_name)
            return Collection(self.collection_name)

        logger.info("Creating new Milvus collection '%s'", self.collection_name)
        fields = [
            FieldSchema(name="id", dtype=DataType.VARCHAR, is_primary=True, max_length=100),
            FieldSchema(name="payload", dtype=DataType.VARCHAR, max_length=65535),
            FieldSchema(name="embedding", dtype=DataType.FLOAT_VECTOR, dim=self.embedding_dim),
        ]
        schema = CollectionSchema(fields=fields, description="Catalog item embeddings")
        collection = Collection(name=self.collection_name, schema=schema)
        collection.create_index(
            field_name="embedding",
            index_params={
                "metric_type": "COSINE",
                "index_type": "IVF_FLAT",
                "params": {"nlist": 1024},
            },
        )
        logger.info("Created index on embedding field")
        return collection

    def _upsert_sync(self, entries: List[VectorEntry]) -> None:
        total = len(entries)
        logger.info(
            "Upserting %d vectors into Milvus collection '%s' at %s:%d (max_batch_size=%d)",
            total,
            self.collection_name,
            self.host,
            self.port,
            self.max_batch_size,
        )
        for batch_start in range(0, total, self.max_batch_size):
            batch = entries[batch_start:batch_start + self.max_batch_size]
            # Field order: [ids, payloads, embeddings]
            data = [
                [entry.id for entry in batch],
                [json.dumps(entry.metadata, ensure_ascii=False) for entry in batch],
                [np.asarray(entry.vector, dtype=np.float32).tolist() for entry in batch],
            ]
            self.collection.upsert(data)
        self.collection.flush()

    def _delete_sync(self, ids: List[str]) -> None:
        logger.info("Deleting %d vectors from Milvus collection '%s'", len(ids), self.collection_name)
        for batch_start in range(0, len(ids), self.max_batch_size):
            batch = ids[batch_start:batch_start + self.max_batch_size]
            self.collection.delete(expr=f"id in {json.dumps(batch)}")
        self.collection.flush()

    async def upsert(self, entries: Sequence[VectorEntry]) -> None:
        if not entries:
            return
        await asyncio.to_thread(self._upsert_sync, list(entries))

    async def delete_by_ids(self, ids: Sequence[str]) -> None:
        if not ids:
            return
        await asyncio.to_thread(self._delete_sync, list(ids))
