"""
MongoDB reference store.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from pymongo import MongoClient
from pymongo.collection import Collection

from ..constants import REFERENCE_DOCUMENT_PK
from ..logging_utils import get_logger
from ..models import ReferenceSet
from .base import ReferenceStore
from .document import from_document, to_document


logger = get_logger(__name__)


class MongoReferenceStore(ReferenceStore):
    def __init__(
        self,
        uri: str,
        database_name: str = "catalog_vectordb",
        collection_name: str = "ecommerce_configs",
        client: Any | None = None,
    ):
        """
        Initialize MongoDB reference store.

        Args:
            uri: MongoDB connection string
            database_name: Database name
            collection_name: Collection holding one document per tenant
            client: Optional pre-built MongoClient
        """
        self.uri = uri
        self.database_name = database_name
        self.collection_name = collection_name

        self.client = client or MongoClient(self.uri)
        self.db = self.client[self.database_name]
        self.collection: Collection = self.db[self.collection_name]

        logger.info(
            "Connected to MongoDB database '%s', collection '%s'",
            self.database_name,
            self.collection_name,
        )

    @staticmethod
    def _key(tenant_id: str) -> dict:
        return {"pk": REFERENCE_DOCUMENT_PK, "sk": tenant_id}

    def _find_sync(self, tenant_id: str) -> Optional[dict]:
        return self.collection.find_one(self._key(tenant_id), projection={"_id": False})

    def _save_sync(self, tenant_id: str, reference_set: ReferenceSet) -> None:
        document = to_document(tenant_id, reference_set)
        created_at = document.pop("createdAt")
        logger.info(
            "Saving reference document with %d references for tenant '%s'",
            len(reference_set),
            tenant_id,
        )
        # Full overwrite of the references; createdAt is kept from the first save.
        self.collection.update_one(
            self._key(tenant_id),
            {"$set": document, "$setOnInsert": {"createdAt": created_at}},
            upsert=True,
        )

    async def find_reference_set(self, tenant_id: str) -> Optional[ReferenceSet]:
        document = await asyncio.to_thread(self._find_sync, tenant_id)
        if document is None:
            return None
        return from_document(document)

    async def save_reference_set(self, tenant_id: str, reference_set: ReferenceSet) -> None:
        await asyncio.to_thread(self._save_sync, tenant_id, reference_set)
