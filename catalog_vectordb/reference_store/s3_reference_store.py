"""
AWS S3-based reference store.

Each tenant's reference document is a JSON object stored at
``{prefix}{tenant_id}.json``.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from ..logging_utils import get_logger
from ..models import ReferenceSet
from .base import ReferenceStore
from .document import from_document, to_document


logger = get_logger(__name__)

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


class S3ReferenceStore(ReferenceStore):
    def __init__(
        self,
        bucket_name: str,
        region_name: str,
        references_prefix: str = "references/",
        client: Any | None = None,
    ) -> None:
        self.bucket_name = bucket_name
        self.references_prefix = references_prefix.rstrip("/") + "/"
        self.s3 = client or boto3.client("s3", region_name=region_name)

    def key_for(self, tenant_id: str) -> str:
        return f"{self.references_prefix}{tenant_id}.json"

    def _load_document(self, tenant_id: str) -> Optional[dict]:
        key = self.key_for(tenant_id)
        logger.info("Loading reference document from s3://%s/%s", self.bucket_name, key)
        try:
            obj = self.s3.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES:
                logger.info("No reference document for tenant '%s'; starting fresh.", tenant_id)
                return None
            raise
        return json.loads(obj["Body"].read().decode("utf-8"))

    def _save_document(self, tenant_id: str, reference_set: ReferenceSet) -> None:
        key = self.key_for(tenant_id)
        created_at = None
        existing = self._load_document(tenant_id)
        if existing:
            created_at = existing.get("createdAt")

        payload = json.dumps(to_document(tenant_id, reference_set, created_at=created_at)).encode("utf-8")
        logger.info(
            "Saving reference document with %d references to s3://%s/%s",
            len(reference_set),
            self.bucket_name,
            key,
        )
        self.s3.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=payload,
            ContentType="application/json",
        )

    async def find_reference_set(self, tenant_id: str) -> Optional[ReferenceSet]:
        document = await asyncio.to_thread(self._load_document, tenant_id)
        if document is None:
            return None
        return from_document(document)

    async def save_reference_set(self, tenant_id: str, reference_set: ReferenceSet) -> None:
        await asyncio.to_thread(self._save_document, tenant_id, reference_set)
