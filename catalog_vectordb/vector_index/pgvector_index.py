"""
pgvector-backed PostgreSQL vector index.
"""

from __future__ import annotations

import asyncio
import json
from typing import List, Sequence

import numpy as np
import psycopg2
from psycopg2.extras import execute_values

from ..constants import DEFAULT_UPSERT_BATCH_SIZE
from ..logging_utils import get_logger
from ..models import VectorEntry
from .base import VectorIndex


logger = get_logger(__name__)


class PgVectorIndex(VectorIndex):
    def __init__(
        self,
        dsn: str,
        table_name: str,
        embedding_dim: int,
        max_batch_size: int = DEFAULT_UPSERT_BATCH_SIZE,
        ensure_schema: bool = True,
    ) -> None:
        self.dsn = dsn
        self.table_name = table_name
        self.embedding_dim = embedding_dim
        self.max_batch_size = max_batch_size
        if ensure_schema:
            self._ensure_schema()

    def _ensure_schema(self) -> None:
        conn = psycopg2.connect(self.dsn)
        conn.autocommit = True
        cur = conn.cursor()
        logger.info("Ensuring pgvector extension and table '%s' exist", self.table_name)
        cur.execute("CREATE EXTENSION IF NOT EXISTS vector;")
        cur.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table_name} (
                id TEXT PRIMARY KEY,
                payload JSONB,
                embedding vector({self.embedding_dim}) NOT NULL
            );
            """
        )
        cur.close()
        conn.close()

    def _upsert_sync(self, entries: List[VectorEntry]) -> None:
        logger.info(
            "Upserting %d vectors into table '%s' via pgvector",
            len(entries),
            self.table_name,
        )
        records = [
            (
                entry.id,
                json.dumps(entry.metadata),
                # pgvector accepts the '[x,y,...]' text form for vector columns
                str(np.asarray(entry.vector, dtype=float).tolist()),
            )
            for entry in entries
        ]

        conn = psycopg2.connect(self.dsn)
        try:
            cur = conn.cursor()
            execute_values(
                cur,
                f"""
                INSERT INTO {self.table_name} (id, payload, embedding) VALUES %s
                ON CONFLICT (id) DO UPDATE
                SET payload = EXCLUDED.payload, embedding = EXCLUDED.embedding
                """,
                records,
                page_size=self.max_batch_size,
            )
            conn.commit()
            cur.close()
        finally:
            conn.close()

    def _delete_sync(self, ids: List[str]) -> None:
        logger.info("Deleting %d vectors from table '%s'", len(ids), self.table_name)
        conn = psycopg2.connect(self.dsn)
        try:
            cur = conn.cursor()
            cur.execute(f"DELETE FROM {self.table_name} WHERE id = ANY(%s)", (ids,))
            conn.commit()
            cur.close()
        finally:
            conn.close()

    async def upsert(self, entries: Sequence[VectorEntry]) -> None:
        if not entries:
            return
        await asyncio.to_thread(self._upsert_sync, list(entries))

    async def delete_by_ids(self, ids: Sequence[str]) -> None:
        if not ids:
            return
        await asyncio.to_thread(self._delete_sync, list(ids))
