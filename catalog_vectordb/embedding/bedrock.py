"""
AWS Bedrock embedding service (Amazon Titan text embeddings).
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, List, Sequence

import boto3

from ..constants import (
    BEDROCK_MAX_CONCURRENCY,
    DEFAULT_BEDROCK_EMBEDDINGS_MODEL,
    DEFAULT_EMBEDDING_DIM,
)
from ..logging_utils import get_logger
from .base import EmbeddingService


logger = get_logger(__name__)


class BedrockEmbeddingService(EmbeddingService):
    """
    Calls ``invoke_model`` once per text, at most ``max_concurrency`` at a time.

    Results keep the input order; any failed request fails the whole batch.
    """

    def __init__(
        self,
        region_name: str,
        model_id: str = DEFAULT_BEDROCK_EMBEDDINGS_MODEL,
        dimensions: int = DEFAULT_EMBEDDING_DIM,
        max_concurrency: int = BEDROCK_MAX_CONCURRENCY,
        client: Any | None = None,
    ) -> None:
        self.model_id = model_id
        self.dimensions = dimensions
        self.max_concurrency = max_concurrency
        self.client = client or boto3.client("bedrock-runtime", region_name=region_name)

    def _invoke(self, text: str) -> List[float]:
        response = self.client.invoke_model(
            modelId=self.model_id,
            contentType="application/json",
            accept="application/json",
            body=json.dumps(
                {
                    "inputText": text.strip(),
                    "dimensions": self.dimensions,
                    "normalize": True,
                }
            ),
        )
        body = response.get("body")
        if body is None:
            raise RuntimeError("Empty response from Bedrock")
        payload = json.loads(body.read())
        embedding = payload.get("embedding")
        if embedding is None:
            raise RuntimeError("Bedrock response has no 'embedding' field")
        return [float(v) for v in embedding]

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        texts_list = list(texts)
        logger.info(
            "Embedding %d texts with Bedrock model '%s' (max_concurrency=%d)",
            len(texts_list),
            self.model_id,
            self.max_concurrency,
        )

        results: List[List[float]] = []
        for batch_start in range(0, len(texts_list), self.max_concurrency):
            batch = texts_list[batch_start:batch_start + self.max_concurrency]
            vectors = await asyncio.gather(
                *(asyncio.to_thread(self._invoke, text) for text in batch)
            )
            results.extend(vectors)
        return results
