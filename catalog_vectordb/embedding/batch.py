"""
Turns the embed requests of a plan into vector index entries.
"""

from __future__ import annotations

from typing import List, Sequence

from ..errors import EmbeddingAlignmentError
from ..logging_utils import get_logger
from ..models import EmbedRequest, VectorEntry
from .base import EmbeddingService


logger = get_logger(__name__)


async def generate_vectors(
    service: EmbeddingService,
    requests: Sequence[EmbedRequest],
    tenant_id: str | None = None,
) -> List[VectorEntry]:
    """
    Embed ``requests`` with a single batch call and pair vectors back by position.

    Raises:
        EmbeddingAlignmentError: if the service returned a different number of
            vectors than texts were sent. Nothing must be indexed in that case,
            since a shifted list would attach vectors to the wrong items.
    """
    if not requests:
        return []

    texts = [request.text for request in requests]
    logger.info("Requesting embeddings for %d catalog items", len(texts))
    vectors = await service.embed_batch(texts)

    if len(vectors) != len(requests):
        raise EmbeddingAlignmentError(expected=len(requests), received=len(vectors))

    entries: List[VectorEntry] = []
    for request, vector in zip(requests, vectors):
        metadata = {"item_id": request.item_id}
        if tenant_id is not None:
            metadata["tenant_id"] = tenant_id
        entries.append(
            VectorEntry(
                id=request.vector_id,
                vector=[float(v) for v in vector],
                metadata=metadata,
            )
        )
    return entries
