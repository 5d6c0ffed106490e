"""
Embedding service wrapping Sentence Transformers.
"""

from __future__ import annotations

import asyncio
from typing import List, Sequence

import numpy as np
from sentence_transformers import SentenceTransformer

from ..logging_utils import get_logger
from .base import EmbeddingService


logger = get_logger(__name__)


class SentenceTransformerEmbeddingService(EmbeddingService):
    """
    Local SentenceTransformer model with lazy loading.

    Encoding is CPU/GPU bound, so it runs in a worker thread to keep the event
    loop free for the other collaborator calls of the run.
    """

    def __init__(
        self,
        model_name: str,
        batch_size: int = 32,
        device: str | None = None,
        normalize: bool = True,
    ) -> None:
        self.model_name = model_name
        self.batch_size = batch_size
        self.device = device
        self.normalize = normalize
        self._model: SentenceTransformer | None = None

    @property
    def model(self) -> SentenceTransformer:
        if self._model is None:
            logger.info("Loading embedding model '%s'...", self.model_name)
            self._model = SentenceTransformer(self.model_name, device=self.device)
            logger.info("Model loaded.")
        return self._model

    def encode(self, texts: Sequence[str]) -> np.ndarray:
        texts_list: List[str] = list(texts)
        logger.info("Encoding %d texts into embeddings", len(texts_list))
        return self.model.encode(
            texts_list,
            batch_size=self.batch_size,
            convert_to_numpy=True,
            normalize_embeddings=self.normalize,
            show_progress_bar=False,
        )

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        embeddings = await asyncio.to_thread(self.encode, texts)
        return np.asarray(embeddings, dtype=np.float32).tolist()
