"""
Embedding service backends and batch orchestration.
"""

from .base import EmbeddingService
from .batch import generate_vectors

__all__ = [
    "EmbeddingService",
    "generate_vectors",
]
