"""
Vector index backends.

Backends are imported by ``catalog_vectordb.factory`` only when selected, so
their SDKs load on demand.
"""

from .base import VectorIndex

__all__ = [
    "VectorIndex",
]
