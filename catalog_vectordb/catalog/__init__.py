"""
Catalog sources.
"""

from .base import CatalogSource
from .http_catalog_source import HttpCatalogSource

__all__ = [
    "CatalogSource",
    "HttpCatalogSource",
]
