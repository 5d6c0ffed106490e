"""
Incremental synchronization of product catalogs into a vector index.
"""

from .diff import compute_plan
from .engine import ReconciliationEngine
from .models import (
    CatalogItem,
    ReconciliationPlan,
    ReconciliationReport,
    Reference,
    ReferenceSet,
    Tenant,
)

__all__ = [
    "CatalogItem",
    "ReconciliationEngine",
    "ReconciliationPlan",
    "ReconciliationReport",
    "Reference",
    "ReferenceSet",
    "Tenant",
    "compute_plan",
]
