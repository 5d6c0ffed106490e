"""
Domain records shared by the reconciliation engine and its collaborators.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple


def compute_content_hash(text: str) -> str:
    """SHA-256 hex digest of the UTF-8 encoded text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CatalogItem:
    item_id: str
    name: str = ""
    name_es: str = ""
    short_description: str = ""
    description: str = ""
    sku: str = ""
    unit_price: float = 0.0
    weight: float = 0.0
    time_to_serve: int = 0

    @property
    def embed_text(self) -> str:
        """Text sent to the embedding service.

        Only the descriptive fields take part; sku, price, weight and
        fulfillment time never change what gets embedded.
        """
        return f"{self.name} {self.name_es} {self.short_description} {self.description}"

    @property
    def content_hash(self) -> str:
        # Derived from embed_text so equal hashes mean equal embedding input.
        return compute_content_hash(self.embed_text)

    @property
    def is_tangible(self) -> bool:
        return self.time_to_serve == 0


def filter_by_max_price(items: Iterable[CatalogItem], max_price: float) -> List[CatalogItem]:
    return [item for item in items if item.unit_price <= max_price]


@dataclass(frozen=True)
class Tenant:
    """An ecommerce as reported by the catalog source."""

    tenant_id: str
    commercial_activity_id: str = ""
    jurisdiction_id: str = ""
    promotion_name: str = ""
    promotion_percentage: str = ""


@dataclass(frozen=True)
class Reference:
    vector_id: str
    content_hash: str

    def to_dict(self) -> Dict[str, str]:
        return {"vector_id": self.vector_id, "hash": self.content_hash}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Reference":
        vector_id = raw["vector_id"] if "vector_id" in raw else raw["vectorId"]
        return cls(vector_id=str(vector_id), content_hash=str(raw["hash"]))


class ReferenceSet:
    """
    Mapping of catalog item id to the Reference currently indexed for it.

    Only membership matters: two sets are equal when they hold the same item
    ids mapped to the same references, whatever order they were built in.
    """

    def __init__(self, references: Optional[Mapping[str, Reference]] = None) -> None:
        self._references: Dict[str, Reference] = dict(references or {})

    def get(self, item_id: str) -> Optional[Reference]:
        return self._references.get(item_id)

    def set(self, item_id: str, reference: Reference) -> None:
        self._references[item_id] = reference

    def remove(self, item_id: str) -> bool:
        return self._references.pop(item_id, None) is not None

    def item_ids(self) -> frozenset:
        return frozenset(self._references)

    def vector_ids(self) -> List[str]:
        return [ref.vector_id for ref in self._references.values()]

    def items(self) -> Iterator[Tuple[str, Reference]]:
        return iter(self._references.items())

    def copy(self) -> "ReferenceSet":
        return ReferenceSet(self._references)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._references

    def __len__(self) -> int:
        return len(self._references)

    def __iter__(self) -> Iterator[str]:
        return iter(self._references)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReferenceSet):
            return NotImplemented
        return self._references == other._references

    def __repr__(self) -> str:
        return f"ReferenceSet({len(self._references)} references)"

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {item_id: ref.to_dict() for item_id, ref in sorted(self._references.items())}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Mapping[str, Any]]) -> "ReferenceSet":
        return cls({str(item_id): Reference.from_dict(ref) for item_id, ref in raw.items()})


@dataclass(frozen=True)
class EmbedRequest:
    item_id: str
    vector_id: str
    text: str


@dataclass
class ReconciliationPlan:
    to_embed_and_upsert: List[EmbedRequest] = field(default_factory=list)
    vector_ids_to_delete: List[str] = field(default_factory=list)
    next_reference_set: ReferenceSet = field(default_factory=ReferenceSet)
    unchanged: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.to_embed_and_upsert and not self.vector_ids_to_delete


@dataclass
class VectorEntry:
    id: str
    vector: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)


class RunState(str, Enum):
    FETCHING = "fetching"
    VALIDATING = "validating"
    DIFFING = "diffing"
    EMBEDDING = "embedding"
    APPLYING = "applying"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ReconciliationReport:
    tenant_id: str
    state: RunState
    catalog_size: int
    embedded: int
    deleted: int
    unchanged: int
    references_saved: bool
    elapsed_seconds: float = 0.0
