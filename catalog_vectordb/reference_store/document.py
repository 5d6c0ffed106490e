"""
Serialization of a ReferenceSet to the stored "ecommerce config" document.

    {
        "pk": "ECOMMERCE_CONFIG",
        "sk": "<tenant id>",
        "references": {"<item id>": {"vector_id": "...", "hash": "..."}},
        "createdAt": "<iso timestamp>",
        "updatedAt": "<iso timestamp>"
    }
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from ..constants import REFERENCE_DOCUMENT_PK
from ..models import ReferenceSet


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_document(
    tenant_id: str,
    reference_set: ReferenceSet,
    created_at: Optional[str] = None,
    updated_at: Optional[str] = None,
) -> Dict[str, Any]:
    now = updated_at or utc_now_iso()
    return {
        "pk": REFERENCE_DOCUMENT_PK,
        "sk": tenant_id,
        "references": reference_set.to_dict(),
        "createdAt": created_at or now,
        "updatedAt": now,
    }


def from_document(document: Mapping[str, Any]) -> ReferenceSet:
    """
    Parse a stored document. A document without references is an empty set.

    Raises:
        ValueError: if ``references`` is not a mapping or an entry lacks its
            vector id or hash.
    """
    raw = document.get("references") or {}
    # Older documents stored references as a list of [item_id, reference] pairs.
    if isinstance(raw, list):
        try:
            raw = {item_id: ref for item_id, ref in raw}
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Malformed reference list: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ValueError(f"Malformed references field of type {type(raw).__name__}")
    try:
        return ReferenceSet.from_dict(raw)
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Malformed reference entry: {exc!r}") from exc
