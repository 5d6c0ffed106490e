"""
Catalog/reference diff.

``compute_plan`` is pure: it takes the current catalog and the stored
ReferenceSet and decides what has to be embedded, what has to be deleted from
the vector index and what the reference document should look like afterwards.
The only non-deterministic input, vector id generation, is injected.
"""

from __future__ import annotations

import uuid
from typing import Callable, Dict, Iterable

from .logging_utils import get_logger
from .models import CatalogItem, EmbedRequest, ReconciliationPlan, Reference, ReferenceSet


logger = get_logger(__name__)

IdGenerator = Callable[[], str]


def uuid4_id_generator() -> str:
    return str(uuid.uuid4())


def compute_plan(
    catalog: Iterable[CatalogItem],
    references: ReferenceSet,
    id_generator: IdGenerator = uuid4_id_generator,
) -> ReconciliationPlan:
    """
    Compute the mutations that bring the index and reference set in line with the catalog.

    - unchanged items (same id, same content hash) keep their reference;
    - new or modified items get a fresh vector id and are queued for embedding,
      and the vector previously indexed for a modified item is queued for deletion;
    - items that left the catalog have their vector queued for deletion and are
      dropped from the next reference set.

    Args:
        catalog: Current catalog items. When an item id repeats, the last one wins.
        references: ReferenceSet loaded from the reference store (never mutated).
        id_generator: Callable returning a fresh, never reused vector id.

    Returns:
        The ReconciliationPlan for this (catalog, references) pair.
    """
    current: Dict[str, CatalogItem] = {}
    for item in catalog:
        current[item.item_id] = item

    plan = ReconciliationPlan(next_reference_set=ReferenceSet())

    for item_id, item in current.items():
        content_hash = item.content_hash
        existing = references.get(item_id)

        if existing is not None and existing.content_hash == content_hash:
            plan.next_reference_set.set(item_id, existing)
            plan.unchanged += 1
            continue

        if existing is not None:
            # Superseded content must not stay indexed under the item.
            plan.vector_ids_to_delete.append(existing.vector_id)

        vector_id = id_generator()
        plan.to_embed_and_upsert.append(
            EmbedRequest(item_id=item_id, vector_id=vector_id, text=item.embed_text)
        )
        plan.next_reference_set.set(item_id, Reference(vector_id=vector_id, content_hash=content_hash))

    for item_id, reference in references.items():
        if item_id not in current:
            plan.vector_ids_to_delete.append(reference.vector_id)

    logger.debug(
        "Computed plan: %d to embed, %d to delete, %d unchanged",
        len(plan.to_embed_and_upsert),
        len(plan.vector_ids_to_delete),
        plan.unchanged,
    )
    return plan
