"""
Execution of a reconciliation plan against the vector index and reference store.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, List, Sequence, Tuple

from .constants import ORIGIN_REFERENCE_STORE, ORIGIN_VECTOR_INDEX
from .errors import MutationApplyError
from .logging_utils import get_logger
from .models import ReconciliationPlan, VectorEntry
from .reference_store.base import ReferenceStore
from .vector_index.base import VectorIndex


logger = get_logger(__name__)

STEP_DELETE_VECTORS = "delete_vectors"
STEP_UPSERT_VECTORS = "upsert_vectors"
STEP_SAVE_REFERENCES = "save_references"


async def apply_plan(
    vector_index: VectorIndex,
    reference_store: ReferenceStore,
    tenant_id: str,
    plan: ReconciliationPlan,
    entries: Sequence[VectorEntry],
    save_references: bool = True,
) -> List[str]:
    """
    Issue the delete, upsert and reference write of ``plan`` concurrently.

    The three steps are independent: a partially applied plan shows up again
    as a diff on the next run, so nothing is rolled back. Steps with nothing
    to do are skipped. The reference write is scheduled last.

    Returns:
        The names of the steps that were executed.

    Raises:
        MutationApplyError: with every failed step once all of them settled.
    """
    steps: List[Tuple[str, str, Awaitable[None]]] = []
    if plan.vector_ids_to_delete:
        steps.append(
            (STEP_DELETE_VECTORS, ORIGIN_VECTOR_INDEX, vector_index.delete_by_ids(list(plan.vector_ids_to_delete)))
        )
    if entries:
        steps.append((STEP_UPSERT_VECTORS, ORIGIN_VECTOR_INDEX, vector_index.upsert(list(entries))))
    if save_references:
        steps.append(
            (
                STEP_SAVE_REFERENCES,
                ORIGIN_REFERENCE_STORE,
                reference_store.save_reference_set(tenant_id, plan.next_reference_set),
            )
        )

    if not steps:
        return []

    logger.info(
        "Applying plan for tenant '%s': %s",
        tenant_id,
        ", ".join(name for name, _, _ in steps),
    )
    results = await asyncio.gather(*(step for _, _, step in steps), return_exceptions=True)

    failures: List[Tuple[str, str, BaseException]] = []
    for (name, origin, _), result in zip(steps, results):
        if isinstance(result, BaseException):
            logger.error("Step '%s' failed for tenant '%s': %s", name, tenant_id, result)
            failures.append((name, origin, result))

    if failures:
        raise MutationApplyError(failures) from failures[0][2]
    return [name for name, _, _ in steps]
