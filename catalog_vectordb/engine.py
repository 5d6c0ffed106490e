"""
Reconciliation engine.

A run moves through FETCHING -> VALIDATING -> DIFFING -> EMBEDDING (only when
something changed) -> APPLYING -> DONE. Any error ends the run in FAILED and is
raised to the caller with the state it happened in; the engine never retries.

Two runs for the same tenant must not overlap: the second one would diff
against a stale reference document and overwrite the first one's writes.
Callers serialize runs per tenant (see ``single_flight.SingleFlight``).
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, List, Optional, Tuple, TypeVar

from .apply import STEP_SAVE_REFERENCES, apply_plan
from .catalog.base import CatalogSource
from .constants import (
    ORIGIN_CATALOG_SOURCE,
    ORIGIN_EMBEDDING_SERVICE,
    ORIGIN_REFERENCE_STORE,
)
from .diff import IdGenerator, compute_plan, uuid4_id_generator
from .embedding.base import EmbeddingService
from .embedding.batch import generate_vectors
from .errors import (
    CatalogSyncError,
    EmptyCatalogError,
    ExternalDependencyError,
    InvalidTenantIdError,
    TenantNotFoundError,
)
from .logging_utils import get_logger
from .models import (
    CatalogItem,
    ReconciliationPlan,
    ReconciliationReport,
    ReferenceSet,
    RunState,
    Tenant,
)
from .reference_store.base import ReferenceStore
from .vector_index.base import VectorIndex


logger = get_logger(__name__)

T = TypeVar("T")


async def call_collaborator(origin: str, awaitable: Awaitable[T]) -> T:
    """Await a collaborator call, wrapping foreign errors as ExternalDependencyError."""
    try:
        return await awaitable
    except CatalogSyncError:
        raise
    except Exception as exc:
        raise ExternalDependencyError(
            origin,
            str(exc) or type(exc).__name__,
            details={"error_type": type(exc).__name__},
        ) from exc


class _RunTracker:
    def __init__(self, tenant_id: str) -> None:
        self.tenant_id = tenant_id
        self.state = RunState.FETCHING

    def enter(self, state: RunState) -> None:
        logger.debug("Tenant '%s': %s -> %s", self.tenant_id, self.state.value, state.value)
        self.state = state


@dataclass
class _PreparedRun:
    catalog: List[CatalogItem]
    stored: Optional[ReferenceSet]
    plan: ReconciliationPlan


class ReconciliationEngine:
    def __init__(
        self,
        catalog_source: CatalogSource,
        reference_store: ReferenceStore,
        embedding_service: EmbeddingService,
        vector_index: VectorIndex,
        id_generator: IdGenerator = uuid4_id_generator,
    ) -> None:
        self.catalog_source = catalog_source
        self.reference_store = reference_store
        self.embedding_service = embedding_service
        self.vector_index = vector_index
        self.id_generator = id_generator

    async def _fetch(
        self, tenant_id: str
    ) -> Tuple[Optional[Tenant], List[CatalogItem], Optional[ReferenceSet]]:
        tenant, catalog, stored = await asyncio.gather(
            call_collaborator(ORIGIN_CATALOG_SOURCE, self.catalog_source.fetch_tenant(tenant_id)),
            call_collaborator(ORIGIN_CATALOG_SOURCE, self.catalog_source.fetch_catalog_items(tenant_id)),
            call_collaborator(ORIGIN_REFERENCE_STORE, self.reference_store.find_reference_set(tenant_id)),
        )
        return tenant, list(catalog), stored

    async def _prepare(self, tenant_id: str, run: _RunTracker) -> _PreparedRun:
        if not isinstance(tenant_id, str) or not tenant_id.strip():
            run.enter(RunState.VALIDATING)
            raise InvalidTenantIdError(tenant_id)

        run.enter(RunState.FETCHING)
        tenant, catalog, stored = await self._fetch(tenant_id)

        run.enter(RunState.VALIDATING)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)
        if not catalog:
            raise EmptyCatalogError(tenant_id)

        run.enter(RunState.DIFFING)
        references = stored if stored is not None else ReferenceSet()
        plan = compute_plan(catalog, references, self.id_generator)
        logger.info(
            "Tenant '%s': %d catalog items, %d to embed, %d vectors to delete, %d unchanged",
            tenant_id,
            len(catalog),
            len(plan.to_embed_and_upsert),
            len(plan.vector_ids_to_delete),
            plan.unchanged,
        )
        return _PreparedRun(catalog=catalog, stored=stored, plan=plan)

    async def plan(self, tenant_id: str) -> ReconciliationPlan:
        """Dry run: fetch, validate and diff without embedding or writing anything."""
        run = _RunTracker(tenant_id)
        try:
            prepared = await self._prepare(tenant_id, run)
        except CatalogSyncError as exc:
            exc.state = run.state.value
            raise
        return prepared.plan

    async def reconcile(self, tenant_id: str) -> ReconciliationReport:
        """
        Bring the vector index and reference document of ``tenant_id`` in line with its catalog.

        Returns:
            A ReconciliationReport for the completed run.

        Raises:
            ReconciliationPreconditionError: invalid or unknown tenant, or empty
                catalog. Nothing was written.
            EmbeddingAlignmentError: the embedding service returned a wrong
                number of vectors. Nothing was written.
            ExternalDependencyError: a collaborator failed (``MutationApplyError``
                when it happened while applying). Retry the whole run later.
        """
        started = time.monotonic()
        run = _RunTracker(tenant_id)
        try:
            prepared = await self._prepare(tenant_id, run)
            plan = prepared.plan

            entries = []
            if plan.to_embed_and_upsert:
                run.enter(RunState.EMBEDDING)
                entries = await call_collaborator(
                    ORIGIN_EMBEDDING_SERVICE,
                    generate_vectors(self.embedding_service, plan.to_embed_and_upsert, tenant_id),
                )

            run.enter(RunState.APPLYING)
            # A converged tenant whose document already exists needs no write at all.
            save_references = not (plan.is_empty and prepared.stored is not None)
            executed = await apply_plan(
                self.vector_index,
                self.reference_store,
                tenant_id,
                plan,
                entries,
                save_references=save_references,
            )
        except CatalogSyncError as exc:
            exc.state = run.state.value
            logger.error(
                "Reconciliation of tenant '%s' failed while %s: %s",
                tenant_id,
                run.state.value,
                exc,
            )
            run.enter(RunState.FAILED)
            raise

        run.enter(RunState.DONE)
        report = ReconciliationReport(
            tenant_id=tenant_id,
            state=RunState.DONE,
            catalog_size=len(prepared.catalog),
            embedded=len(entries),
            deleted=len(plan.vector_ids_to_delete),
            unchanged=plan.unchanged,
            references_saved=STEP_SAVE_REFERENCES in executed,
            elapsed_seconds=time.monotonic() - started,
        )
        logger.info(
            "Reconciled tenant '%s' in %.2fs (embedded=%d, deleted=%d, unchanged=%d)",
            tenant_id,
            report.elapsed_seconds,
            report.embedded,
            report.deleted,
            report.unchanged,
        )
        return report
