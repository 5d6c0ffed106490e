"""Tests for plan execution against the index and reference store."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from catalog_vectordb.apply import (
    STEP_DELETE_VECTORS,
    STEP_SAVE_REFERENCES,
    STEP_UPSERT_VECTORS,
    apply_plan,
)
from catalog_vectordb.errors import ExternalDependencyError, MutationApplyError
from catalog_vectordb.models import ReconciliationPlan, Reference, ReferenceSet, VectorEntry
from catalog_vectordb.reference_store.base import ReferenceStore
from catalog_vectordb.vector_index.base import VectorIndex


@pytest.fixture
def plan():
    return ReconciliationPlan(
        vector_ids_to_delete=["old-1"],
        next_reference_set=ReferenceSet({"a": Reference("new-1", "h")}),
    )


@pytest.fixture
def entries():
    return [VectorEntry(id="new-1", vector=[0.5, 0.5])]


class TestApplyPlan:
    @pytest.mark.asyncio
    async def test_issues_all_three_steps(self, plan, entries):
        index = AsyncMock(spec=VectorIndex)
        store = AsyncMock(spec=ReferenceStore)

        executed = await apply_plan(index, store, "shop", plan, entries)

        assert executed == [STEP_DELETE_VECTORS, STEP_UPSERT_VECTORS, STEP_SAVE_REFERENCES]
        index.delete_by_ids.assert_awaited_once_with(["old-1"])
        index.upsert.assert_awaited_once_with(entries)
        store.save_reference_set.assert_awaited_once_with("shop", plan.next_reference_set)

    @pytest.mark.asyncio
    async def test_skips_steps_with_nothing_to_do(self):
        index = AsyncMock(spec=VectorIndex)
        store = AsyncMock(spec=ReferenceStore)
        empty = ReconciliationPlan()

        executed = await apply_plan(index, store, "shop", empty, [])

        assert executed == [STEP_SAVE_REFERENCES]
        index.delete_by_ids.assert_not_called()
        index.upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_can_skip_reference_write(self):
        index = AsyncMock(spec=VectorIndex)
        store = AsyncMock(spec=ReferenceStore)

        executed = await apply_plan(index, store, "shop", ReconciliationPlan(), [], save_references=False)

        assert executed == []
        store.save_reference_set.assert_not_called()

    @pytest.mark.asyncio
    async def test_steps_run_concurrently(self, plan, entries):
        started = []
        release = asyncio.Event()

        async def blocking(name):
            started.append(name)
            await release.wait()

        async def delete(ids):
            await blocking("delete")

        async def upsert(batch):
            await blocking("upsert")

        async def save(tenant_id, references):
            await blocking("save")

        index = AsyncMock(spec=VectorIndex)
        index.delete_by_ids.side_effect = delete
        index.upsert.side_effect = upsert
        store = AsyncMock(spec=ReferenceStore)
        store.save_reference_set.side_effect = save

        task = asyncio.ensure_future(apply_plan(index, store, "shop", plan, entries))
        for _ in range(10):
            await asyncio.sleep(0)
            if len(started) == 3:
                break

        assert sorted(started) == ["delete", "save", "upsert"]
        release.set()
        await task

    @pytest.mark.asyncio
    async def test_failures_are_aggregated_and_successes_kept(self, plan, entries):
        index = AsyncMock(spec=VectorIndex)
        index.delete_by_ids.side_effect = RuntimeError("delete down")
        store = AsyncMock(spec=ReferenceStore)
        store.save_reference_set.side_effect = RuntimeError("store down")

        with pytest.raises(MutationApplyError) as exc_info:
            await apply_plan(index, store, "shop", plan, entries)

        error = exc_info.value
        assert isinstance(error, ExternalDependencyError)
        assert error.retryable is True
        assert error.failed_steps == [STEP_DELETE_VECTORS, STEP_SAVE_REFERENCES]
        assert error.origin == "vector_index,reference_store"
        assert "delete down" in str(error)
        assert "store down" in str(error)
        # The upsert that succeeded is not rolled back.
        index.upsert.assert_awaited_once_with(entries)
        index.delete_by_ids.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_single_failure_still_reported_as_apply_error(self, plan, entries):
        index = AsyncMock(spec=VectorIndex)
        index.upsert.side_effect = ConnectionError("index unreachable")
        store = AsyncMock(spec=ReferenceStore)

        with pytest.raises(MutationApplyError) as exc_info:
            await apply_plan(index, store, "shop", plan, entries)

        assert exc_info.value.failed_steps == [STEP_UPSERT_VECTORS]
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        store.save_reference_set.assert_awaited_once()
