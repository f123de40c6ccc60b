# src/tracking/execution_tracker.py — v1
"""Execution tracker — persist per-run and per-node state.

Backed by a document store (collection ``recipe_executions``). Reads are
side-effect free and safe to poll while a run is in progress. Node
results that reached a terminal state are never overwritten.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel

from recipeflow.core.errors import ExecutionNotFoundError, ExecutionStateError
from recipeflow.store.base_document_store import BaseDocumentStore
from recipeflow.tracking.cost_calculator import estimate_cost
from recipeflow.tracking.models import (
    Execution,
    ExecutionStatus,
    ExecutionSummary,
    ModelPricing,
    NodeResult,
    NodeSummary,
)

logger = logging.getLogger(__name__)

EXECUTIONS_COLLECTION = "recipe_executions"


def sanitize_for_storage(value: Any) -> Any:
    """Convert a node output into a JSON-safe value.

    Binary payloads become ``<bytes:N>`` markers; anything that is not a
    JSON primitive, list or dict is stringified.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<bytes:{len(value)}>"
    if isinstance(value, dict):
        return {str(k): sanitize_for_storage(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [sanitize_for_storage(v) for v in value]
    if isinstance(value, BaseModel):
        return sanitize_for_storage(value.model_dump())
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionTracker:
    """Create, update and read execution records.

    Updates to one execution are serialized in-process so concurrent
    nodes of the same run do not lose each other's writes.
    """

    def __init__(
        self,
        store: BaseDocumentStore,
        pricing: dict[str, ModelPricing] | None = None,
    ) -> None:
        self._store = store
        self._pricing = pricing
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, execution_id: str) -> asyncio.Lock:
        return self._locks.setdefault(execution_id, asyncio.Lock())

    async def _save(self, execution: Execution) -> None:
        await self._store.put(
            EXECUTIONS_COLLECTION, execution.execution_id, execution.to_document()
        )

    async def _load(self, execution_id: str) -> Execution:
        execution = await self.get_status(execution_id)
        if execution is None:
            raise ExecutionNotFoundError(execution_id)
        return execution

    # --- Writes ---

    async def create(self, execution: Execution) -> Execution:
        """Persist a new execution record."""
        if execution.created_at is None:
            execution.created_at = _now()
        execution.input = sanitize_for_storage(execution.input)
        await self._save(execution)
        logger.info(
            "Execution %s created for recipe %s", execution.execution_id, execution.recipe_id
        )
        return execution

    async def record(self, execution_id: str, node_id: str, result: NodeResult) -> Execution:
        """Store a node result.

        Raises:
            ExecutionStateError: If the node already has a terminal result.
        """
        async with self._lock(execution_id):
            execution = await self._load(execution_id)
            existing = execution.node_results.get(node_id)
            if existing is not None and existing.is_terminal:
                raise ExecutionStateError(
                    f"Node '{node_id}' of execution {execution_id} is already {existing.status}"
                )
            stored = result.model_copy(
                update={
                    "node_id": node_id,
                    "input": sanitize_for_storage(result.input),
                    "output": sanitize_for_storage(result.output),
                }
            )
            execution.node_results[node_id] = stored
            await self._save(execution)
            return execution

    async def set_status(
        self,
        execution_id: str,
        status: ExecutionStatus,
        *,
        error: str | None = None,
        failed_node_id: str | None = None,
        final_output: dict[str, Any] | None = None,
    ) -> Execution:
        """Move an execution to a new status.

        Raises:
            ExecutionStateError: If the execution is already terminal.
        """
        async with self._lock(execution_id):
            execution = await self._load(execution_id)
            if execution.is_terminal:
                raise ExecutionStateError(
                    f"Execution {execution_id} is already {execution.status}"
                )
            execution.status = status
            if status == "running" and execution.started_at is None:
                execution.started_at = _now()
            if execution.is_terminal:
                execution.completed_at = _now()
                if execution.started_at is None:
                    execution.started_at = execution.completed_at
            if error is not None:
                execution.error = error
            if failed_node_id is not None:
                execution.failed_node_id = failed_node_id
            if final_output is not None:
                execution.final_output = sanitize_for_storage(final_output)
            await self._save(execution)

        if execution.is_terminal:
            self._locks.pop(execution_id, None)
            logger.info(
                "Execution %s %s in %sms", execution_id, status, execution.duration_ms
            )
        return execution

    # --- Reads ---

    async def get_status(self, execution_id: str) -> Execution | None:
        document = await self._store.get(EXECUTIONS_COLLECTION, execution_id)
        return Execution.model_validate(document) if document is not None else None

    async def get_summary(self, execution_id: str) -> ExecutionSummary | None:
        execution = await self.get_status(execution_id)
        if execution is None:
            return None

        results = list(execution.node_results.values())
        counts = {status: 0 for status in ("completed", "failed", "cancelled", "pending", "running")}
        for result in results:
            counts[result.status] += 1

        return ExecutionSummary(
            execution_id=execution.execution_id,
            recipe_id=execution.recipe_id,
            status=execution.status,
            total_nodes=len(results),
            completed_nodes=counts["completed"],
            failed_nodes=counts["failed"],
            cancelled_nodes=counts["cancelled"],
            pending_nodes=counts["pending"] + counts["running"],
            duration_ms=execution.duration_ms,
            started_at=execution.started_at,
            completed_at=execution.completed_at,
            final_output=execution.final_output,
            node_results=[
                NodeSummary(
                    node_id=r.node_id,
                    status=r.status,
                    duration_ms=r.duration_ms,
                    retries_used=r.retries_used,
                    error=r.error,
                )
                for r in results
            ],
            token_usage=execution.token_usage,
            estimated_cost=estimate_cost(results, self._pricing),
            error=execution.error,
            failed_node_id=execution.failed_node_id,
        )

    async def list_for_recipe(self, recipe_id: str, limit: int = 10) -> list[Execution]:
        """Most recent executions of a recipe first."""
        return await self._list({"recipeId": recipe_id}, limit)

    async def list_for_project(self, project_id: str, limit: int = 50) -> list[Execution]:
        """Most recent executions of a project first."""
        return await self._list({"projectId": project_id}, limit)

    async def _list(self, filters: dict[str, Any], limit: int) -> list[Execution]:
        documents = await self._store.query(EXECUTIONS_COLLECTION, filters)
        executions = [Execution.model_validate(doc) for doc in documents]
        executions.sort(
            key=lambda e: e.created_at or e.started_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )
        return executions[:limit]

    async def cleanup_older_than(self, days: int) -> int:
        """Delete terminal executions completed more than ``days`` ago."""
        cutoff = _now() - timedelta(days=days)
        removed = 0
        for document in await self._store.list(EXECUTIONS_COLLECTION):
            execution = Execution.model_validate(document)
            if execution.is_terminal and execution.completed_at and execution.completed_at < cutoff:
                await self._store.delete(EXECUTIONS_COLLECTION, execution.execution_id)
                removed += 1
        if removed:
            logger.info("Removed %d execution(s) older than %d days", removed, days)
        return removed
