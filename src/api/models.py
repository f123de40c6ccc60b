# src/api/models.py — v2
"""API-level models: ExecutionContext, ExecutionRequest, ExecutionResult."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from recipeflow.core.models import CamelModel, ExecutionContext
from recipeflow.tracking.models import Execution, ExecutionStatus

__all__ = ["ExecutionContext", "ExecutionRequest", "ExecutionResult"]


class ExecutionRequest(CamelModel):
    """A caller's request to run a recipe."""

    recipe_id: str
    input: dict[str, Any] = Field(default_factory=dict)
    context: ExecutionContext = Field(default_factory=ExecutionContext)


class ExecutionResult(CamelModel):
    """Return value of RecipeEngine.run() — API-level result."""

    execution_id: str
    recipe_id: str
    status: ExecutionStatus
    final_output: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
    failed_node_id: str | None = None
    duration_ms: int | None = None

    @classmethod
    def from_execution(cls, execution: Execution) -> ExecutionResult:
        return cls(
            execution_id=execution.execution_id,
            recipe_id=execution.recipe_id,
            status=execution.status,
            final_output=execution.final_output,
            error=execution.error,
            failed_node_id=execution.failed_node_id,
            duration_ms=execution.duration_ms,
        )
