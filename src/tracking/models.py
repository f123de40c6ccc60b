# src/tracking/models.py — v2
"""Execution tracking models: Execution, NodeResult, ExecutionSummary, pricing.

Persisted as camelCase documents in the ``recipe_executions`` collection.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from recipeflow.core.models import CamelModel, TokenUsage

ExecutionStatus = Literal["pending", "running", "completed", "failed", "cancelled"]
NodeStatus = Literal["pending", "running", "completed", "failed", "cancelled"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed", "cancelled"})


class NodeError(CamelModel):
    """Why a node did not complete."""

    message: str
    code: str = "ACTION_FAILED"
    attempts: int = 1


class NodeResult(CamelModel):
    """Outcome of one node within an execution."""

    node_id: str
    status: NodeStatus = "pending"
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int | None = None
    input: Any = None
    output: Any = None
    error: NodeError | None = None
    retries_used: int = 0
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    provider: str | None = None
    model: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class Execution(CamelModel):
    """One run of a recipe."""

    execution_id: str
    recipe_id: str
    recipe_version: int = 1
    project_id: str | None = None
    stage_id: str | None = None
    triggered_by: str | None = None
    input: dict[str, Any] = Field(default_factory=dict)
    status: ExecutionStatus = "pending"
    node_results: dict[str, NodeResult] = Field(default_factory=dict)
    final_output: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error: str | None = None
    failed_node_id: str | None = None
    retry_of: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def duration_ms(self) -> int | None:
        if self.started_at is None or self.completed_at is None:
            return None
        return int((self.completed_at - self.started_at).total_seconds() * 1000)

    @property
    def token_usage(self) -> TokenUsage:
        total = TokenUsage()
        for result in self.node_results.values():
            total = total + result.token_usage
        return total


# === SUMMARY ===


class CostEstimate(CamelModel):
    """Estimated provider cost of an execution."""

    estimated_cost: float = 0.0
    currency: str = "USD"
    media_count: int = 0
    note: str = "Estimate based on list pricing. Actual costs may vary."


class NodeSummary(CamelModel):
    node_id: str
    status: NodeStatus
    duration_ms: int | None = None
    retries_used: int = 0
    error: NodeError | None = None


class ExecutionSummary(CamelModel):
    """Aggregated view of an execution for polling clients."""

    execution_id: str
    recipe_id: str
    status: ExecutionStatus
    total_nodes: int = 0
    completed_nodes: int = 0
    failed_nodes: int = 0
    cancelled_nodes: int = 0
    pending_nodes: int = 0
    duration_ms: int | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    final_output: dict[str, Any] = Field(default_factory=dict)
    node_results: list[NodeSummary] = Field(default_factory=list)
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    estimated_cost: CostEstimate = Field(default_factory=CostEstimate)
    error: str | None = None
    failed_node_id: str | None = None


class ModelPricing(BaseModel):
    """Pricing for a specific model (per 1M tokens, per generated asset)."""

    model: str
    input_price_per_1m: float = 0.0
    output_price_per_1m: float = 0.0
    per_image: float = 0.0
    per_video: float = 0.0
