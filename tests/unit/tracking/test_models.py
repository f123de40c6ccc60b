# tests/unit/tracking/test_models.py — v2
"""Tests for tracking/models.py — execution records and summaries."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from recipeflow.core.models import TokenUsage
from recipeflow.tracking.models import Execution, NodeError, NodeResult


class TestNodeResult:
    def test_defaults(self):
        result = NodeResult(node_id="a")
        assert result.status == "pending"
        assert not result.is_terminal
        assert result.retries_used == 0

    def test_error_document(self):
        result = NodeResult(
            node_id="a", status="failed",
            error=NodeError(message="Node 'a' failed: boom", code="TIMEOUT", attempts=3),
        )
        document = result.to_document()
        assert document["nodeId"] == "a"
        assert document["error"] == {
            "message": "Node 'a' failed: boom", "code": "TIMEOUT", "attempts": 3,
        }
        assert result.is_terminal


class TestExecution:
    def test_duration(self):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        execution = Execution(
            execution_id="e", recipe_id="r",
            started_at=start, completed_at=start + timedelta(milliseconds=1500),
        )
        assert execution.duration_ms == 1500

    def test_duration_unknown_while_running(self):
        assert Execution(execution_id="e", recipe_id="r", status="running").duration_ms is None

    def test_token_usage_sums_nodes(self):
        execution = Execution(
            execution_id="e", recipe_id="r",
            node_results={
                "a": NodeResult(node_id="a", token_usage=TokenUsage(input_tokens=3, output_tokens=1)),
                "b": NodeResult(node_id="b", token_usage=TokenUsage(input_tokens=2)),
            },
        )
        assert execution.token_usage.total_tokens == 6

    def test_round_trip_from_document(self):
        execution = Execution(
            execution_id="e", recipe_id="r", status="completed",
            node_results={"a": NodeResult(node_id="a", status="completed", output={"k": 1})},
        )
        restored = Execution.model_validate(execution.to_document())
        assert restored == execution
        assert restored.is_terminal
