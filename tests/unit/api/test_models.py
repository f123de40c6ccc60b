# tests/unit/api/test_models.py — v2
"""Tests for api/models.py."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from recipeflow.api.models import ExecutionContext, ExecutionRequest, ExecutionResult
from recipeflow.tracking.models import Execution


class TestExecutionRequest:
    def test_camel_case_document(self):
        request = ExecutionRequest.model_validate({
            "recipeId": "recipe_x",
            "input": {"topic": "tea"},
            "context": {"projectId": "p1", "userId": "u1"},
        })
        assert request.recipe_id == "recipe_x"
        assert request.context == ExecutionContext(project_id="p1", user_id="u1")

    def test_defaults(self):
        request = ExecutionRequest(recipe_id="recipe_x")
        assert request.input == {}
        assert request.context.stage_id is None


class TestExecutionResult:
    def test_from_execution(self):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        execution = Execution(
            execution_id="exec_1", recipe_id="recipe_x", status="failed",
            error="Node 'a' failed: boom", failed_node_id="a",
            final_output={"b_out": "ok"},
            started_at=start, completed_at=start + timedelta(seconds=2),
        )
        result = ExecutionResult.from_execution(execution)
        assert result.status == "failed"
        assert result.failed_node_id == "a"
        assert result.duration_ms == 2000
        assert result.to_document()["finalOutput"] == {"b_out": "ok"}
