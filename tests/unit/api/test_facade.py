# tests/unit/api/test_facade.py — v2
"""Tests for api/facade.py — public entry point."""

from __future__ import annotations

import pytest

from recipeflow.api.facade import RecipeEngine, create_engine
from recipeflow.api.models import ExecutionContext, ExecutionRequest
from recipeflow.core.errors import ValidationError
from recipeflow.store.memory_store import MemoryDocumentStore


class TestCreateEngine:
    def test_from_settings(self, settings):
        engine = create_engine(settings)
        assert isinstance(engine, RecipeEngine)
        assert isinstance(engine.store, MemoryDocumentStore)
        assert "echo" in engine.registry.available()

    def test_store_override(self, settings):
        store = MemoryDocumentStore()
        assert create_engine(settings, store=store).store is store

    def test_unknown_override(self, settings):
        with pytest.raises(TypeError, match="bogus"):
            create_engine(settings, bogus=1)


class TestRuns:
    @pytest.mark.asyncio
    async def test_run_request(self, engine, linear_recipe_doc):
        await engine.create_recipe(linear_recipe_doc)
        result = await engine.run(ExecutionRequest(
            recipe_id="recipe_linear",
            input={"subject": "tea"},
            context=ExecutionContext(project_id="p1"),
        ))
        assert result.status == "completed"
        assert result.final_output["draft"] == "draft from outline of about tea"
        assert result.duration_ms is not None

    @pytest.mark.asyncio
    async def test_execute_and_poll(self, engine, linear_recipe_doc):
        await engine.create_recipe(linear_recipe_doc)
        execution_id = await engine.execute_recipe("recipe_linear", {"subject": "tea"})
        assert (await engine.get_execution_status(execution_id)).status == "completed"
        summary = await engine.get_execution_summary(execution_id)
        assert summary.completed_nodes == 3
        assert await engine.cancel_execution(execution_id) is False

    @pytest.mark.asyncio
    async def test_retry(self, engine, linear_recipe_doc):
        await engine.create_recipe(linear_recipe_doc)
        execution_id = await engine.execute_recipe("recipe_linear", {"subject": "tea"})
        retried = await engine.retry_execution(execution_id)
        assert (await engine.get_execution_status(retried)).retry_of == execution_id

    @pytest.mark.asyncio
    async def test_node(self, engine, linear_recipe_doc):
        await engine.create_recipe(linear_recipe_doc)
        outcome = await engine.test_node("recipe_linear", "b", {"subject": "tea"})
        assert outcome.result.output == "outline of about tea"

    @pytest.mark.asyncio
    async def test_cleanup_keeps_recent(self, engine, linear_recipe_doc):
        await engine.create_recipe(linear_recipe_doc)
        await engine.execute_recipe("recipe_linear", {"subject": "tea"})
        assert await engine.cleanup_executions() == 0


class TestRecipes:
    def test_validate_recipe(self, engine, node_doc, make_doc):
        result = engine.validate_recipe(make_doc([node_doc("a", dependencies=["ghost"])]))
        assert not result.valid
        assert "Node 'a' depends on unknown node 'ghost'" in result.errors

    @pytest.mark.asyncio
    async def test_crud(self, engine, linear_recipe_doc):
        created = await engine.create_recipe(linear_recipe_doc, user_id="u1")
        assert (await engine.get_recipe(created.id)).metadata.created_by == "u1"

        updated = await engine.update_recipe(created.id, {"stage_type": "blog"})
        assert updated.stage_type == "blog"
        assert [r.id for r in await engine.list_recipes(stage_type="blog")] == [created.id]

        assert await engine.delete_recipe(created.id) is True
        assert await engine.get_recipe(created.id) is None

    @pytest.mark.asyncio
    async def test_create_invalid(self, engine, node_doc, make_doc):
        with pytest.raises(ValidationError):
            await engine.create_recipe(make_doc([node_doc("a", dependencies=["a"])]))

    @pytest.mark.asyncio
    async def test_seed(self, engine):
        assert len(await engine.seed_recipes(provider="echo")) == 4
        active = await engine.list_recipes(is_active=True)
        assert len(active) == 4
        assert all(
            node.ai_model.provider == "echo"
            for recipe in active for node in recipe.nodes if node.ai_model
        )
