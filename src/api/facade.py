# src/api/facade.py — v2
"""Public API facade — single entry point for running and managing recipes.

Usage:
    from recipeflow.api.facade import create_engine
    engine = create_engine()
    execution_id = await engine.execute_recipe("recipe_persona_generation_v1", {...})
    summary = await engine.get_execution_summary(execution_id)
"""

from __future__ import annotations

import logging
from typing import Any

from recipeflow.api.models import ExecutionContext, ExecutionRequest, ExecutionResult
from recipeflow.config.settings import Settings
from recipeflow.core.models import Recipe
from recipeflow.pipeline.executor import ActionExecutor
from recipeflow.pipeline.orchestrator import NodeTestResult, RecipeOrchestrator
from recipeflow.pipeline.validator import ValidationResult, validate_document
from recipeflow.providers.registry import ProviderRegistry
from recipeflow.recipes.manager import RecipeManager
from recipeflow.recipes.seed_data import seed_recipes
from recipeflow.storage.base_object_storage import BaseObjectStorage
from recipeflow.storage.storage_factory import create_object_storage
from recipeflow.store.base_document_store import BaseDocumentStore
from recipeflow.store.store_factory import create_document_store
from recipeflow.tracking.execution_tracker import ExecutionTracker
from recipeflow.tracking.models import Execution, ExecutionSummary

logger = logging.getLogger(__name__)


class RecipeEngine:
    """Wires the recipe store, orchestrator and tracker together.

    Args:
        settings: Global settings.
        store: Persistence backend for recipes and executions.
        storage: Object storage for uploaded media.
        registry: Capability provider registry.
    """

    def __init__(
        self,
        settings: Settings,
        store: BaseDocumentStore,
        storage: BaseObjectStorage | None = None,
        registry: ProviderRegistry | None = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.registry = registry or ProviderRegistry(settings)
        self.recipes = RecipeManager(store, allow_orphan_nodes=settings.recipe_allow_orphan_nodes)
        self.tracker = ExecutionTracker(store)
        self.executor = ActionExecutor(self.registry, storage)
        self.orchestrator = RecipeOrchestrator(self.recipes, self.executor, self.tracker, settings)

    # --- Runs ---

    async def execute_recipe(
        self,
        recipe_id: str,
        external_input: dict[str, Any] | None = None,
        context: ExecutionContext | None = None,
    ) -> str:
        """Run a recipe and return its execution id."""
        return await self.orchestrator.execute_recipe(recipe_id, external_input, context)

    async def run(self, request: ExecutionRequest) -> ExecutionResult:
        result = await self.orchestrator.run_recipe(request.recipe_id, request.input, request.context)
        return ExecutionResult.from_execution(result.execution)

    async def get_execution_status(self, execution_id: str) -> Execution | None:
        return await self.orchestrator.get_execution_status(execution_id)

    async def get_execution_summary(self, execution_id: str) -> ExecutionSummary | None:
        return await self.orchestrator.get_execution_summary(execution_id)

    async def cancel_execution(self, execution_id: str) -> bool:
        return await self.orchestrator.cancel_execution(execution_id)

    async def retry_execution(self, execution_id: str) -> str:
        return await self.orchestrator.retry_execution(execution_id)

    async def test_node(
        self,
        recipe_id: str,
        node_id: str,
        external_input: dict[str, Any] | None = None,
        execute_dependencies: bool = True,
        mock_outputs: dict[str, Any] | None = None,
    ) -> NodeTestResult:
        return await self.orchestrator.test_node(
            recipe_id, node_id, external_input, execute_dependencies, mock_outputs
        )

    async def cleanup_executions(self, days: int | None = None) -> int:
        """Delete finished executions older than EXECUTION_RETENTION_DAYS."""
        return await self.tracker.cleanup_older_than(days or self.settings.execution_retention_days)

    # --- Recipes ---

    def validate_recipe(self, document: dict[str, Any]) -> ValidationResult:
        _, result = validate_document(
            document, allow_orphan_nodes=self.settings.recipe_allow_orphan_nodes
        )
        return result

    async def create_recipe(self, data: dict[str, Any] | Recipe, user_id: str = "system") -> Recipe:
        return await self.recipes.create_recipe(data, user_id)

    async def get_recipe(self, recipe_id: str) -> Recipe | None:
        return await self.recipes.get_recipe(recipe_id)

    async def update_recipe(self, recipe_id: str, updates: dict[str, Any]) -> Recipe:
        return await self.recipes.update_recipe(recipe_id, updates)

    async def delete_recipe(self, recipe_id: str) -> bool:
        return await self.recipes.delete_recipe(recipe_id)

    async def list_recipes(
        self, stage_type: str | None = None, is_active: bool | None = None
    ) -> list[Recipe]:
        return await self.recipes.list_recipes(stage_type=stage_type, is_active=is_active)

    async def seed_recipes(self, provider: str | None = None) -> list[str]:
        return await seed_recipes(self.recipes, provider=provider)

    def close(self) -> None:
        self.store.close()


def create_engine(settings: Settings | None = None, **overrides: Any) -> RecipeEngine:
    """Build a RecipeEngine from settings (loaded from .env if None).

    Keyword overrides replace the store, storage or registry built from
    settings, e.g. ``create_engine(store=MemoryDocumentStore())``.
    """
    settings = settings or Settings()
    store = overrides.pop("store", None) or create_document_store(settings)
    storage = overrides.pop("storage", None) or create_object_storage(settings)
    registry = overrides.pop("registry", None) or ProviderRegistry(settings)
    if overrides:
        raise TypeError(f"Unexpected overrides: {', '.join(sorted(overrides))}")

    logger.info(
        "Engine ready: store=%s, object_storage=%s, providers=%s",
        type(store).__name__, type(storage).__name__, ", ".join(registry.available()),
    )
    return RecipeEngine(settings, store, storage, registry)
