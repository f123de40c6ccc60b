# tests/conftest.py — v2
"""Shared test fixtures for all unit tests.

Provides recipe builders, an echo-backed provider registry, in-memory
stores and a fully wired engine. No network access: every generation
node runs against the deterministic echo provider or a scripted stub.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable

import pytest

from recipeflow.api.facade import RecipeEngine
from recipeflow.config.settings import Settings
from recipeflow.core.models import Recipe
from recipeflow.pipeline.executor import ActionExecutor
from recipeflow.pipeline.orchestrator import RecipeOrchestrator
from recipeflow.providers.base_provider import BaseCapabilityProvider
from recipeflow.providers.models import GenerationResult
from recipeflow.providers.registry import ProviderRegistry
from recipeflow.recipes.manager import RecipeManager
from recipeflow.storage.local_storage import LocalObjectStorage
from recipeflow.store.memory_store import MemoryDocumentStore
from recipeflow.tracking.execution_tracker import ExecutionTracker

ECHO_MODEL = {"provider": "echo", "modelName": "echo"}


# === Helpers ===


class ScriptedProvider(BaseCapabilityProvider):
    """Text provider replaying a script of results and exceptions.

    Each call pops the next entry; exceptions are raised, strings returned
    as text. The last entry repeats once the script is exhausted.
    """

    capabilities = frozenset({"text"})

    def __init__(self, script: list[Any], delay_s: float = 0.0) -> None:
        self.script = list(script)
        self.delay_s = delay_s
        self.calls: list[str] = []

    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        system: str | None = None,
    ) -> GenerationResult:
        self.calls.append(prompt)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        entry = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(entry, BaseException):
            raise entry
        return GenerationResult(
            content=entry, input_tokens=10, output_tokens=5,
            model="scripted-1", provider="scripted",
        )

    @property
    def provider_name(self) -> str:
        return "scripted"

    @property
    def model_name(self) -> str:
        return "scripted-1"


def text_node(node_id: str, output_key: str | None = None, **fields: Any) -> dict[str, Any]:
    """camelCase text_generation node document on the echo provider."""
    node = {
        "id": node_id,
        "type": "text_generation",
        "outputKey": output_key or f"{node_id}_out",
        "aiModel": dict(ECHO_MODEL),
        "prompt": node_id,
    }
    node.update(fields)
    return node


def recipe_doc(nodes: list[dict[str, Any]], **fields: Any) -> dict[str, Any]:
    doc = {"id": "recipe_test", "name": "Test Recipe", "stageType": "test", "nodes": nodes}
    doc.update(fields)
    return doc


# === FIXTURES: Recipes ===


@pytest.fixture
def make_recipe() -> Callable[..., Recipe]:
    """Build a Recipe from node documents."""
    def _make(nodes: list[dict[str, Any]], **fields: Any) -> Recipe:
        return Recipe.model_validate(recipe_doc(nodes, **fields))
    return _make


@pytest.fixture
def linear_recipe_doc() -> dict[str, Any]:
    """A → B → C, each echoing a prompt built from its upstream output."""
    return recipe_doc(
        [
            text_node(
                "a", "topic",
                inputMapping={"subject": "external_input.subject"},
                prompt="about {subject}",
            ),
            text_node(
                "b", "outline",
                dependencies=["a"],
                inputMapping={"topic": "topic"},
                prompt="outline of {topic}",
            ),
            text_node(
                "c", "draft",
                dependencies=["b"],
                inputMapping={"outline": "outline"},
                prompt="draft from {outline}",
            ),
        ],
        id="recipe_linear",
        edges=[{"from": "a", "to": "b"}, {"from": "b", "to": "c"}],
    )


@pytest.fixture
def diamond_recipe_doc() -> dict[str, Any]:
    """root → (left, right) → join."""
    return recipe_doc(
        [
            text_node("root", "seed", inputMapping={"x": "external_input.x"}, prompt="{x}"),
            text_node("left", "l", dependencies=["root"], inputMapping={"s": "seed"}, prompt="L {s}"),
            text_node("right", "r", dependencies=["root"], inputMapping={"s": "seed"}, prompt="R {s}"),
            {
                "id": "join",
                "type": "data_processing",
                "outputKey": "joined",
                "dependencies": ["left", "right"],
                "inputMapping": {"left": "l", "right": "r"},
                "parameters": {"transform": "passthrough"},
            },
        ],
        id="recipe_diamond",
    )


# === FIXTURES: Builders ===


@pytest.fixture
def node_doc() -> Callable[..., dict[str, Any]]:
    return text_node


@pytest.fixture
def make_doc() -> Callable[..., dict[str, Any]]:
    return recipe_doc


@pytest.fixture
def scripted() -> type[ScriptedProvider]:
    return ScriptedProvider


# === FIXTURES: Infrastructure ===


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers installed by setup_logging() during a test."""
    yield
    root = logging.getLogger("recipeflow")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        store_backend="memory",
        store_root=tmp_path / "store",
        object_storage_root=tmp_path / "media",
        default_node_timeout_ms=5_000,
    )


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def object_storage(tmp_path: Path) -> LocalObjectStorage:
    return LocalObjectStorage(root=tmp_path / "media", base_url="https://cdn.test")


@pytest.fixture
def registry() -> ProviderRegistry:
    """Registry with built-in class paths; ``echo`` needs no credentials."""
    return ProviderRegistry()


@pytest.fixture
def tracker(memory_store: MemoryDocumentStore) -> ExecutionTracker:
    return ExecutionTracker(memory_store)


@pytest.fixture
def recipe_manager(memory_store: MemoryDocumentStore) -> RecipeManager:
    return RecipeManager(memory_store)


@pytest.fixture
def orchestrator(
    recipe_manager: RecipeManager,
    registry: ProviderRegistry,
    object_storage: LocalObjectStorage,
    tracker: ExecutionTracker,
    settings: Settings,
) -> RecipeOrchestrator:
    executor = ActionExecutor(registry, object_storage)
    return RecipeOrchestrator(recipe_manager, executor, tracker, settings)


@pytest.fixture
def engine(
    settings: Settings,
    memory_store: MemoryDocumentStore,
    object_storage: LocalObjectStorage,
    registry: ProviderRegistry,
) -> RecipeEngine:
    return RecipeEngine(settings, memory_store, object_storage, registry)
