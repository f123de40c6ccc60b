# src/core/models.py — v1
"""Shared Pydantic domain models for recipe definitions.

Recipes are stored as camelCase documents (``outputKey``, ``inputMapping``,
``errorHandling`` ...). Every model accepts both the camelCase alias and the
snake_case field name, and dumps with aliases when persisted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NodeType = Literal[
    "text_generation", "image_generation", "video_generation", "data_processing"
]
ErrorStrategy = Literal["fail", "skip", "retry"]

GENERATION_NODE_TYPES: frozenset[str] = frozenset(
    {"text_generation", "image_generation", "video_generation"}
)

# Source reference prefixes used in Node.input_mapping.
EXTERNAL_INPUT_PREFIX = "external_input."
LITERAL_PREFIX = "value:"


class CamelModel(BaseModel):
    """Base model accepting camelCase aliases and snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict keyed by camelCase aliases."""
        return self.model_dump(mode="json", by_alias=True)


# === NODE CONFIGURATION ===


class AIModelConfig(CamelModel):
    """Capability provider selection for a generation node."""

    provider: str
    model_name: str
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    max_tokens: int | None = Field(default=None, gt=0)


class ErrorHandling(CamelModel):
    """Per-node failure policy."""

    on_error: ErrorStrategy = "fail"
    retry_count: int = Field(default=0, ge=0)
    timeout_ms: int | None = Field(default=None, gt=0, alias="timeout")
    default_output: Any = None


class Node(CamelModel):
    """One step (action) of a recipe."""

    id: str
    name: str = ""
    type: NodeType
    order: int | None = None
    dependencies: list[str] = Field(default_factory=list)
    input_mapping: dict[str, str] = Field(default_factory=dict)
    output_key: str
    error_handling: ErrorHandling = Field(default_factory=ErrorHandling)
    ai_model: AIModelConfig | None = None
    prompt: str | None = None
    prompt_template: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_generation(self) -> bool:
        return self.type in GENERATION_NODE_TYPES

    @property
    def display_name(self) -> str:
        return self.name or self.id


class Edge(CamelModel):
    """Directed edge used for DAG shape and visualization."""

    from_node: str = Field(alias="from")
    to_node: str = Field(alias="to")


# === RECIPE ===


class RetryPolicy(CamelModel):
    """Recipe-level retry spacing."""

    max_retries: int = Field(default=1, ge=0)
    backoff_ms: int = Field(default=1000, ge=0)


class ExecutionConfig(CamelModel):
    """Recipe-level execution options."""

    timeout_ms: int = Field(default=120_000, gt=0, alias="timeout")
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    parallel_execution: bool = False
    continue_on_error: bool = False


class RecipeMetadata(CamelModel):
    """Bookkeeping attached to a stored recipe."""

    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str = "system"
    is_active: bool = True
    tags: list[str] = Field(default_factory=list)


class Recipe(CamelModel):
    """A named, versioned workflow graph of nodes."""

    id: str = ""
    name: str = "Untitled Recipe"
    description: str = ""
    stage_type: str = ""
    version: int = Field(default=1, ge=1)
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    execution_config: ExecutionConfig = Field(default_factory=ExecutionConfig)
    metadata: RecipeMetadata = Field(default_factory=RecipeMetadata)

    @property
    def node_map(self) -> dict[str, Node]:
        """Return node_id -> Node (first occurrence wins on duplicates)."""
        nodes: dict[str, Node] = {}
        for node in self.nodes:
            nodes.setdefault(node.id, node)
        return nodes

    def get_node(self, node_id: str) -> Node | None:
        return self.node_map.get(node_id)

    def dependency_map(self) -> dict[str, list[str]]:
        """Return node_id -> declared dependency ids."""
        return {node.id: list(node.dependencies) for node in self.nodes}


# === USAGE ===


class TokenUsage(CamelModel):
    """Token counts reported by a capability provider."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )


# === INVOCATION CONTEXT ===


class ExecutionContext(CamelModel):
    """Caller context attached to a run; passed explicitly, never global."""

    project_id: str | None = None
    stage_id: str | None = None
    user_id: str | None = None
