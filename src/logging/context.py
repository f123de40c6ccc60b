# src/logging/context.py — v1
"""Contextual logging support: attach execution_id, recipe_id, node to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per recipe execution.
_execution_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "execution_id", default=None
)
_recipe_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "recipe_id", default=None
)
_node_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "node_id", default=None
)
_attempt: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "attempt", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    execution_id: str | None = None
    recipe_id: str | None = None
    node_id: str | None = None
    attempt: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        execution_id=_execution_id.get(),
        recipe_id=_recipe_id.get(),
        node_id=_node_id.get(),
        attempt=_attempt.get(),
    )


def set_execution_context(execution_id: str, recipe_id: str) -> None:
    """Set run-level context (called once per recipe execution)."""
    _execution_id.set(execution_id)
    _recipe_id.set(recipe_id)


def set_node_context(node_id: str | None, attempt: int | None = None) -> None:
    """Set node-level context (called per node attempt).

    Each asyncio task runs in a copy of the caller's context, so nodes
    executed concurrently do not see each other's node_id.
    """
    _node_id.set(node_id)
    _attempt.set(attempt)


def clear_context() -> None:
    """Reset all context variables."""
    _execution_id.set(None)
    _recipe_id.set(None)
    _node_id.set(None)
    _attempt.set(None)
