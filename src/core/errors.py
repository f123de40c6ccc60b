# src/core/errors.py — v1
"""Error taxonomy for recipe validation and execution.

ValidationError          recipe malformed, never executed
UnresolvedReferenceError input mapping cannot be satisfied, fatal to the node
ActionExecutionError     provider/transform call failed or timed out
CascadeFailure           node blocked by a failed upstream dependency
ExecutionCancelledError  run cancelled by the caller or its deadline
"""

from __future__ import annotations


class RecipeFlowError(Exception):
    """Base class for all recipeflow errors."""


class ValidationError(RecipeFlowError):
    """Raised when a recipe fails DAG validation.

    Carries every violation found, not only the first.
    """

    def __init__(self, errors: list[str], recipe_id: str | None = None) -> None:
        self.errors = list(errors)
        self.recipe_id = recipe_id
        prefix = f"Recipe '{recipe_id}' is invalid" if recipe_id else "Recipe is invalid"
        super().__init__(f"{prefix}: {'; '.join(self.errors)}")


class RecipeNotFoundError(RecipeFlowError):
    """Raised when a recipe id does not exist in the definition store."""

    def __init__(self, recipe_id: str) -> None:
        self.recipe_id = recipe_id
        super().__init__(f"Recipe {recipe_id} not found")


class ExecutionNotFoundError(RecipeFlowError):
    """Raised when an execution id does not exist in the tracker store."""

    def __init__(self, execution_id: str) -> None:
        self.execution_id = execution_id
        super().__init__(f"Execution {execution_id} not found")


class UnresolvedReferenceError(RecipeFlowError):
    """Raised when an input mapping source cannot be resolved."""

    code = "UNRESOLVED_REFERENCE"

    def __init__(self, param: str, reference: str, reason: str) -> None:
        self.param = param
        self.reference = reference
        self.reason = reason
        super().__init__(
            f"Cannot resolve input '{param}' from '{reference}': {reason}"
        )


class ActionExecutionError(RecipeFlowError):
    """Raised when a node's action fails (provider error, transform error, timeout)."""

    def __init__(
        self,
        node_id: str,
        message: str,
        code: str = "ACTION_FAILED",
        attempts: int = 1,
    ) -> None:
        self.node_id = node_id
        self.code = code
        self.attempts = attempts
        super().__init__(f"Node '{node_id}' failed: {message}")


class CascadeFailure(RecipeFlowError):
    """Raised for a node that cannot run because a dependency did not complete."""

    code = "CASCADE_FAILURE"

    def __init__(self, node_id: str, failed_dependencies: list[str]) -> None:
        self.node_id = node_id
        self.failed_dependencies = list(failed_dependencies)
        super().__init__(
            f"Node '{node_id}' not executed: dependencies did not complete "
            f"({', '.join(self.failed_dependencies)})"
        )


class ExecutionStateError(RecipeFlowError):
    """Raised on an illegal execution record mutation."""


class ExecutionCancelledError(RecipeFlowError):
    """Raised inside a run when its cancellation token fires."""

    code = "CANCELLED"

    def __init__(self, reason: str = "cancelled") -> None:
        self.reason = reason
        super().__init__(f"Execution cancelled: {reason}")
