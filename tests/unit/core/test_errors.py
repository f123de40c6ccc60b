# tests/unit/core/test_errors.py — v1
"""Tests for core/errors.py — messages and diagnostic fields."""

from __future__ import annotations

from recipeflow.core.errors import (
    ActionExecutionError,
    CascadeFailure,
    ExecutionCancelledError,
    RecipeFlowError,
    RecipeNotFoundError,
    UnresolvedReferenceError,
    ValidationError,
)


def test_validation_error_lists_every_violation():
    exc = ValidationError(["first", "second"], recipe_id="r1")
    assert exc.errors == ["first", "second"]
    assert str(exc) == "Recipe 'r1' is invalid: first; second"


def test_action_error_fields():
    exc = ActionExecutionError("n1", "timed out after 10ms", code="TIMEOUT", attempts=3)
    assert (exc.node_id, exc.code, exc.attempts) == ("n1", "TIMEOUT", 3)
    assert str(exc) == "Node 'n1' failed: timed out after 10ms"


def test_codes():
    assert UnresolvedReferenceError("x", "y", "z").code == "UNRESOLVED_REFERENCE"
    assert CascadeFailure("b", ["a"]).code == "CASCADE_FAILURE"
    assert ExecutionCancelledError().code == "CANCELLED"


def test_cascade_message_names_dependencies():
    assert "(a, c)" in str(CascadeFailure("b", ["a", "c"]))


def test_common_base():
    for exc in (RecipeNotFoundError("r"), ValidationError([]), CascadeFailure("b", [])):
        assert isinstance(exc, RecipeFlowError)
