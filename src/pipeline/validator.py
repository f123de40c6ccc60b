# src/pipeline/validator.py — v1
"""DAG validator — structural checks run before any execution.

Accumulates every violation instead of failing on the first one, so a
recipe author sees the complete list of problems in one pass.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from recipeflow.core.errors import ValidationError
from recipeflow.core.models import EXTERNAL_INPUT_PREFIX, LITERAL_PREFIX, Recipe
from recipeflow.pipeline.dag_builder import ancestors

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Outcome of validate_recipe(): valid iff errors is empty."""

    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self, recipe_id: str | None = None) -> None:
        if self.errors:
            raise ValidationError(self.errors, recipe_id=recipe_id)


def split_reference(reference: str) -> tuple[str, str | None]:
    """Split an output reference into (output_key, nested path).

    ``personaDetails.traits.age`` → ("personaDetails", "traits.age").
    The legacy ``<key>.output`` suffix means the whole output.
    """
    key, _, path = reference.partition(".")
    if not path or path == "output":
        return key, None
    return key, path


def validate_recipe(recipe: Recipe, *, allow_orphan_nodes: bool = True) -> ValidationResult:
    """Run every structural check and collect violations."""
    errors: list[str] = []
    _check_nodes(recipe, errors)
    _check_unique_ids(recipe, errors)
    _check_dependencies(recipe, errors)
    _check_edges(recipe, errors)
    _check_input_mappings(recipe, errors)
    cycle_nodes = _check_cycles(recipe, errors)
    _check_reachability(recipe, errors, cycle_nodes, allow_orphan_nodes)

    if errors:
        logger.info("Recipe '%s' failed validation with %d error(s)", recipe.id, len(errors))
    return ValidationResult(errors=errors)


def validate_document(
    document: dict[str, Any], *, allow_orphan_nodes: bool = True
) -> tuple[Recipe | None, ValidationResult]:
    """Parse a raw recipe document, then validate it.

    Schema problems (unknown node type, missing outputKey ...) are reported
    as validation errors instead of raising.
    """
    try:
        recipe = Recipe.model_validate(document)
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        return None, ValidationResult(errors=errors)
    return recipe, validate_recipe(recipe, allow_orphan_nodes=allow_orphan_nodes)


# --- Individual checks ---


def _check_nodes(recipe: Recipe, errors: list[str]) -> None:
    if not recipe.nodes:
        errors.append("Recipe must contain at least one node")
        return

    producers: dict[str, list[str]] = defaultdict(list)
    for node in recipe.nodes:
        if node.is_generation and node.ai_model is None:
            errors.append(f"Node '{node.id}' (type: {node.type}) is missing aiModel configuration")
        if not node.output_key:
            errors.append(f"Node '{node.id}' is missing required field: outputKey")
        else:
            producers[node.output_key].append(node.id)

    for key, node_ids in producers.items():
        if len(node_ids) > 1:
            errors.append(f"Output key '{key}' is produced by multiple nodes: {', '.join(node_ids)}")


def _check_unique_ids(recipe: Recipe, errors: list[str]) -> None:
    seen: set[str] = set()
    for node in recipe.nodes:
        if node.id in seen:
            errors.append(f"Duplicate node id: '{node.id}'")
        seen.add(node.id)


def _check_dependencies(recipe: Recipe, errors: list[str]) -> None:
    node_ids = set(recipe.node_map)
    for node in recipe.nodes:
        for dep in node.dependencies:
            if dep == node.id:
                errors.append(f"Node '{node.id}' depends on itself")
            elif dep not in node_ids:
                errors.append(f"Node '{node.id}' depends on unknown node '{dep}'")


def _check_edges(recipe: Recipe, errors: list[str]) -> None:
    # No edges means no visualization data; dependencies alone define the DAG
    if not recipe.edges:
        return

    node_map = recipe.node_map
    edge_pairs: set[tuple[str, str]] = set()
    for edge in recipe.edges:
        src, dst = edge.from_node, edge.to_node
        if src not in node_map:
            errors.append(f"Edge {src} -> {dst} references unknown node '{src}'")
        if dst not in node_map:
            errors.append(f"Edge {src} -> {dst} references unknown node '{dst}'")
        if src == dst:
            errors.append(f"Self-loops are not allowed. Edge: {src} -> {dst}")
            continue
        if src in node_map and dst in node_map:
            edge_pairs.add((src, dst))
            if src not in node_map[dst].dependencies:
                errors.append(
                    f"Edge {src} -> {dst} has no matching dependency: "
                    f"node '{dst}' does not list '{src}'"
                )

    for node in recipe.nodes:
        for dep in node.dependencies:
            if dep in node_map and dep != node.id and (dep, node.id) not in edge_pairs:
                errors.append(
                    f"Node '{node.id}' declares dependency on '{dep}', "
                    f"but no edge exists from {dep} to {node.id}"
                )


def _check_input_mappings(recipe: Recipe, errors: list[str]) -> None:
    producer_of: dict[str, str] = {}
    for node in recipe.nodes:
        producer_of.setdefault(node.output_key, node.id)

    for node in recipe.nodes:
        upstream: set[str] | None = None
        for param, source in node.input_mapping.items():
            if source.startswith(LITERAL_PREFIX):
                continue
            if source.startswith(EXTERNAL_INPUT_PREFIX):
                if not source[len(EXTERNAL_INPUT_PREFIX):]:
                    errors.append(f"Node '{node.id}' input '{param}' has an empty external_input path")
                continue

            # Full reference wins over a dotted split (keys may contain dots)
            key = source if source in producer_of else split_reference(source)[0]
            producer = producer_of.get(key)
            if producer is None:
                errors.append(
                    f"Node '{node.id}' input '{param}' references unknown output key '{key}'"
                )
                continue
            if producer == node.id:
                errors.append(f"Node '{node.id}' input '{param}' reads its own output '{key}'")
                continue
            if upstream is None:
                upstream = ancestors(recipe, node.id)
            if producer not in upstream:
                errors.append(
                    f"Node '{node.id}' input '{param}' reads '{key}' from node '{producer}', "
                    f"which is not one of its dependencies"
                )


def _check_cycles(recipe: Recipe, errors: list[str]) -> set[str]:
    """DFS with a recursion stack; a back edge is a cycle.

    Returns the set of nodes that lie on a cycle.
    """
    dependents: dict[str, list[str]] = {node_id: [] for node_id in recipe.node_map}
    for node in recipe.nodes:
        for dep in node.dependencies:
            if dep in dependents and dep != node.id:
                dependents[dep].append(node.id)

    visited: set[str] = set()
    on_stack: list[str] = []
    on_stack_set: set[str] = set()
    cycle_nodes: set[str] = set()
    cycles: list[list[str]] = []

    def visit(node_id: str) -> None:
        visited.add(node_id)
        on_stack.append(node_id)
        on_stack_set.add(node_id)
        for neighbor in dependents[node_id]:
            if neighbor not in visited:
                visit(neighbor)
            elif neighbor in on_stack_set:
                cycle = on_stack[on_stack.index(neighbor):]
                cycle_nodes.update(cycle)
                cycles.append(cycle + [neighbor])
        on_stack.pop()
        on_stack_set.discard(node_id)

    for node_id in dependents:
        if node_id not in visited:
            visit(node_id)

    for cycle in cycles:
        errors.append(f"Cycle detected in DAG: {' -> '.join(cycle)}")
    return cycle_nodes


def _check_reachability(
    recipe: Recipe,
    errors: list[str],
    cycle_nodes: set[str],
    allow_orphan_nodes: bool,
) -> None:
    node_map = recipe.node_map
    if not node_map:
        return

    entries = [n.id for n in recipe.nodes if not n.dependencies]
    dependents: dict[str, list[str]] = defaultdict(list)
    for node in recipe.nodes:
        for dep in node.dependencies:
            dependents[dep].append(node.id)

    if not allow_orphan_nodes and len(node_map) > 1:
        for node_id in dict.fromkeys(entries):
            if not dependents.get(node_id):
                errors.append(f"Node '{node_id}' is isolated (no dependencies and no dependents)")

    # A node is reached once all of its (known) dependencies are reached
    pending = {
        node_id: {d for d in node.dependencies if d in node_map and d != node_id}
        for node_id, node in node_map.items()
    }
    ready = [node_id for node_id, deps in pending.items() if not deps]
    reached: set[str] = set()
    while ready:
        current = ready.pop()
        reached.add(current)
        for dependent in dict.fromkeys(dependents.get(current, [])):
            deps = pending[dependent]
            if current in deps:
                deps.discard(current)
                if not deps:
                    ready.append(dependent)

    for node_id in node_map:
        if node_id not in reached:
            blocked = cycle_nodes & (ancestors(recipe, node_id) | {node_id})
            suffix = " (blocked by a cycle)" if blocked else ""
            errors.append(f"Node '{node_id}' is unreachable from any entry node{suffix}")
