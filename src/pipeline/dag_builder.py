# src/pipeline/dag_builder.py — v2
"""DAG builder — build execution plan from node dependencies.

Produces a topologically sorted execution plan grouped in levels.
Execution order always comes from ``dependencies``; the node ``order``
field is only a display hint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from recipeflow.core.errors import RecipeFlowError
from recipeflow.core.models import Recipe

logger = logging.getLogger(__name__)


class DAGError(RecipeFlowError):
    """Raised when DAG construction fails (cycle, missing dep)."""


@dataclass
class ExecutionPlan:
    """Ordered execution plan for recipe nodes.

    stages is a list of "levels": nodes within the same level can run
    concurrently (no mutual dependencies). Levels execute sequentially.
    """

    stages: list[list[str]] = field(default_factory=list)
    total_nodes: int = 0

    @property
    def flat_order(self) -> list[str]:
        """Return a flat topological ordering (no concurrency info)."""
        return [node for stage in self.stages for node in stage]

    def level_of(self, node_id: str) -> int:
        for index, stage in enumerate(self.stages):
            if node_id in stage:
                return index
        raise KeyError(node_id)


def build_dag(
    dependency_map: dict[str, list[str]],
    declared_order: list[str] | None = None,
) -> ExecutionPlan:
    """Build an execution DAG from dependency declarations.

    Uses Kahn's algorithm for topological sort with level detection.
    Each level contains nodes whose dependencies are fully resolved
    by previous levels.

    Args:
        dependency_map: node_id -> list of dependency node ids.
        declared_order: Tie-break order within a level (declaration order
            of the recipe). Defaults to alphabetical.

    Returns:
        ExecutionPlan with staged execution order.

    Raises:
        DAGError: If a cycle is detected or a dependency is missing.
    """
    if not dependency_map:
        return ExecutionPlan()

    all_nodes = set(dependency_map.keys())
    for node, deps in dependency_map.items():
        for dep in deps:
            if dep not in all_nodes:
                raise DAGError(f"Node '{node}' depends on '{dep}' which does not exist")

    rank = {n: i for i, n in enumerate(declared_order or sorted(all_nodes))}

    def ordered(nodes: list[str]) -> list[str]:
        return sorted(nodes, key=lambda n: (rank.get(n, len(rank)), n))

    # Build adjacency and in-degree (duplicate dependency entries count once)
    in_degree: dict[str, int] = {n: 0 for n in all_nodes}
    dependents: dict[str, list[str]] = {n: [] for n in all_nodes}

    for node, deps in dependency_map.items():
        for dep in set(deps):
            dependents[dep].append(node)
            in_degree[node] += 1

    # Kahn's algorithm with level tracking
    stages: list[list[str]] = []
    queue = ordered([n for n, d in in_degree.items() if d == 0])
    processed = 0

    while queue:
        # Every node in the current queue has in_degree 0 → same level
        stages.append(queue)
        next_queue: list[str] = []
        for node in queue:
            processed += 1
            for dependent in dependents[node]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    next_queue.append(dependent)
        queue = ordered(next_queue)

    if processed != len(all_nodes):
        remaining = ordered([n for n in all_nodes if in_degree[n] > 0])
        raise DAGError(f"Cycle detected involving nodes: {remaining}")

    plan = ExecutionPlan(stages=stages, total_nodes=processed)
    logger.debug(
        "DAG built: %d nodes in %d stages → %s",
        plan.total_nodes,
        len(plan.stages),
        plan.flat_order,
    )
    return plan


def build_execution_plan(recipe: Recipe) -> ExecutionPlan:
    """Execution plan for a recipe, ties broken by declaration order."""
    return build_dag(recipe.dependency_map(), [node.id for node in recipe.nodes])


def ancestors(recipe: Recipe, node_id: str) -> set[str]:
    """All direct and transitive dependencies of a node.

    Unknown ids are ignored and cycles terminate, so this is safe to call
    on recipes that have not been validated.
    """
    dependency_map = recipe.dependency_map()
    seen: set[str] = set()
    stack = list(dependency_map.get(node_id, []))
    while stack:
        current = stack.pop()
        if current in seen or current not in dependency_map:
            continue
        seen.add(current)
        stack.extend(dependency_map[current])
    seen.discard(node_id)
    return seen


def descendants(recipe: Recipe, node_id: str) -> set[str]:
    """All nodes that directly or transitively depend on a node."""
    dependents: dict[str, list[str]] = {}
    for node in recipe.nodes:
        for dep in node.dependencies:
            dependents.setdefault(dep, []).append(node.id)
    seen: set[str] = set()
    stack = list(dependents.get(node_id, []))
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        stack.extend(dependents.get(current, []))
    seen.discard(node_id)
    return seen
