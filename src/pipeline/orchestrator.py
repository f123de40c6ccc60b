# src/pipeline/orchestrator.py — v2
"""Recipe orchestrator — validate, plan and run a recipe end to end.

State machine per run:  pending → running → completed | failed | cancelled

Walks the execution plan level by level. A node runs only when every
dependency completed; otherwise it fails by cascade without being
executed. Per-node failure policy (fail / skip / retry) decides whether
the run continues. Every node outcome is written to the execution
tracker as it happens, so a run can be polled while in progress.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from recipeflow.core.errors import (
    ActionExecutionError,
    CascadeFailure,
    ExecutionCancelledError,
    ExecutionNotFoundError,
    RecipeFlowError,
    RecipeNotFoundError,
    UnresolvedReferenceError,
)
from recipeflow.core.models import ExecutionContext, Node, Recipe
from recipeflow.logging.context import (
    clear_context,
    set_execution_context,
    set_node_context,
)
from recipeflow.pipeline.cancellation import DEADLINE_REASON, CancellationToken
from recipeflow.pipeline.dag_builder import (
    ExecutionPlan,
    ancestors,
    build_execution_plan,
)
from recipeflow.pipeline.input_resolver import resolve_inputs
from recipeflow.pipeline.retry import AttemptPolicy, run_with_policy
from recipeflow.pipeline.validator import validate_recipe
from recipeflow.tracking.models import (
    Execution,
    ExecutionStatus,
    ExecutionSummary,
    NodeError,
    NodeResult,
    NodeStatus,
)

if TYPE_CHECKING:
    from recipeflow.config.settings import Settings
    from recipeflow.pipeline.executor import ActionExecutor, ActionResult
    from recipeflow.recipes.manager import RecipeManager
    from recipeflow.tracking.execution_tracker import ExecutionTracker

logger = logging.getLogger(__name__)

DEFAULT_MAX_PARALLEL_NODES = 4


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_execution_id() -> str:
    return f"exec_{uuid.uuid4().hex}"


@dataclass
class RecipeRunResult:
    """Finished run: the persisted record plus raw (unsanitized) outputs."""

    execution: Execution
    outputs: dict[str, Any] = field(default_factory=dict)

    @property
    def execution_id(self) -> str:
        return self.execution.execution_id

    @property
    def status(self) -> str:
        return self.execution.status


@dataclass
class NodeTestReport:
    """Outcome of one node run by test_node()."""

    node_id: str
    success: bool
    node_type: str | None = None
    node_name: str | None = None
    input: Any = None
    output: Any = None
    duration_ms: int = 0
    error: NodeError | None = None


@dataclass
class NodeTestResult:
    """test_node() result: the target node and the dependencies run before it."""

    result: NodeTestReport
    dependency_results: list[NodeTestReport] = field(default_factory=list)


@dataclass
class _RunState:
    recipe: Recipe
    execution_id: str
    external_input: dict[str, Any]
    token: CancellationToken
    outputs: dict[str, Any] = field(default_factory=dict)
    statuses: dict[str, NodeStatus] = field(default_factory=dict)
    failed_node_id: str | None = None
    error: str | None = None

    @property
    def halted(self) -> bool:
        return self.failed_node_id is not None or self.token.cancelled


class RecipeOrchestrator:
    """Run recipes loaded from a RecipeManager.

    Args:
        recipes: Source of recipe definitions.
        executor: Runs individual nodes.
        tracker: Persists execution state.
        settings: Supplies parallelism, default node timeout and the
            orphan-node validation rule. Defaults apply when omitted.
    """

    def __init__(
        self,
        recipes: RecipeManager,
        executor: ActionExecutor,
        tracker: ExecutionTracker,
        settings: Settings | None = None,
    ) -> None:
        self._recipes = recipes
        self._executor = executor
        self._tracker = tracker
        self._max_parallel = settings.max_parallel_nodes if settings else DEFAULT_MAX_PARALLEL_NODES
        self._default_timeout_ms = settings.default_node_timeout_ms if settings else None
        self._allow_orphans = settings.recipe_allow_orphan_nodes if settings else True
        self._active: dict[str, CancellationToken] = {}

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    async def execute_recipe(
        self,
        recipe_id: str,
        external_input: dict[str, Any] | None = None,
        context: ExecutionContext | None = None,
        *,
        token: CancellationToken | None = None,
    ) -> str:
        """Run a recipe to completion and return its execution id.

        Raises:
            RecipeNotFoundError: Unknown recipe id.
            ValidationError: Recipe failed DAG validation (no run created).
        """
        result = await self.run_recipe(recipe_id, external_input, context, token=token)
        return result.execution_id

    async def run_recipe(
        self,
        recipe_id: str,
        external_input: dict[str, Any] | None = None,
        context: ExecutionContext | None = None,
        *,
        token: CancellationToken | None = None,
        retry_of: str | None = None,
    ) -> RecipeRunResult:
        """Run a recipe and return the final record with raw outputs."""
        recipe = await self._load_recipe(recipe_id)
        validate_recipe(recipe, allow_orphan_nodes=self._allow_orphans).raise_for_errors(recipe.id)
        plan = build_execution_plan(recipe)
        context = context or ExecutionContext()

        execution = Execution(
            execution_id=new_execution_id(),
            recipe_id=recipe.id,
            recipe_version=recipe.version,
            project_id=context.project_id,
            stage_id=context.stage_id,
            triggered_by=context.user_id or "system",
            input=dict(external_input or {}),
            node_results={node.id: NodeResult(node_id=node.id) for node in recipe.nodes},
            retry_of=retry_of,
        )
        await self._tracker.create(execution)

        state = _RunState(
            recipe=recipe,
            execution_id=execution.execution_id,
            external_input=dict(external_input or {}),
            token=CancellationToken(parent=token),
        )
        timeout_ms = recipe.execution_config.timeout_ms
        deadline = asyncio.get_running_loop().call_later(
            timeout_ms / 1000, state.token.cancel, DEADLINE_REASON
        )
        self._active[execution.execution_id] = state.token

        set_execution_context(execution.execution_id, recipe.id)
        try:
            await self._tracker.set_status(execution.execution_id, "running")
            logger.info(
                "Running recipe '%s' v%d: %d nodes in %d levels",
                recipe.name, recipe.version, plan.total_nodes, len(plan.stages),
            )
            await self._walk(plan, state)
            execution = await self._finish(state, plan)
        except BaseException as exc:
            await asyncio.shield(self._abort(state, plan, exc))
            raise
        finally:
            deadline.cancel()
            state.token.detach()
            self._active.pop(execution.execution_id, None)
            clear_context()

        return RecipeRunResult(execution=execution, outputs=self._final_output(state))

    async def _load_recipe(self, recipe_id: str) -> Recipe:
        recipe = await self._recipes.get_recipe(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        return recipe

    async def _walk(self, plan: ExecutionPlan, state: _RunState) -> None:
        node_map = state.recipe.node_map
        parallel = state.recipe.execution_config.parallel_execution

        for level, node_ids in enumerate(plan.stages):
            if state.halted:
                break
            logger.debug("Level %d/%d: %s", level + 1, len(plan.stages), node_ids)

            if parallel and len(node_ids) > 1:
                semaphore = asyncio.Semaphore(self._max_parallel)

                async def guarded(node: Node) -> None:
                    async with semaphore:
                        await self._run_node(state, node)

                # Let every sibling settle before an unexpected error escapes
                outcomes = await asyncio.gather(
                    *(guarded(node_map[n]) for n in node_ids), return_exceptions=True
                )
                for outcome in outcomes:
                    if isinstance(outcome, BaseException):
                        raise outcome
            else:
                for node_id in node_ids:
                    if state.halted:
                        break
                    await self._run_node(state, node_map[node_id])

    async def _run_node(self, state: _RunState, node: Node) -> None:
        if state.halted:
            return
        set_node_context(node.id)

        blocked = [d for d in node.dependencies if state.statuses.get(d) != "completed"]
        if blocked:
            cascade = CascadeFailure(node.id, blocked)
            logger.warning("%s", cascade)
            state.statuses[node.id] = "failed"
            await self._record(
                state, node, status="failed", started_at=_now(),
                error=NodeError(message=str(cascade), code=cascade.code, attempts=0),
            )
            return

        started_at = _now()
        start = time.monotonic()
        try:
            inputs = resolve_inputs(node.input_mapping, state.outputs, state.external_input)
        except UnresolvedReferenceError as exc:
            await self._fail_node(state, node, str(exc), exc.code, 0, started_at, start)
            return

        await self._record(state, node, status="running", started_at=started_at, input=inputs)
        policy = AttemptPolicy.for_node(node, state.recipe.execution_config, self._default_timeout_ms)

        async def attempt(number: int) -> ActionResult:
            set_node_context(node.id, number)
            return await self._executor.execute(node, inputs, execution_id=state.execution_id)

        async def on_retry(number: int, exc: ActionExecutionError) -> None:
            await self._record(
                state, node, status="running", started_at=started_at, input=inputs,
                retries_used=number,
                error=NodeError(message=str(exc), code=exc.code, attempts=number),
            )

        try:
            result, attempts = await run_with_policy(
                node.id, attempt, policy, token=state.token, on_retry=on_retry
            )
        except ExecutionCancelledError as exc:
            await self._interrupt_node(state, node, exc.reason, started_at, start, inputs)
            return
        except ActionExecutionError as exc:
            await self._fail_node(
                state, node, str(exc), exc.code, exc.attempts, started_at, start, inputs
            )
            return

        state.outputs[node.output_key] = result.output
        state.statuses[node.id] = "completed"
        await self._record(
            state, node, status="completed", started_at=started_at, start=start,
            input=inputs, output=result.output, retries_used=attempts - 1,
            token_usage=result.token_usage, provider=result.provider, model=result.model,
        )
        logger.info(
            "Node '%s' completed in %dms (%d attempt(s))",
            node.id, int((time.monotonic() - start) * 1000), attempts,
        )

    async def _fail_node(
        self,
        state: _RunState,
        node: Node,
        message: str,
        code: str,
        attempts: int,
        started_at: datetime,
        start: float,
        inputs: dict[str, Any] | None = None,
    ) -> None:
        handling = node.error_handling
        skip = handling.on_error == "skip" or state.recipe.execution_config.continue_on_error
        state.statuses[node.id] = "failed"
        await self._record(
            state, node, status="failed", started_at=started_at, start=start, input=inputs,
            output=handling.default_output if skip else None,
            retries_used=max(attempts - 1, 0),
            error=NodeError(message=message, code=code, attempts=attempts),
        )
        if skip:
            logger.warning("Node '%s' failed (%s), skipping: %s", node.id, code, message)
            return

        logger.error("Node '%s' failed (%s), aborting run: %s", node.id, code, message)
        if state.failed_node_id is None:
            state.failed_node_id = node.id
            state.error = message

    async def _interrupt_node(
        self,
        state: _RunState,
        node: Node,
        reason: str,
        started_at: datetime,
        start: float,
        inputs: dict[str, Any],
    ) -> None:
        if reason == DEADLINE_REASON:
            status: NodeStatus = "failed"
            error = NodeError(
                message=f"Execution deadline of {state.recipe.execution_config.timeout_ms}ms exceeded",
                code="TIMEOUT",
            )
        else:
            status = "cancelled"
            error = NodeError(message=f"Execution cancelled: {reason}", code="CANCELLED")
        state.statuses[node.id] = status
        await self._record(
            state, node, status=status, started_at=started_at, start=start, input=inputs,
            error=error,
        )

    async def _record(
        self,
        state: _RunState,
        node: Node,
        *,
        status: NodeStatus,
        started_at: datetime | None = None,
        start: float | None = None,
        **fields: Any,
    ) -> None:
        completed_at = _now() if status != "running" else None
        duration_ms = int((time.monotonic() - start) * 1000) if start is not None else None
        if status != "running" and duration_ms is None:
            duration_ms = 0
        result = NodeResult(
            node_id=node.id,
            status=status,
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=duration_ms,
            **fields,
        )
        await self._tracker.record(state.execution_id, node.id, result)

    async def _finish(self, state: _RunState, plan: ExecutionPlan) -> Execution:
        if state.failed_node_id is not None:
            status, error = "failed", state.error
        elif state.token.cancelled and state.token.reason == DEADLINE_REASON:
            status = "failed"
            error = f"Execution deadline of {state.recipe.execution_config.timeout_ms}ms exceeded"
        elif state.token.cancelled:
            status, error = "cancelled", f"Execution cancelled: {state.token.reason}"
        else:
            status, error = "completed", None

        node_map = state.recipe.node_map
        for node_id in plan.flat_order:
            if node_id not in state.statuses:
                await self._record(
                    state, node_map[node_id], status="cancelled",
                    error=NodeError(message="Not run: execution stopped", code="CANCELLED", attempts=0),
                )

        execution = await self._tracker.set_status(
            state.execution_id,
            status,
            error=error,
            failed_node_id=state.failed_node_id,
            final_output=self._final_output(state),
        )
        log = logger.info if status == "completed" else logger.warning
        log("Execution %s finished: %s", state.execution_id, status)
        return execution

    async def _abort(self, state: _RunState, plan: ExecutionPlan, exc: BaseException) -> None:
        """Move a run that died on an unexpected exception to a final state.

        Nodes without a final record are marked cancelled and the run ends
        ``cancelled`` (task cancellation) or ``failed`` (anything else).
        """
        cancelled = isinstance(exc, asyncio.CancelledError)
        status: ExecutionStatus = "cancelled" if cancelled else "failed"
        error = "Execution cancelled: task cancelled" if cancelled else (
            f"Execution aborted: {str(exc) or type(exc).__name__}"
        )
        state.token.cancel("aborted")
        logger.error("Execution %s aborted: %s", state.execution_id, error)

        node_map = state.recipe.node_map
        try:
            stored = await self._tracker.get_status(state.execution_id)
            if stored is None or stored.is_terminal:
                return
            for node_id in plan.flat_order:
                existing = stored.node_results.get(node_id)
                if existing is not None and existing.is_terminal:
                    continue
                state.statuses[node_id] = "cancelled"
                await self._record(
                    state, node_map[node_id], status="cancelled",
                    error=NodeError(message=error, code="CANCELLED", attempts=0),
                )
            await self._tracker.set_status(
                state.execution_id,
                status,
                error=error,
                failed_node_id=state.failed_node_id,
                final_output=self._final_output(state),
            )
        except Exception:
            logger.exception("Could not record the end of execution %s", state.execution_id)

    @staticmethod
    def _final_output(state: _RunState) -> dict[str, Any]:
        return {
            node.output_key: state.outputs[node.output_key]
            for node in state.recipe.nodes
            if state.statuses.get(node.id) == "completed"
        }

    # ------------------------------------------------------------------
    # Execution records
    # ------------------------------------------------------------------

    async def get_execution_status(self, execution_id: str) -> Execution | None:
        return await self._tracker.get_status(execution_id)

    async def get_execution_summary(self, execution_id: str) -> ExecutionSummary | None:
        return await self._tracker.get_summary(execution_id)

    async def get_recipe_executions(self, recipe_id: str, limit: int = 10) -> list[Execution]:
        return await self._tracker.list_for_recipe(recipe_id, limit)

    async def get_project_executions(self, project_id: str, limit: int = 50) -> list[Execution]:
        return await self._tracker.list_for_project(project_id, limit)

    async def cancel_execution(self, execution_id: str) -> bool:
        """Cancel a run.

        A run in progress in this process is stopped at its next node
        boundary (or mid-attempt) and ends ``cancelled``. A stored record
        that is not terminal is marked cancelled directly.

        Returns:
            False if the execution already finished.

        Raises:
            ExecutionNotFoundError: Unknown execution id.
        """
        token = self._active.get(execution_id)
        if token is not None:
            token.cancel("cancelled by caller")
            logger.info("Execution %s cancellation requested", execution_id)
            return True

        execution = await self._tracker.get_status(execution_id)
        if execution is None:
            raise ExecutionNotFoundError(execution_id)
        if execution.is_terminal:
            return False
        await self._tracker.set_status(
            execution_id, "cancelled", error="Execution cancelled: cancelled by caller"
        )
        logger.info("Execution %s cancelled", execution_id)
        return True

    async def retry_execution(self, execution_id: str) -> str:
        """Start a new execution with the input and context of an old one.

        Returns:
            The new execution id.
        """
        original = await self._tracker.get_status(execution_id)
        if original is None:
            raise ExecutionNotFoundError(execution_id)
        context = ExecutionContext(
            project_id=original.project_id,
            stage_id=original.stage_id,
            user_id=original.triggered_by,
        )
        result = await self.run_recipe(
            original.recipe_id, original.input, context, retry_of=execution_id
        )
        logger.info("Retried execution %s as %s", execution_id, result.execution_id)
        return result.execution_id

    # ------------------------------------------------------------------
    # Recipe development
    # ------------------------------------------------------------------

    async def test_node(
        self,
        recipe_id: str,
        node_id: str,
        external_input: dict[str, Any] | None = None,
        execute_dependencies: bool = True,
        mock_outputs: dict[str, Any] | None = None,
    ) -> NodeTestResult:
        """Run one node in isolation, without an execution record.

        Upstream outputs come from ``mock_outputs`` (keyed by output key);
        with ``execute_dependencies`` the missing ones are produced by
        running the node's ancestors first, in plan order.

        Raises:
            RecipeNotFoundError: Unknown recipe id.
            ValueError: Unknown node id.
        """
        recipe = await self._load_recipe(recipe_id)
        target = recipe.get_node(node_id)
        if target is None:
            raise ValueError(f"Node {node_id} not found in recipe {recipe_id}")

        outputs: dict[str, Any] = dict(mock_outputs or {})
        dependency_results: list[NodeTestReport] = []

        if execute_dependencies:
            upstream = ancestors(recipe, node_id)
            for dep_id in build_execution_plan(recipe).flat_order:
                dep = recipe.node_map[dep_id]
                if dep_id not in upstream or dep.output_key in outputs:
                    continue
                report = await self._test_run(dep, outputs, external_input)
                dependency_results.append(report)
                if not report.success:
                    error = NodeError(
                        message=f"Dependency node {dep_id} failed: "
                        f"{report.error.message if report.error else 'unknown error'}",
                        code="DEPENDENCY_NODE_ERROR",
                    )
                    return NodeTestResult(
                        result=NodeTestReport(
                            node_id=node_id, success=False, node_type=target.type,
                            node_name=target.name, error=error,
                        ),
                        dependency_results=dependency_results,
                    )
                outputs[dep.output_key] = report.output

        report = await self._test_run(target, outputs, external_input)
        logger.info(
            "Node test '%s': %s in %dms",
            node_id, "ok" if report.success else "failed", report.duration_ms,
        )
        return NodeTestResult(result=report, dependency_results=dependency_results)

    async def _test_run(
        self,
        node: Node,
        outputs: dict[str, Any],
        external_input: dict[str, Any] | None,
    ) -> NodeTestReport:
        report = NodeTestReport(node_id=node.id, success=False, node_type=node.type, node_name=node.name)
        start = time.monotonic()
        try:
            report.input = resolve_inputs(node.input_mapping, outputs, external_input)
            result = await self._executor.execute(node, report.input)
        except RecipeFlowError as exc:
            report.error = NodeError(message=str(exc), code=getattr(exc, "code", "ACTION_FAILED"))
        else:
            report.success = True
            report.output = result.output
        report.duration_ms = int((time.monotonic() - start) * 1000)
        return report
