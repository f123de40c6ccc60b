# src/pipeline/retry.py — v1
"""Per-node attempt policy: retries, linear backoff, timeout, cancellation.

Only ``onError: retry`` re-attempts a node: ``retryCount`` extra
attempts spaced by ``retryPolicy.backoffMs × attempt``. Every attempt is
bounded by the node timeout and raced against the run's cancellation
token. Errors other than ActionExecutionError are never retried.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from recipeflow.core.errors import ActionExecutionError, ExecutionCancelledError
from recipeflow.core.models import ExecutionConfig, Node
from recipeflow.pipeline.cancellation import CancellationToken

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryHook = Callable[[int, ActionExecutionError], Awaitable[None]]


@dataclass(frozen=True)
class AttemptPolicy:
    """How many times and how long a node may run."""

    max_attempts: int = 1
    backoff_ms: int = 0
    timeout_ms: int | None = None

    @classmethod
    def for_node(
        cls,
        node: Node,
        execution_config: ExecutionConfig,
        default_timeout_ms: int | None = None,
    ) -> AttemptPolicy:
        handling = node.error_handling
        retries = handling.retry_count if handling.on_error == "retry" else 0
        return cls(
            max_attempts=retries + 1,
            backoff_ms=execution_config.retry_policy.backoff_ms,
            timeout_ms=handling.timeout_ms or default_timeout_ms,
        )

    def delay_s(self, attempt: int) -> float:
        """Delay before the attempt following ``attempt`` (1-based)."""
        return self.backoff_ms * attempt / 1000


async def bounded(
    awaitable: Awaitable[T],
    *,
    node_id: str,
    timeout_ms: int | None = None,
    token: CancellationToken | None = None,
) -> T:
    """Await under a timeout while racing a cancellation token.

    Raises:
        ActionExecutionError: code TIMEOUT when the timeout expires.
        ExecutionCancelledError: When the token fires first.
    """
    task = asyncio.ensure_future(awaitable)
    waiters: set[asyncio.Future] = {task}
    cancel_waiter: asyncio.Future | None = None
    if token is not None:
        if token.cancelled:
            task.cancel()
            await asyncio.wait({task})
            raise ExecutionCancelledError(token.reason or "cancelled")
        cancel_waiter = asyncio.ensure_future(token.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(
            waiters,
            timeout=timeout_ms / 1000 if timeout_ms else None,
            return_when=asyncio.FIRST_COMPLETED,
        )
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    await asyncio.wait({task})
    if cancel_waiter is not None and cancel_waiter in done:
        raise ExecutionCancelledError(token.reason or "cancelled")
    raise ActionExecutionError(node_id, f"timed out after {timeout_ms}ms", code="TIMEOUT")


async def run_with_policy(
    node_id: str,
    attempt_fn: Callable[[int], Awaitable[T]],
    policy: AttemptPolicy,
    *,
    token: CancellationToken | None = None,
    on_retry: RetryHook | None = None,
) -> tuple[T, int]:
    """Run ``attempt_fn(attempt)`` until it succeeds or attempts run out.

    Returns:
        (result, number of attempts used)

    Raises:
        ActionExecutionError: Last failure, with ``attempts`` set.
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            result = await bounded(
                attempt_fn(attempt), node_id=node_id, timeout_ms=policy.timeout_ms, token=token
            )
            return result, attempt
        except ActionExecutionError as exc:
            exc.attempts = attempt
            if attempt >= policy.max_attempts:
                raise
            delay = policy.delay_s(attempt)
            logger.warning(
                "Node '%s' failed (attempt %d/%d, %s), retrying in %.1fs",
                node_id, attempt, policy.max_attempts, exc.code, delay,
            )
            if on_retry is not None:
                await on_retry(attempt, exc)
            if delay > 0:
                await bounded(asyncio.sleep(delay), node_id=node_id, token=token)

    raise AssertionError("unreachable: max_attempts must be >= 1")
