# src/pipeline/cancellation.py — v1
"""Cooperative cancellation for recipe runs.

A token is checked before each node and raced against every attempt.
Child tokens fire when their parent fires, which is how a run links the
caller's token with its own deadline.
"""

from __future__ import annotations

import asyncio

from recipeflow.core.errors import ExecutionCancelledError

DEADLINE_REASON = "deadline"


class CancellationToken:
    """One-shot cancellation signal."""

    def __init__(self, parent: CancellationToken | None = None) -> None:
        self._event = asyncio.Event()
        self._children: list[CancellationToken] = []
        self._parent = parent
        self.reason: str | None = None
        if parent is not None:
            parent._children.append(self)
            if parent.cancelled:
                self.cancel(parent.reason or "cancelled")

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()
        for child in self._children:
            child.cancel(reason)

    def child(self) -> CancellationToken:
        return CancellationToken(parent=self)

    def detach(self) -> None:
        """Stop following the parent token. Called when a run ends."""
        if self._parent is not None:
            if self in self._parent._children:
                self._parent._children.remove(self)
            self._parent = None

    async def wait(self) -> str | None:
        await self._event.wait()
        return self.reason

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise ExecutionCancelledError(self.reason or "cancelled")
