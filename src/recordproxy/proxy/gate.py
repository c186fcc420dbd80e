"""One-shot readiness gate shared by every proxy entry point."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable


class ReadinessGate:
    """Runs an async initializer once and lets any number of callers wait on it.

    The first :meth:`wait` starts the initializer as a task; every later or
    concurrent caller awaits that same task. A failed initialization is
    re-raised to every waiter and is not retried.

    Example:
        gate = ReadinessGate(open_store)
        await asyncio.gather(gate.wait(), gate.wait())  # open_store ran once
    """

    def __init__(self, initializer: Callable[[], Awaitable[None]]):
        self._initializer = initializer
        self._task: asyncio.Task[None] | None = None

    @property
    def is_ready(self) -> bool:
        return (
            self._task is not None
            and self._task.done()
            and not self._task.cancelled()
            and self._task.exception() is None
        )

    async def wait(self) -> None:
        if self._task is None:
            self._task = asyncio.ensure_future(self._initializer())
        # Shield so a cancelled waiter does not cancel the shared initialization.
        await asyncio.shield(self._task)

    async def settle(self) -> None:
        """Wait for a started initialization to finish without raising its error."""
        if self._task is not None:
            await asyncio.wait({self._task})


__all__ = ["ReadinessGate"]
