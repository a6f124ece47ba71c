"""Trailing-edge coalescing of rapid edits into a single downstream event."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Generic, Optional, Set, TypeVar

T = TypeVar("T")

DEBOUNCE_SECONDS = 0.5


class Debouncer(Generic[T]):
    """Deliver only the last value pushed within a quiet window.

    Every `push` restarts the timer; when it expires without another push the
    latest value is handed to `callback`. Coroutine callbacks are scheduled as
    tasks on the running loop.

    Args:
        callback: Receives the coalesced value.
        wait: Quiet window in seconds.
    """

    def __init__(self, callback: Callable[[T], Any], wait: float = DEBOUNCE_SECONDS) -> None:
        self._callback = callback
        self.wait = wait
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending: Optional[T] = None
        self._has_pending = False
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._has_pending

    def push(self, value: T) -> None:
        """Record `value` and restart the quiet window. Needs a running loop."""
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._pending = value
        self._has_pending = True
        self._handle = loop.call_later(self.wait, self.flush)

    def flush(self) -> None:
        """Deliver the pending value now, if there is one."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if not self._has_pending:
            return
        value = self._pending
        self._pending = None
        self._has_pending = False
        result = self._callback(value)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def cancel(self) -> None:
        """Drop the pending value without delivering it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None
        self._has_pending = False

    async def drain(self) -> None:
        """Wait for callbacks already delivered to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logging.error("Debounced callback failed: %s", task.exception())
