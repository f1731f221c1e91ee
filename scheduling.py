"""Repeating-task schedulers for press-and-hold stepping.

The stepper never owns a clock.  Whoever hosts it hands in a ``Scheduler``
that runs callbacks on the same thread that delivers UI events:

ManualScheduler   deterministic, advanced explicitly (tests, headless shells)
AsyncioScheduler  repeats on an asyncio event loop via ``loop.call_later``
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs ``callback`` every ``interval`` seconds until cancelled."""

    def call_repeating(
        self, interval: float, callback: Callable[[], None]
    ) -> Cancellable: ...


# ---------------------------------------------------------------------------
# Manual
# ---------------------------------------------------------------------------

@dataclass
class _ManualTask:
    interval: float
    callback: Callable[[], None]
    due: float
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """A scheduler whose clock only moves when ``advance`` is called."""

    # Absorbs float drift from accumulating intervals (0.2 * 3 != 0.6).
    EPSILON = 1e-9

    def __init__(self) -> None:
        self.now = 0.0
        self._tasks: list[_ManualTask] = []

    def call_repeating(
        self, interval: float, callback: Callable[[], None]
    ) -> _ManualTask:
        if interval <= 0:
            raise ValueError(f"interval ({interval}) must be positive")
        task = _ManualTask(interval=interval, callback=callback, due=self.now + interval)
        self._tasks.append(task)
        return task

    @property
    def pending(self) -> int:
        """Number of live (uncancelled) repeating tasks."""
        return sum(1 for t in self._tasks if not t.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every tick that falls due.

        Returns the number of callbacks fired.
        """
        target = self.now + seconds
        fired = 0
        while True:
            due = [
                t for t in self._tasks
                if not t.cancelled and t.due <= target + self.EPSILON
            ]
            if not due:
                break
            task = min(due, key=lambda t: t.due)
            self.now = task.due
            task.due += task.interval
            task.callback()
            fired += 1
        self.now = target
        self._tasks = [t for t in self._tasks if not t.cancelled]
        return fired


# ---------------------------------------------------------------------------
# asyncio
# ---------------------------------------------------------------------------

class _AsyncioRepeat:
    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval: float,
        callback: Callable[[], None],
    ) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._handle = loop.call_later(interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        # Re-arm first so a cancel() issued by the callback wins.
        self._handle = self._loop.call_later(self._interval, self._fire)
        self._callback()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        self._handle.cancel()


class AsyncioScheduler:
    """Schedules repeats on an event loop (the running loop by default)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_repeating(
        self, interval: float, callback: Callable[[], None]
    ) -> _AsyncioRepeat:
        if interval <= 0:
            raise ValueError(f"interval ({interval}) must be positive")
        loop = self._loop or asyncio.get_running_loop()
        logger.debug("Scheduling repeat every %.3fs on %r", interval, loop)
        return _AsyncioRepeat(loop, interval, callback)
