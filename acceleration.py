"""Press-and-hold acceleration.

While a button stays pressed, each repeat tick steps by ``step * multiplier``
and then raises the multiplier by one, up to a ceiling.  The controller
also owns the repeat timer for the gesture, so there is exactly one place
that can leak it, and every exit path (press end, limit crossing, teardown)
goes through ``stop_repeating``.
"""
from __future__ import annotations

import logging
from typing import Callable

from scheduling import Cancellable, Scheduler

logger = logging.getLogger(__name__)

DEFAULT_MAX_MULTIPLIER = 10
DEFAULT_REPEAT_INTERVAL = 0.2


class PressRepeater:
    """Single-owner handle on the repeating tick of one press gesture."""

    def __init__(self, scheduler: Scheduler | None, interval: float) -> None:
        self._scheduler = scheduler
        self._interval = interval
        self._handle: Cancellable | None = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self, callback: Callable[[], None]) -> None:
        self.stop()
        if self._scheduler is None:
            return
        self._handle = self._scheduler.call_repeating(self._interval, callback)

    def stop(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()


class AccelerationController:
    def __init__(
        self,
        max_multiplier: int = DEFAULT_MAX_MULTIPLIER,
        scheduler: Scheduler | None = None,
        interval: float = DEFAULT_REPEAT_INTERVAL,
    ) -> None:
        if max_multiplier < 1:
            raise ValueError(f"max_multiplier ({max_multiplier}) must be >= 1")
        self.max_multiplier = max_multiplier
        self._multiplier = 1
        self._repeater = PressRepeater(scheduler, interval)

    def current_multiplier(self) -> int:
        return self._multiplier

    def tick(self) -> int:
        self._multiplier = min(self._multiplier + 1, self.max_multiplier)
        return self._multiplier

    def reset(self) -> None:
        if self._multiplier != 1:
            logger.debug("Acceleration reset from x%d", self._multiplier)
        self._multiplier = 1

    # -- repeat timer -------------------------------------------------------

    @property
    def repeating(self) -> bool:
        return self._repeater.active

    def start_repeating(self, callback: Callable[[], None]) -> None:
        self._repeater.start(callback)

    def stop_repeating(self) -> None:
        self._repeater.stop()

    def close(self) -> None:
        """Release the timer and forget any acceleration."""
        self.stop_repeating()
        self.reset()
