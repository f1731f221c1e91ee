"""
Limits layer for the value stepper.

Limits define the inclusive range a stepper value may occupy.  Either
side may be left open, in which case it places no constraint on the
value.  Limits are immutable: the owning stepper swaps in a new instance
whenever the shell reconfigures it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class NumericLimits:
    """An optional inclusive interval [min, max]."""

    min: float | None = None
    max: float | None = None

    def __post_init__(self) -> None:
        for name, bound in (("min", self.min), ("max", self.max)):
            if bound is not None and not math.isfinite(bound):
                raise ValueError(f"{name} ({bound}) must be a finite number")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"min ({self.min}) must be <= max ({self.max})")

    @property
    def bounded(self) -> bool:
        return self.min is not None and self.max is not None

    @property
    def anchor(self) -> float:
        """Origin of the step grid: the minimum, or 0 when unbounded below."""
        return self.min if self.min is not None else 0.0

    def contains_for_max(self, candidate: float) -> bool:
        return self.max is None or candidate <= self.max

    def contains_for_min(self, candidate: float) -> bool:
        return self.min is None or candidate >= self.min

    def contains(self, candidate: float) -> bool:
        return self.contains_for_max(candidate) and self.contains_for_min(candidate)

    def clamp(self, candidate: float) -> float:
        if not self.contains_for_max(candidate):
            return self.max
        if not self.contains_for_min(candidate):
            return self.min
        return candidate


UNBOUNDED = NumericLimits()
