"""Value types and configuration models for the value stepper.

The result types (``ValidationResult``, ``EditDecision``) are plain frozen
dataclasses handed back by the validator.  ``StepperConfig`` is the pydantic
model a shell uses to configure a stepper; it rejects contract violations
(non-finite numbers, ``min > max``, ``step <= 0``) at configuration time.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from limits import NumericLimits


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ErrorKind(str, Enum):
    INCORRECT_SYMBOLS = "incorrect_symbols"
    CROSSED_MAX = "crossed_max"
    CROSSED_MIN = "crossed_min"
    NON_MULTIPLE = "non_multiple"


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.UP else -1


class DecisionKind(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    SUBSTITUTE = "substitute"


# ---------------------------------------------------------------------------
# Validation outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidationResult:
    """Either ``Ok`` (``error is None``) or ``Error(kind)``."""

    error: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, kind: ErrorKind) -> ValidationResult:
        return cls(error=kind)

    def __repr__(self) -> str:
        return "Ok" if self.ok else f"Error({self.error.name})"


OK = ValidationResult()


@dataclass(frozen=True)
class EditDecision:
    """Verdict on an in-progress text edit.

    ``Allow`` applies the edit verbatim, ``Deny`` rejects it (optionally
    naming why) and ``Substitute`` asks the shell to show ``replacement``
    instead of the raw edit result.
    """

    kind: DecisionKind
    error: ErrorKind | None = None
    replacement: str | None = None

    @property
    def allowed(self) -> bool:
        return self.kind is DecisionKind.ALLOW

    @classmethod
    def allow(cls) -> EditDecision:
        return cls(kind=DecisionKind.ALLOW)

    @classmethod
    def deny(cls, error: ErrorKind | None = None) -> EditDecision:
        return cls(kind=DecisionKind.DENY, error=error)

    @classmethod
    def substitute(cls, text: str) -> EditDecision:
        return cls(kind=DecisionKind.SUBSTITUTE, replacement=text)


def message_for(kind: ErrorKind, limits: NumericLimits, step: float) -> str:
    """User-facing message for a validation failure."""
    if kind is ErrorKind.CROSSED_MAX:
        return f"Amount must be equal or less than {_plain(limits.max)}"
    if kind is ErrorKind.CROSSED_MIN:
        return f"Amount must be equal or higher than {_plain(limits.min)}"
    if kind is ErrorKind.NON_MULTIPLE:
        return f"Amount must be multiple of {_plain(step)}"
    return "Incorrect symbols"


def _plain(number: float | None) -> str:
    if number is None:
        return "-"
    return f"{number:g}" if number != int(number) else str(int(number))


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class StepperConfig(BaseModel):
    """Everything a shell supplies when it creates a stepper."""

    min_value: float | None = None
    max_value: float | None = None
    step: float = Field(default=10.0, gt=0)
    value: float | None = Field(
        default=None,
        description="Initial value; defaults to min_value, or 0 when unbounded",
    )
    min_fraction_digits: int = Field(default=0, ge=0, le=15)
    repeat_interval: float = Field(
        default=0.2, gt=0, description="Seconds between press-repeat ticks"
    )
    max_multiplier: int = Field(default=10, ge=1)

    @field_validator("min_value", "max_value", "step", "value")
    @classmethod
    def finite(cls, v: float | None) -> float | None:
        if v is not None and not math.isfinite(v):
            raise ValueError(f"Expected a finite number, got {v!r}")
        return v

    @model_validator(mode="after")
    def min_not_above_max(self) -> StepperConfig:
        if (
            self.min_value is not None
            and self.max_value is not None
            and self.min_value > self.max_value
        ):
            raise ValueError(
                f"min_value ({self.min_value}) must be <= max_value ({self.max_value})"
            )
        return self

    @property
    def limits(self) -> NumericLimits:
        return NumericLimits(min=self.min_value, max=self.max_value)


class StepperSnapshot(BaseModel):
    """Everything a shell needs to redraw a stepper."""

    value: float
    display_text: str
    editing: bool
    pressing: Direction | None = None
    multiplier: int = 1
    can_step_up: bool
    can_step_down: bool
    min_value: float | None = None
    max_value: float | None = None
    step: float


# ---------------------------------------------------------------------------
# Shell request payloads
# ---------------------------------------------------------------------------

class DirectionRequest(BaseModel):
    direction: Direction


class EditCandidateRequest(BaseModel):
    """Replace ``length`` characters at ``location`` with ``text``."""

    location: int = Field(..., ge=0)
    length: int = Field(default=0, ge=0)
    text: str = Field(default="", max_length=64)

    @property
    def replace_range(self) -> range:
        return range(self.location, self.location + self.length)


class LimitsUpdate(BaseModel):
    min_value: float | None = None
    max_value: float | None = None

    @field_validator("min_value", "max_value")
    @classmethod
    def finite(cls, v: float | None) -> float | None:
        if v is not None and not math.isfinite(v):
            raise ValueError(f"Expected a finite number, got {v!r}")
        return v

    @model_validator(mode="after")
    def min_not_above_max(self) -> LimitsUpdate:
        if (
            self.min_value is not None
            and self.max_value is not None
            and self.min_value > self.max_value
        ):
            raise ValueError(
                f"min_value ({self.min_value}) must be <= max_value ({self.max_value})"
            )
        return self


class StepUpdate(BaseModel):
    step: float = Field(..., gt=0)

    @field_validator("step")
    @classmethod
    def finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"Expected a finite number, got {v!r}")
        return v
