"""Validation engine for the value stepper.

A ``Validator`` is an immutable snapshot of the stepper's current limits
and step.  It never caches anything between calls: the owning stepper
builds a fresh one from its live configuration whenever it needs a
verdict, so a reconfigured stepper can never be judged against stale
limits.

Decisions
---------
check_value         committed number -> Ok | CrossedMax | CrossedMin | NonMultiple
                    (IncorrectSymbols when the number is not finite)
check_text          committed text   -> IncorrectSymbols, else check_value
can_step_up/down    would one more step stay inside the limits?
correct_value       repair policy for each error kind
should_accept_edit  verdict on an in-progress keystroke (more permissive
                    than check_text: half-typed numbers are allowed)
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass

import formatter
from formatter import NumberFormat, quantize
from limits import NumericLimits
from models import OK, EditDecision, ErrorKind, ValidationResult

# Fraction of a step within which a value still counts as on the grid.
MULTIPLE_TOLERANCE = 1e-6

# Optional leading minus, digits, at most one decimal point.
_EDIT_SHAPE_RE = re.compile(r"-?[0-9]*(\.[0-9]*)?")

# Prefixes of a number that do not parse yet but may become one.
_INCOMPLETE = frozenset({"", "-", ".", "-."})


@dataclass(frozen=True)
class Validator:
    limits: NumericLimits
    step: float
    min_fraction_digits: int = 0

    def __post_init__(self) -> None:
        if not math.isfinite(self.step) or self.step <= 0:
            raise ValueError(f"step ({self.step}) must be a positive finite number")

    # -- derived ------------------------------------------------------------

    @property
    def number_format(self) -> NumberFormat:
        return NumberFormat.for_step(
            self.step, self.limits.anchor, self.min_fraction_digits
        )

    @property
    def precision(self) -> int:
        return self.number_format.precision

    @property
    def storage_digits(self) -> int:
        """Decimals kept in a stored value; never fewer than the step needs."""
        return max(
            self.precision,
            formatter.decimal_places(self.step),
            formatter.decimal_places(self.limits.anchor),
        )

    def round_value(self, value: float) -> float:
        return quantize(value, self.storage_digits)

    def grid_position(self, value: float) -> float:
        """How many steps ``value`` sits above the grid anchor."""
        return (value - self.limits.anchor) / self.step

    def is_multiple(self, value: float) -> bool:
        position = self.grid_position(value)
        # Past float range the grid is finer than the value's own resolution.
        if not math.isfinite(position):
            return True
        return abs(position - round(position)) <= MULTIPLE_TOLERANCE

    def snap_down(self, value: float) -> float:
        """Last grid point at or below ``value``."""
        position = self.grid_position(value)
        if not math.isfinite(position):
            return value
        steps = math.floor(position + MULTIPLE_TOLERANCE)
        return self.round_value(self.limits.anchor + steps * self.step)

    # -- committed values ---------------------------------------------------

    def check_value(self, value: float) -> ValidationResult:
        if not math.isfinite(value):
            return ValidationResult.failure(ErrorKind.INCORRECT_SYMBOLS)
        if not self.limits.contains_for_max(value):
            return ValidationResult.failure(ErrorKind.CROSSED_MAX)
        if not self.limits.contains_for_min(value):
            return ValidationResult.failure(ErrorKind.CROSSED_MIN)
        if not self.is_multiple(value):
            return ValidationResult.failure(ErrorKind.NON_MULTIPLE)
        return OK

    def check_text(self, text: str | None) -> ValidationResult:
        """Validate committed text; blank text counts as ``0``."""
        if text is None or not text.strip():
            return self.check_value(0.0)
        value = formatter.parse(text)
        if value is None:
            return ValidationResult.failure(ErrorKind.INCORRECT_SYMBOLS)
        return self.check_value(value)

    def can_step_up(self, value: float) -> bool:
        return self.limits.contains_for_max(self.round_value(value + self.step))

    def can_step_down(self, value: float) -> bool:
        return self.limits.contains_for_min(self.round_value(value - self.step))

    def correct_value(self, value: float, error: ErrorKind) -> float:
        """Repair ``value`` for the given failure.

        ``CROSSED_MAX``/``CROSSED_MIN`` require the corresponding limit to
        be set; asking to repair against a missing limit is a caller bug.
        """
        if error is ErrorKind.CROSSED_MAX:
            if self.limits.max is None:
                raise ValueError("cannot correct CROSSED_MAX without a max limit")
            return self.limits.max
        if error is ErrorKind.CROSSED_MIN:
            if self.limits.min is None:
                raise ValueError("cannot correct CROSSED_MIN without a min limit")
            return self.limits.min
        if error is ErrorKind.NON_MULTIPLE:
            return self.snap_down(value)
        return self.limits.anchor

    # -- in-progress edits --------------------------------------------------

    def should_accept_edit(
        self, current_text: str, replace_range: range, inserted_text: str
    ) -> EditDecision:
        """Verdict on replacing ``current_text[replace_range]`` by ``inserted_text``.

        Only the shape of the number and the max limit are enforced here;
        the min limit and the step grid are checked at commit time so a
        user can type their way through intermediate values.
        """
        candidate = apply_edit(current_text, replace_range, inserted_text)

        if not _EDIT_SHAPE_RE.fullmatch(candidate):
            return EditDecision.deny(ErrorKind.INCORRECT_SYMBOLS)
        if candidate in _INCOMPLETE:
            return EditDecision.allow()

        value = formatter.parse(candidate)
        if value is None:
            return EditDecision.deny(ErrorKind.INCORRECT_SYMBOLS)
        if not self.limits.contains_for_max(value):
            return EditDecision.deny(ErrorKind.CROSSED_MAX)

        normalized = strip_leading_zeros(candidate)
        if normalized != candidate:
            return EditDecision.substitute(normalized)
        return EditDecision.allow()


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def apply_edit(text: str, replace_range: range, inserted_text: str) -> str:
    return text[: replace_range.start] + inserted_text + text[replace_range.stop :]


def strip_leading_zeros(text: str) -> str:
    """``"007"`` -> ``"7"``, ``"-05"`` -> ``"-5"``; ``"0"`` and ``"0.5"`` stay."""
    sign = "-" if text.startswith("-") else ""
    body = text[len(sign) :]
    while len(body) > 1 and body[0] == "0" and body[1] != ".":
        body = body[1:]
    return sign + body
