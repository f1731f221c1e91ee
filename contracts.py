"""Executable contract for stepper validators.

Each rule is a named predicate over ``(validator, value)`` that must hold
for every sample value, whether or not the value itself is valid.  The
rules are data, so the factory, the conformance tests and ad-hoc tooling
all iterate the same list instead of restating the properties.

Rules
-----
OK-LIMITS      a value judged Ok lies inside the limits
OK-GRID        a value judged Ok lies on the step grid
REPAIR-LIMITS  repairing a limit crossing lands inside the limits
REPAIR-CONV    repeated repair reaches Ok within a few rounds
EDIT-TYPEABLE  a valid value's raw text is an acceptable edit
ROUND-TRIP     parsing the display text recovers the value
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable

import formatter
from models import ErrorKind
from validator import Validator

MAX_REPAIR_ROUNDS = 3


# ---------------------------------------------------------------------------
# Rule: a named, executable predicate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rule:
    id: str
    name: str
    description: str
    check: Callable[[Validator, float], bool]


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def _ok_within_limits(v: Validator, value: float) -> bool:
    return not v.check_value(value).ok or v.limits.contains(value)


def _ok_on_grid(v: Validator, value: float) -> bool:
    return not v.check_value(value).ok or v.is_multiple(value)


def _limit_repair_within_limits(v: Validator, value: float) -> bool:
    result = v.check_value(value)
    if result.error not in (ErrorKind.CROSSED_MAX, ErrorKind.CROSSED_MIN):
        return True
    return v.limits.contains(v.correct_value(value, result.error))


def repair(v: Validator, value: float) -> tuple[float, int]:
    """Apply ``correct_value`` until the value is Ok; return it and the rounds used."""
    rounds = 0
    result = v.check_value(value)
    while not result.ok and rounds < MAX_REPAIR_ROUNDS:
        value = v.correct_value(value, result.error)
        rounds += 1
        result = v.check_value(value)
    return value, rounds


def _repair_converges(v: Validator, value: float) -> bool:
    repaired, _ = repair(v, value)
    return v.check_value(repaired).ok


def _valid_value_is_typeable(v: Validator, value: float) -> bool:
    if not v.check_value(value).ok:
        return True
    raw = v.number_format.raw(value)
    return v.should_accept_edit("", range(0, 0), raw).error is None


def _display_round_trips(v: Validator, value: float) -> bool:
    if not v.check_value(value).ok:
        return True
    parsed = formatter.parse(v.number_format.display(value))
    return parsed is not None and abs(parsed - value) <= 0.5 * 10 ** -v.precision


VALIDATOR_RULES: list[Rule] = [
    Rule(
        id="OK-LIMITS",
        name="ok_within_limits",
        description="A value judged Ok lies inside the limits",
        check=_ok_within_limits,
    ),
    Rule(
        id="OK-GRID",
        name="ok_on_grid",
        description="A value judged Ok is a whole number of steps from the minimum",
        check=_ok_on_grid,
    ),
    Rule(
        id="REPAIR-LIMITS",
        name="limit_repair_within_limits",
        description="Correcting a limit crossing yields a value inside the limits",
        check=_limit_repair_within_limits,
    ),
    Rule(
        id="REPAIR-CONV",
        name="repair_converges",
        description=f"Repeated correction reaches Ok within {MAX_REPAIR_ROUNDS} rounds",
        check=_repair_converges,
    ),
    Rule(
        id="EDIT-TYPEABLE",
        name="valid_value_is_typeable",
        description="The raw text of a valid value is an acceptable edit",
        check=_valid_value_is_typeable,
    ),
    Rule(
        id="ROUND-TRIP",
        name="display_round_trips",
        description="Parsing the display text recovers the value to display precision",
        check=_display_round_trips,
    ),
]


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleResult:
    rule_id: str
    rule_name: str
    passed: bool
    description: str
    checks_run: int = 0
    counterexample: float | None = None


@dataclass(frozen=True)
class VerificationReport:
    results: list[RuleResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def failures(self) -> list[RuleResult]:
        return [r for r in self.results if not r.passed]

    def summary(self) -> str:
        total = len(self.results)
        failed = len(self.failures)
        if failed == 0:
            return f"All {total} rules passed"
        lines = [f"{failed}/{total} rules failed:"]
        for f in self.failures:
            lines.append(
                f"  [{f.rule_id}] {f.rule_name}: {f.description}"
                f" (counterexample={f.counterexample})"
            )
        return "\n".join(lines)


class VerificationError(Exception):
    """Raised when a validator configuration fails its contract."""

    def __init__(self, report: VerificationReport) -> None:
        self.report = report
        super().__init__(f"Verification failed:\n{report.summary()}")


def verify_validator(
    validator: Validator,
    samples: Iterable[float],
    rules: list[Rule] | None = None,
) -> VerificationReport:
    """Run every rule over every sample and report the first failure per rule."""
    samples = list(samples)
    results = []
    for rule in rules if rules is not None else VALIDATOR_RULES:
        counterexample = None
        checks_run = 0
        for value in samples:
            checks_run += 1
            if not rule.check(validator, value):
                counterexample = value
                break
        results.append(
            RuleResult(
                rule_id=rule.id,
                rule_name=rule.name,
                passed=counterexample is None,
                description=rule.description,
                checks_run=checks_run,
                counterexample=counterexample,
            )
        )
    return VerificationReport(results=results)


def sample_values(validator: Validator, per_side: int = 50) -> list[float]:
    """Grid points, off-grid points and out-of-range points for a validator."""
    limits, step = validator.limits, validator.step
    lo = limits.min if limits.min is not None else (
        limits.max - 2 * per_side * step if limits.max is not None
        else -per_side * step
    )
    hi = limits.max if limits.max is not None else lo + 2 * per_side * step

    count = min(int((hi - lo) / step), 2 * per_side)
    grid = [lo + i * step for i in range(count + 1)]
    off_grid = [g + step / 2 for g in grid]
    outside = [lo - step, lo - step / 2, hi + step / 2, hi + step]
    edges = [lo, hi, 0.0]
    return grid + off_grid + outside + edges
