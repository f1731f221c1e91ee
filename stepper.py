"""The stepper state machine.

``StepperState`` owns the authoritative value, the editing flag and the
acceleration of an ongoing press.  A UI shell feeds it events and reads
back display text and button enablement; validation outcomes flow out
through a ``StepperObserver``.

Phases
------
IDLE            formatted (grouped) text is shown
EDITING         the field has focus and shows raw, ungrouped text
PRESSING_UP/DOWN  a press-and-hold gesture is repeating steps

Every mutation (step, commit, programmatic set, reconfiguration) goes
through the same settle routine: check the candidate, and on failure
repair it.  Crossing a hard limit also ends any press in progress;
landing off the step grid only snaps the value down.
"""
from __future__ import annotations

import logging
import math
import weakref
from enum import Enum
from typing import Protocol

import formatter
from acceleration import (
    DEFAULT_MAX_MULTIPLIER,
    DEFAULT_REPEAT_INTERVAL,
    AccelerationController,
)
from limits import UNBOUNDED, NumericLimits
from models import (
    OK,
    DecisionKind,
    Direction,
    EditDecision,
    ErrorKind,
    StepperConfig,
    StepperSnapshot,
    ValidationResult,
    message_for,
)
from scheduling import Scheduler
from validator import Validator, apply_edit

logger = logging.getLogger(__name__)

_LIMIT_ERRORS = (ErrorKind.CROSSED_MAX, ErrorKind.CROSSED_MIN)

# A limit clamp can leave the value off-grid; one snap then always lands.
_MAX_REPAIRS = 3


class Phase(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    PRESSING_UP = "pressing_up"
    PRESSING_DOWN = "pressing_down"


class StepperObserver(Protocol):
    def on_validation_event(self, result: ValidationResult) -> None: ...


class EventLog:
    """Observer that records every validation event it receives."""

    def __init__(self) -> None:
        self.events: list[ValidationResult] = []

    def on_validation_event(self, result: ValidationResult) -> None:
        self.events.append(result)

    @property
    def errors(self) -> list[ErrorKind]:
        return [e.error for e in self.events if not e.ok]

    def drain(self) -> list[ValidationResult]:
        events, self.events = self.events, []
        return events


class StepperState:
    def __init__(
        self,
        limits: NumericLimits = UNBOUNDED,
        step: float = 10.0,
        value: float | None = None,
        *,
        min_fraction_digits: int = 0,
        observer: StepperObserver | None = None,
        scheduler: Scheduler | None = None,
        repeat_interval: float = DEFAULT_REPEAT_INTERVAL,
        max_multiplier: int = DEFAULT_MAX_MULTIPLIER,
    ) -> None:
        _require_step(step)
        _require_fraction_digits(min_fraction_digits)
        self._limits = limits
        self._step = step
        self._min_fraction_digits = min_fraction_digits
        self.observer = observer

        self._acceleration = AccelerationController(
            max_multiplier=max_multiplier,
            scheduler=scheduler,
            interval=repeat_interval,
        )
        # A stepper dropped mid-press must not leave its ticker running.
        self._finalizer = weakref.finalize(self, self._acceleration.stop_repeating)

        self._editing = False
        self._pressing: Direction | None = None
        self._value = 0.0
        self._text = ""

        initial = limits.anchor if value is None else value
        _require_finite("value", initial)
        self._settle(initial)
        self._render()

    @classmethod
    def from_config(
        cls,
        config: StepperConfig,
        observer: StepperObserver | None = None,
        scheduler: Scheduler | None = None,
    ) -> StepperState:
        return cls(
            limits=config.limits,
            step=config.step,
            value=config.value,
            min_fraction_digits=config.min_fraction_digits,
            observer=observer,
            scheduler=scheduler,
            repeat_interval=config.repeat_interval,
            max_multiplier=config.max_multiplier,
        )

    # -- read side ----------------------------------------------------------

    @property
    def validator(self) -> Validator:
        """A validator for the configuration as it stands right now."""
        return Validator(self._limits, self._step, self._min_fraction_digits)

    @property
    def value(self) -> float:
        return self._value

    @property
    def limits(self) -> NumericLimits:
        return self._limits

    @property
    def step(self) -> float:
        return self._step

    @property
    def editing(self) -> bool:
        return self._editing

    @property
    def pressing(self) -> Direction | None:
        return self._pressing

    @property
    def multiplier(self) -> int:
        return self._acceleration.current_multiplier()

    @property
    def repeating(self) -> bool:
        return self._acceleration.repeating

    @property
    def phase(self) -> Phase:
        if self._pressing is Direction.UP:
            return Phase.PRESSING_UP
        if self._pressing is Direction.DOWN:
            return Phase.PRESSING_DOWN
        return Phase.EDITING if self._editing else Phase.IDLE

    def current_display_text(self) -> str:
        return self._text

    def can_step_up(self) -> bool:
        return self.validator.can_step_up(self._value)

    def can_step_down(self) -> bool:
        return self.validator.can_step_down(self._value)

    def message(self, kind: ErrorKind) -> str:
        return message_for(kind, self._limits, self._step)

    def snapshot(self) -> StepperSnapshot:
        return StepperSnapshot(
            value=self._value,
            display_text=self._text,
            editing=self._editing,
            pressing=self._pressing,
            multiplier=self.multiplier,
            can_step_up=self.can_step_up(),
            can_step_down=self.can_step_down(),
            min_value=self._limits.min,
            max_value=self._limits.max,
            step=self._step,
        )

    # -- buttons ------------------------------------------------------------

    def tap(self, direction: Direction) -> ValidationResult:
        return self.apply_step(direction, 1)

    def press_begin(self, direction: Direction) -> ValidationResult:
        self._end_press()
        self._pressing = direction
        logger.debug("Press began (%s)", direction.value)
        result = self.apply_step(direction, 1)
        if self._pressing is direction:
            self._start_ticker(direction)
        return result

    def press_tick(self, direction: Direction | None = None) -> ValidationResult:
        """One repeat of the held button.

        Ignored once the press has ended, and when ``direction`` names the
        other button.
        """
        if self._pressing is None:
            logger.debug("Ignoring tick outside of a press")
            return OK
        if direction is not None and direction is not self._pressing:
            logger.debug("Ignoring %s tick during %s press", direction.value,
                         self._pressing.value)
            return OK
        direction = self._pressing
        result = self.apply_step(direction, self._acceleration.current_multiplier())
        if self._pressing is not None:
            self._acceleration.tick()
        return result

    def press_end(self) -> None:
        if self._pressing is not None:
            logger.debug("Press ended (%s)", self._pressing.value)
        self._end_press()

    def apply_step(self, direction: Direction, multiplier: int) -> ValidationResult:
        if self._editing:
            self.edit_commit()
        delta = direction.sign * self._step * multiplier
        candidate = self.validator.round_value(self._value + delta)
        logger.debug("Step %s x%d: %s -> %s", direction.value, multiplier,
                     self._value, candidate)
        result = self._settle(candidate)
        self._render()
        if not result.ok:
            self._notify(result)
        return result

    # -- text field ---------------------------------------------------------

    def edit_begin(self) -> None:
        self._editing = True
        self._render()
        self._notify(OK)

    def edit_candidate(self, replace_range: range, inserted_text: str) -> bool:
        """Apply a keystroke if the validator allows it.

        Returns True when the edit went in verbatim.  A substituted edit
        changes the text but returns False, as does a denied one.
        """
        return self.propose_edit(replace_range, inserted_text).allowed

    def propose_edit(self, replace_range: range, inserted_text: str) -> EditDecision:
        if not self._editing:
            self.edit_begin()
        decision = self.validator.should_accept_edit(
            self._text, replace_range, inserted_text
        )
        if decision.kind is DecisionKind.ALLOW:
            self._text = apply_edit(self._text, replace_range, inserted_text)
            self._notify(OK)
        elif decision.kind is DecisionKind.SUBSTITUTE:
            self._text = decision.replacement
        elif decision.error is not None:
            self._notify(ValidationResult.failure(decision.error))
        logger.debug("Edit %r at %s: %s", inserted_text, replace_range,
                     decision.kind.value)
        return decision

    def edit_commit(self) -> ValidationResult:
        """Finalize the typed text into the value (focus lost / return)."""
        text = self._text
        validator = self.validator
        result = validator.check_text(text)
        parsed = 0.0 if not text.strip() else formatter.parse(text)
        if parsed is None:
            candidate = validator.correct_value(self._value, result.error)
        else:
            candidate = parsed
        self._editing = False
        self._settle(candidate)
        self._render()
        self._notify(result)
        return result

    # -- configuration ------------------------------------------------------

    def set_limits(
        self, min_value: float | None = None, max_value: float | None = None
    ) -> ValidationResult:
        """Replace the limits, then revalidate and redraw the current value."""
        self._limits = NumericLimits(min=min_value, max=max_value)
        return self._revalidate()

    def set_step(self, step: float) -> ValidationResult:
        """Replace the step, then revalidate and redraw the current value."""
        _require_step(step)
        self._step = step
        return self._revalidate()

    def set_fraction_digits(self, min_fraction_digits: int) -> None:
        _require_fraction_digits(min_fraction_digits)
        self._min_fraction_digits = min_fraction_digits
        if not self._editing:
            self._render()

    def set_value(self, value: float) -> ValidationResult:
        """Programmatic assignment; abandons any in-progress edit."""
        _require_finite("value", value)
        self._editing = False
        result = self._settle(value)
        self._render()
        if not result.ok:
            self._notify(result)
        return result

    # -- lifecycle ----------------------------------------------------------

    def close(self) -> None:
        """Tear down: cancel any ticker and drop acceleration."""
        self._pressing = None
        self._acceleration.close()

    def __enter__(self) -> StepperState:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- internals ----------------------------------------------------------

    def _revalidate(self) -> ValidationResult:
        result = self._settle(self._value)
        if not self._editing:
            self._render()
        if not result.ok:
            self._notify(result)
        return result

    def _settle(self, candidate: float) -> ValidationResult:
        """Store ``candidate``, repairing it first if it fails validation.

        Returns the verdict on the candidate as proposed.
        """
        validator = self.validator
        first = validator.check_value(candidate)
        result = first
        for _ in range(_MAX_REPAIRS):
            if result.ok:
                break
            if result.error in _LIMIT_ERRORS:
                self._abort_press()
            repaired = validator.correct_value(candidate, result.error)
            logger.warning("Corrected %s (%s) to %s", candidate,
                           result.error.value, repaired)
            candidate = repaired
            result = validator.check_value(candidate)
        self._value = validator.round_value(candidate)
        return first

    def _render(self) -> None:
        number_format = self.validator.number_format
        if self._editing:
            self._text = number_format.raw(self._value)
        else:
            self._text = number_format.display(self._value)

    def _notify(self, result: ValidationResult) -> None:
        if self.observer is not None:
            self.observer.on_validation_event(result)

    def _start_ticker(self, direction: Direction) -> None:
        ref = weakref.ref(self)

        def tick() -> None:
            stepper = ref()
            if stepper is not None:
                stepper.press_tick(direction)

        self._acceleration.start_repeating(tick)

    def _abort_press(self) -> None:
        if self._pressing is not None:
            logger.debug("Limit crossed, aborting press (%s)", self._pressing.value)
        self._end_press()

    def _end_press(self) -> None:
        self._pressing = None
        self._acceleration.stop_repeating()
        self._acceleration.reset()


def _require_step(step: float) -> None:
    if not math.isfinite(step) or step <= 0:
        raise ValueError(f"step ({step}) must be a positive finite number")


def _require_fraction_digits(digits: int) -> None:
    if digits < 0:
        raise ValueError(f"min_fraction_digits ({digits}) must be >= 0")


def _require_finite(name: str, number: float) -> None:
    if not math.isfinite(number):
        raise ValueError(f"{name} ({number}) must be a finite number")
