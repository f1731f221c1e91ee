"""
The stepper factory.

The factory does not just construct steppers - it *verifies* the
validator they will run with before releasing them.

Flow:
  1. Caller supplies a ``StepperConfig``.
  2. Factory builds the validator for that configuration.
  3. Factory runs the contract rules over a sample of values around
     and inside the limits.
  4. If verification passes  -> return a ready ``StepperState``.
     If verification fails   -> raise ``VerificationError``.
"""

from __future__ import annotations

import logging

from contracts import (
    VerificationError,
    VerificationReport,
    sample_values,
    verify_validator,
)
from models import StepperConfig
from scheduling import Scheduler
from stepper import StepperObserver, StepperState
from validator import Validator

logger = logging.getLogger(__name__)


class StepperFactory:
    """Produces ``StepperState`` instances whose validator is proven sound."""

    SAMPLES_PER_SIDE = 50

    @classmethod
    def create(
        cls,
        config: StepperConfig,
        observer: StepperObserver | None = None,
        scheduler: Scheduler | None = None,
    ) -> StepperState:
        """Build, verify, and return a stepper for ``config``."""
        report = cls.verify(config)
        if not report.passed:
            logger.error("Stepper configuration rejected: %s", report.summary())
            raise VerificationError(report)
        return StepperState.from_config(config, observer=observer, scheduler=scheduler)

    @classmethod
    def verify(cls, config: StepperConfig) -> VerificationReport:
        validator = Validator(config.limits, config.step, config.min_fraction_digits)
        samples = sample_values(validator, per_side=cls.SAMPLES_PER_SIDE)
        return verify_validator(validator, samples)
