"""Shared fixtures for stepper tests."""
from __future__ import annotations

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from limits import NumericLimits
from scheduling import ManualScheduler
from stepper import EventLog, StepperState
from validator import Validator

PERCENT_LIMITS = NumericLimits(min=0, max=200)


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def validator() -> Validator:
    """Limits (0, 200) with a step of 10."""
    return Validator(PERCENT_LIMITS, 10.0)


@pytest.fixture
def stepper(events, scheduler) -> StepperState:
    """Limits (0, 200), step 10, starting at 50, with a manual ticker."""
    state = StepperState(
        PERCENT_LIMITS, 10.0, 50.0, observer=events, scheduler=scheduler
    )
    yield state
    state.close()
