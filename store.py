"""In-memory store of live stepper sessions.

Each session pairs a ``StepperState`` with the ``EventLog`` observing it.
Sessions are created through the verifying factory, so a configuration
that fails its contract never reaches the store.  Deleting a session
closes its stepper, releasing any press ticker it still holds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from factory import StepperFactory
from models import StepperConfig
from scheduling import Scheduler
from stepper import EventLog, StepperState

logger = logging.getLogger(__name__)


class StepperNotFoundError(Exception):
    """Raised when a session lookup fails."""

    def __init__(self, stepper_id: str) -> None:
        self.stepper_id = stepper_id
        super().__init__(f"Stepper not found: {stepper_id}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StepperSession:
    id: str
    config: StepperConfig
    stepper: StepperState
    events: EventLog
    created_at: datetime = field(default_factory=_utcnow)


class StepperStore:
    """In-memory session registry."""

    def __init__(self, scheduler: Scheduler | None = None) -> None:
        self._sessions: dict[str, StepperSession] = {}
        self._scheduler = scheduler
        self._next_id = 1

    def create(self, config: StepperConfig) -> StepperSession:
        """Verify ``config`` and open a session for it."""
        events = EventLog()
        stepper = StepperFactory.create(
            config, observer=events, scheduler=self._scheduler
        )
        session = StepperSession(
            id=f"stp-{self._next_id}",
            config=config,
            stepper=stepper,
            events=events,
        )
        self._next_id += 1
        self._sessions[session.id] = session
        logger.info("Opened stepper session %s", session.id)
        return session

    def get(self, stepper_id: str) -> StepperSession:
        try:
            return self._sessions[stepper_id]
        except KeyError:
            raise StepperNotFoundError(stepper_id) from None

    def list(self) -> list[StepperSession]:
        return sorted(self._sessions.values(), key=lambda s: s.created_at)

    def delete(self, stepper_id: str) -> StepperSession:
        """Close and remove a session, returning it."""
        session = self.get(stepper_id)
        session.stepper.close()
        del self._sessions[stepper_id]
        logger.info("Closed stepper session %s", stepper_id)
        return session

    def count(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        """Close and remove every session."""
        for session in self._sessions.values():
            session.stepper.close()
        self._sessions.clear()
