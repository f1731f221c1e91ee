"""FastAPI REST endpoints that drive stepper sessions.

Every mutating route returns the session's fresh snapshot together with
the validation events the operation produced (drained from the session's
event log), so a thin front end can redraw and show messages from a
single response.

Routes
------
POST   /steppers                       Open a session from a StepperConfig
GET    /steppers                       List open sessions
GET    /steppers/{id}                  Current snapshot
DELETE /steppers/{id}                  Close a session
POST   /steppers/{id}/tap              Single step
POST   /steppers/{id}/press/begin      Start a press-and-hold
POST   /steppers/{id}/press/tick       One repeat of the held button
POST   /steppers/{id}/press/end        Release the button
POST   /steppers/{id}/edit/begin       Focus the text field
POST   /steppers/{id}/edit/candidate   Propose a keystroke
POST   /steppers/{id}/edit/commit      Finalize the typed text
PUT    /steppers/{id}/limits           Reconfigure limits
PUT    /steppers/{id}/step             Reconfigure the step
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from contracts import VerificationError
from models import (
    DecisionKind,
    DirectionRequest,
    EditCandidateRequest,
    ErrorKind,
    LimitsUpdate,
    StepperConfig,
    StepperSnapshot,
    StepUpdate,
)
from store import StepperNotFoundError, StepperSession, StepperStore

router = APIRouter(prefix="/steppers", tags=["steppers"])

# The store instance is injected by the app factory (see app.py).
_store: StepperStore | None = None


def set_store(store: StepperStore) -> None:
    """Inject the store instance. Called once at app startup."""
    global _store
    _store = store


def get_store() -> StepperStore:
    assert _store is not None, "Store not initialized"
    return _store


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------

class ValidationEvent(BaseModel):
    ok: bool
    error: ErrorKind | None = None
    message: str | None = None


class StepperResponse(BaseModel):
    id: str
    state: StepperSnapshot
    events: list[ValidationEvent] = []


class StepperListResponse(BaseModel):
    items: list[StepperResponse]
    total: int


class EditCandidateResponse(StepperResponse):
    accepted: bool
    decision: DecisionKind


def _respond(session: StepperSession) -> StepperResponse:
    stepper = session.stepper
    events = [
        ValidationEvent(
            ok=e.ok,
            error=e.error,
            message=None if e.ok else stepper.message(e.error),
        )
        for e in session.events.drain()
    ]
    return StepperResponse(id=session.id, state=stepper.snapshot(), events=events)


def _session(stepper_id: str) -> StepperSession:
    try:
        return get_store().get(stepper_id)
    except StepperNotFoundError:
        raise HTTPException(status_code=404, detail=f"Stepper not found: {stepper_id}")


def _unprocessable(e: Exception) -> HTTPException:
    return HTTPException(status_code=422, detail=str(e))


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

@router.post("", response_model=StepperResponse, status_code=201)
def create_stepper(config: StepperConfig) -> StepperResponse:
    """Open a stepper session."""
    try:
        session = get_store().create(config)
    except VerificationError as e:
        raise _unprocessable(e) from e
    return _respond(session)


@router.get("", response_model=StepperListResponse)
def list_steppers() -> StepperListResponse:
    store = get_store()
    items = [_respond(s) for s in store.list()]
    return StepperListResponse(items=items, total=store.count())


@router.get("/{stepper_id}", response_model=StepperResponse)
def get_stepper(stepper_id: str) -> StepperResponse:
    return _respond(_session(stepper_id))


@router.delete("/{stepper_id}", response_model=StepperResponse)
def delete_stepper(stepper_id: str) -> StepperResponse:
    """Close a session and return its final state."""
    _session(stepper_id)
    return _respond(get_store().delete(stepper_id))


# ---------------------------------------------------------------------------
# Buttons
# ---------------------------------------------------------------------------

@router.post("/{stepper_id}/tap", response_model=StepperResponse)
def tap(stepper_id: str, payload: DirectionRequest) -> StepperResponse:
    session = _session(stepper_id)
    session.stepper.tap(payload.direction)
    return _respond(session)


@router.post("/{stepper_id}/press/begin", response_model=StepperResponse)
def press_begin(stepper_id: str, payload: DirectionRequest) -> StepperResponse:
    session = _session(stepper_id)
    session.stepper.press_begin(payload.direction)
    return _respond(session)


@router.post("/{stepper_id}/press/tick", response_model=StepperResponse)
def press_tick(stepper_id: str, payload: DirectionRequest) -> StepperResponse:
    session = _session(stepper_id)
    session.stepper.press_tick(payload.direction)
    return _respond(session)


@router.post("/{stepper_id}/press/end", response_model=StepperResponse)
def press_end(stepper_id: str) -> StepperResponse:
    session = _session(stepper_id)
    session.stepper.press_end()
    return _respond(session)


# ---------------------------------------------------------------------------
# Text field
# ---------------------------------------------------------------------------

@router.post("/{stepper_id}/edit/begin", response_model=StepperResponse)
def edit_begin(stepper_id: str) -> StepperResponse:
    session = _session(stepper_id)
    session.stepper.edit_begin()
    return _respond(session)


@router.post("/{stepper_id}/edit/candidate", response_model=EditCandidateResponse)
def edit_candidate(
    stepper_id: str, payload: EditCandidateRequest
) -> EditCandidateResponse:
    """Propose replacing part of the field text; the verdict comes back."""
    session = _session(stepper_id)
    decision = session.stepper.propose_edit(payload.replace_range, payload.text)
    base = _respond(session)
    return EditCandidateResponse(
        **base.model_dump(), accepted=decision.allowed, decision=decision.kind
    )


@router.post("/{stepper_id}/edit/commit", response_model=StepperResponse)
def edit_commit(stepper_id: str) -> StepperResponse:
    session = _session(stepper_id)
    session.stepper.edit_commit()
    return _respond(session)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@router.put("/{stepper_id}/limits", response_model=StepperResponse)
def update_limits(stepper_id: str, payload: LimitsUpdate) -> StepperResponse:
    session = _session(stepper_id)
    try:
        session.stepper.set_limits(payload.min_value, payload.max_value)
    except ValueError as e:
        raise _unprocessable(e) from e
    return _respond(session)


@router.put("/{stepper_id}/step", response_model=StepperResponse)
def update_step(stepper_id: str, payload: StepUpdate) -> StepperResponse:
    session = _session(stepper_id)
    try:
        session.stepper.set_step(payload.step)
    except ValueError as e:
        raise _unprocessable(e) from e
    return _respond(session)
