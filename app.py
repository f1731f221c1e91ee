"""Application factory and entry point.

Run with:
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from api import router, set_store
from store import StepperStore


def create_app(store: StepperStore | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Accepts an optional store for testing; creates a fresh one if omitted.
    Sessions created over HTTP have no scheduler: the client sends its own
    press ticks.
    """
    if store is None:
        store = StepperStore()

    set_store(store)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        store.clear()

    app = FastAPI(
        title="Value Stepper API",
        description=(
            "Drives numeric stepper controls: bounded values with a fixed "
            "step, press-and-hold acceleration and validated text entry. "
            "Each response carries the stepper's redraw state and the "
            "validation events the request produced."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


# Default app instance for `uvicorn app:app`
app = create_app()
