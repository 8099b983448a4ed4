from __future__ import annotations

import contextlib
import logging
import time

from fastapi import FastAPI, Request

from flighttracker.api import api_router
from flighttracker.config import settings
from flighttracker.services import ReferenceDatabase, TrackingService

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("flighttracker")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Load reference data on startup and stop every source on shutdown."""

    reference_db = ReferenceDatabase.load()
    logger.info(
        "Reference data loaded: %s airlines, %s aircraft",
        reference_db.airline_count,
        reference_db.aircraft_count,
    )
    app.state.tracking = TrackingService(reference_db)

    try:
        yield
    finally:
        app.state.tracking.stop_all()


app = FastAPI(title="FlightTracker Backend", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log basic request information for observability."""

    start_time = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "HTTP %s %s -> %s (%.2f ms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


app.include_router(api_router)


@app.get("/", summary="Root")
def read_root() -> dict[str, str]:
    """Basic root endpoint for quick verification."""

    return {"message": "FlightTracker backend is running"}
