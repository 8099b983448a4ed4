"""Health check endpoint."""

from fastapi import APIRouter, Request

from flighttracker.config import settings

router = APIRouter()


@router.get("/healthz", summary="Health check")
def health_check(request: Request) -> dict[str, str | int]:
    """Simple health check endpoint."""
    return {
        "status": "ok",
        "env": settings.flighttracker_env,
        "clients": len(request.app.state.tracking),
    }
