"""Tracking endpoints consumed by the presentation layer."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from flighttracker.ingestors.base import ConfigurationError
from flighttracker.models import (
    AircraftListResponse,
    ClientConfig,
    ConnectivityResponse,
    StopResponse,
    TrackingConfig,
)
from flighttracker.services.tracker import TrackingService

router = APIRouter(prefix="/api/v1", tags=["tracking"])

logger = logging.getLogger("flighttracker.api.tracking")


def get_tracking_service(request: Request) -> TrackingService:
    return request.app.state.tracking


@router.post(
    "/tracking",
    response_model=ConnectivityResponse,
    summary="Start tracking a receiver",
)
async def start_tracking(
    client: ClientConfig, service: TrackingService = Depends(get_tracking_service)
) -> ConnectivityResponse:
    """Start a source for this configuration, or reuse the running one."""

    try:
        connectivity = service.start(client)
    except ConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return ConnectivityResponse(connectivity=connectivity)


@router.post(
    "/tracking/status",
    response_model=ConnectivityResponse,
    summary="Get connectivity for a receiver",
)
async def tracking_status(
    client: ClientConfig, service: TrackingService = Depends(get_tracking_service)
) -> ConnectivityResponse:
    return ConnectivityResponse(connectivity=service.connectivity(client))


@router.post(
    "/tracking/aircraft",
    response_model=AircraftListResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    summary="Get the enriched aircraft list",
)
async def tracking_aircraft(
    tracking: TrackingConfig, service: TrackingService = Depends(get_tracking_service)
) -> AircraftListResponse:
    """Return enriched, sorted and limited aircraft for a running receiver."""

    aircraft = service.aircraft(tracking)
    logger.debug("Returning %s aircraft for %s", len(aircraft), tracking.client.key)
    return AircraftListResponse(
        connectivity=service.connectivity(tracking.client),
        aircraft=aircraft,
    )


@router.post(
    "/tracking/stop",
    response_model=StopResponse,
    summary="Stop tracking a receiver",
)
async def stop_tracking(
    client: ClientConfig, service: TrackingService = Depends(get_tracking_service)
) -> StopResponse:
    return StopResponse(stopped=service.stop(client))
