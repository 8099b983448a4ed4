"""Client and tracking request models."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from flighttracker.config import settings
from flighttracker.models.aircraft import AircraftRecord, Connectivity


class ClientConfig(BaseModel):
    """Identifies one ingestion target.

    Host and port are optional at the model level so that a missing value
    surfaces as a configuration error when the adapter starts.
    """

    mode: Literal["network", "poll"] = Field(
        default="network", description="Stream (SBS-1) or poll (aircraft.json)"
    )
    host: Optional[str] = Field(default=None, description="Receiver host or IP")
    port: Optional[int] = Field(default=None, description="Receiver port")
    path: Optional[str] = Field(
        default=None, description="HTTP path of the aircraft.json document"
    )
    interval: Optional[int] = Field(
        default=None, ge=1, description="Poll interval in milliseconds"
    )
    enable_routes: bool = Field(
        default_factory=lambda: settings.enable_routes_default,
        description="Resolve routes for scheduled flights",
    )

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    @property
    def key(self) -> tuple:
        """Tuple used to deduplicate running adapters."""

        return (
            self.mode,
            self.host,
            self.port,
            self.path,
            self.interval,
            self.enable_routes,
        )


class TrackingConfig(BaseModel):
    """Per-request presentation settings for one client."""

    client: ClientConfig
    lat_lng: Optional[tuple[float, float]] = Field(
        default=None, description="Observer position as [lat, lng]"
    )
    order_by: Optional[str] = Field(
        default=None, description="Sort specification as field:asc|desc"
    )
    limit: Optional[int] = Field(default=None, description="Maximum aircraft returned")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("lat_lng", mode="before")
    @classmethod
    def _empty_lat_lng(cls, value):
        # The display module sends an empty list when no observer is configured.
        if isinstance(value, (list, tuple)) and len(value) == 0:
            return None
        return value


class ConnectivityResponse(BaseModel):
    """Connection state for a client configuration."""

    connectivity: Connectivity


class AircraftListResponse(BaseModel):
    """Enriched aircraft list returned to the presentation layer."""

    connectivity: Connectivity
    aircraft: list[AircraftRecord] = Field(default_factory=list)


class StopResponse(BaseModel):
    stopped: bool


__all__ = [
    "AircraftListResponse",
    "ClientConfig",
    "ConnectivityResponse",
    "StopResponse",
    "TrackingConfig",
]
