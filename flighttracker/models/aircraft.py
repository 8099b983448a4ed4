"""Models for aircraft records produced by the stream and poll sources."""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Connectivity(str, Enum):
    """Connection state reported to the presentation layer."""

    UNKNOWN = "unknown"
    CONNECTED = "connected"
    FAILED = "failed"


class AircraftRecord(BaseModel):
    """Normalized representation of a tracked aircraft."""

    icao: str = Field(..., description="ICAO 24-bit transponder address in hex")
    callsign: Optional[str] = Field(default=None, description="Broadcast flight identifier")
    registration: Optional[str] = Field(default=None, description="Tail registration")
    type: Optional[str] = Field(default=None, description="ICAO aircraft type code")
    description: Optional[str] = Field(
        default=None, description="Long aircraft type description"
    )
    operator: Optional[str] = Field(
        default=None, description="Operator as reported by the source"
    )
    airline: Optional[str] = Field(default=None, description="Resolved airline label")
    year: Optional[str] = Field(default=None, description="Year of manufacture")
    altitude: Optional[float] = Field(default=None, description="Altitude")
    altitude_unit: Literal["ft"] = Field(
        default="ft", description="Unit of the altitude field"
    )
    speed: Optional[float] = Field(default=None, description="Ground speed in knots")
    heading: Optional[float] = Field(default=None, description="Track in degrees")
    vertical_rate: Optional[float] = Field(
        default=None, description="Vertical rate in feet per minute"
    )
    lat: Optional[float] = Field(default=None, description="Latitude in decimal degrees")
    lng: Optional[float] = Field(default=None, description="Longitude in decimal degrees")
    distance: Optional[float] = Field(
        default=None, description="Distance from the observer"
    )
    distance_unit: Optional[Literal["nm", "m"]] = Field(
        default=None, description="Unit of the distance field"
    )
    bearing: Optional[float] = Field(
        default=None, description="Initial bearing from the observer in degrees"
    )
    route: Optional[str] = Field(default=None, description="Route as ORIGIN-DEST")
    squawk: Optional[str] = Field(default=None, description="Transponder squawk code")
    category: Optional[str] = Field(default=None, description="Emitter category")
    rssi: Optional[float] = Field(default=None, description="Signal strength in dBFS")
    count: Optional[int] = Field(default=None, description="Messages received")
    seen: Optional[float] = Field(
        default=None, description="Seconds since the last message"
    )

    model_config = ConfigDict(
        extra="ignore", alias_generator=to_camel, populate_by_name=True
    )

    @property
    def has_position(self) -> bool:
        return self.lat is not None and self.lng is not None


__all__ = ["AircraftRecord", "Connectivity"]
