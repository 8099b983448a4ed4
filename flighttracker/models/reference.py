"""Reference table rows for airlines and aircraft."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Airline(BaseModel):
    """One row of the airline table."""

    id: Optional[int] = None
    name: Optional[str] = None
    alias: Optional[str] = None
    iata: Optional[str] = None
    icao: Optional[str] = Field(
        default=None, description="Three-letter code matched against callsign prefixes"
    )
    callsign: Optional[str] = None
    country: Optional[str] = None
    active: bool = False

    model_config = ConfigDict(extra="ignore")

    @property
    def label(self) -> Optional[str]:
        return self.alias or self.name


class AircraftType(BaseModel):
    """One row of the aircraft table, keyed by transponder address."""

    icao: str = Field(..., description="ICAO 24-bit address in lower-case hex")
    registration: Optional[str] = None
    model: Optional[str] = None
    type: Optional[str] = None
    operator: Optional[str] = None

    model_config = ConfigDict(extra="ignore", protected_namespaces=())


__all__ = ["Airline", "AircraftType"]
