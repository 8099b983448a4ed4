"""In-memory airline and aircraft reference tables loaded from CSV files."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional

from flighttracker.config import settings
from flighttracker.models.reference import AircraftType, Airline

logger = logging.getLogger("flighttracker.reference_db")

AIRLINE_COLUMNS = ("id", "name", "alias", "iata", "icao", "callsign", "country", "active")
AIRCRAFT_COLUMNS = ("icao", "regid", "mdl", "type", "operator")

# The airline table marks missing values with a MySQL-style null.
_AIRLINE_NULL = "\\N"


def _read_rows(path: Path, columns: tuple[str, ...]) -> Iterator[dict[str, str]]:
    with path.open(newline="", encoding="utf-8", errors="replace") as handle:
        for row in csv.reader(handle):
            if not row:
                continue
            yield dict(zip(columns, row))


def parse_airline(row: dict[str, str]) -> Airline:
    values = {key: (None if value == _AIRLINE_NULL else value) for key, value in row.items()}
    raw_id = values.get("id")
    return Airline(
        id=int(raw_id) if raw_id and raw_id.lstrip("-").isdigit() else None,
        name=values.get("name"),
        alias=values.get("alias") or None,
        iata=values.get("iata") or None,
        icao=values.get("icao") or None,
        callsign=values.get("callsign") or None,
        country=values.get("country") or None,
        active=values.get("active") == "Y",
    )


def parse_aircraft(row: dict[str, str]) -> AircraftType | None:
    values = {key: (value or None) for key, value in row.items()}
    icao = values.get("icao")
    if not icao:
        return None
    return AircraftType(
        icao=icao.lower(),
        registration=values.get("regid"),
        model=values.get("mdl"),
        type=values.get("type"),
        operator=values.get("operator"),
    )


class ReferenceDatabase:
    """Lookups over the airline and aircraft tables.

    Airline codes are not unique in the source data; the first row loaded
    for a code wins. Missing tables simply produce no matches.
    """

    def __init__(
        self,
        airlines: Iterable[Airline] = (),
        aircraft: Iterable[AircraftType] = (),
    ) -> None:
        self._airlines: dict[str, Airline] = {}
        self._aircraft: dict[str, AircraftType] = {}
        for airline in airlines:
            self.add_airline(airline)
        for row in aircraft:
            self.add_aircraft(row)

    @classmethod
    def load(
        cls,
        airlines_path: Path | None = None,
        aircrafts_path: Path | None = None,
    ) -> "ReferenceDatabase":
        db = cls()
        db.load_airlines(airlines_path or settings.airlines_file)
        db.load_aircraft(aircrafts_path or settings.aircrafts_file)
        return db

    def add_airline(self, airline: Airline) -> None:
        if airline.icao:
            self._airlines.setdefault(airline.icao.upper(), airline)

    def add_aircraft(self, row: AircraftType) -> None:
        self._aircraft.setdefault(row.icao.lower(), row)

    def load_airlines(self, path: Path) -> int:
        if not path.exists():
            logger.warning("Airlines table %s not found; airline lookups disabled", path)
            return 0
        loaded = 0
        try:
            for row in _read_rows(path, AIRLINE_COLUMNS):
                self.add_airline(parse_airline(row))
                loaded += 1
        except (OSError, csv.Error) as exc:
            logger.error("Airlines DB error: %s", exc)
        logger.info("Airlines DB loaded (%s rows)", loaded)
        return loaded

    def load_aircraft(self, path: Path) -> int:
        if not path.exists():
            logger.warning("Aircraft table %s not found; type lookups disabled", path)
            return 0
        loaded = 0
        try:
            for row in _read_rows(path, AIRCRAFT_COLUMNS):
                parsed = parse_aircraft(row)
                if parsed:
                    self.add_aircraft(parsed)
                    loaded += 1
        except (OSError, csv.Error) as exc:
            logger.error("Aircrafts DB error: %s", exc)
        logger.info("Aircrafts DB loaded (%s rows)", loaded)
        return loaded

    def airline_by_icao(self, code: str | None) -> Optional[Airline]:
        if not code:
            return None
        return self._airlines.get(code.upper())

    def airline_for_callsign(self, callsign: str | None) -> Optional[Airline]:
        """Match the three-letter operator prefix of a callsign."""

        if not callsign or len(callsign) < 3:
            return None
        return self.airline_by_icao(callsign[:3])

    def aircraft_by_icao(self, icao: str | None) -> Optional[AircraftType]:
        if not icao:
            return None
        return self._aircraft.get(icao.lower())

    @property
    def airline_count(self) -> int:
        return len(self._airlines)

    @property
    def aircraft_count(self) -> int:
        return len(self._aircraft)


__all__ = ["ReferenceDatabase", "parse_aircraft", "parse_airline"]
