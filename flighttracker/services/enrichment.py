"""Join source snapshots with reference data, then sort and limit them."""

from __future__ import annotations

from functools import cmp_to_key
import logging
from typing import Any, Iterable, Optional

from pydantic.alias_generators import to_camel

from flighttracker.ingestors.routes import is_scheduled_callsign
from flighttracker.models.aircraft import AircraftRecord
from flighttracker.models.reference import AircraftType
from flighttracker.models.tracking import TrackingConfig
from flighttracker.services.geometry import haversine_distance, initial_bearing
from flighttracker.services.reference_db import ReferenceDatabase

logger = logging.getLogger("flighttracker.enrichment")

PRIVATE_AIRLINE = "Private"
UNKNOWN_AIRLINE = "Unknown"
INACTIVE_MARKER = "*"

# "age" sorts by how many messages an aircraft has produced.
_SORT_ALIASES = {"age": "count"}


def _sortable_fields() -> dict[str, str]:
    names: dict[str, str] = {}
    for name in AircraftRecord.model_fields:
        names[name] = name
        names[to_camel(name)] = name
    return names


SORTABLE_FIELDS = _sortable_fields()


def parse_order_by(order_by: str | None) -> tuple[str, bool] | None:
    """Split ``field:direction`` into (attribute, ascending).

    Returns None, after logging a warning, when the value is malformed or
    names a field aircraft records do not have.
    """

    if not order_by:
        return None
    parts = order_by.split(":")
    if len(parts) != 2:
        logger.warning('The format of "orderBy" (%s) is not valid, it will be ignored.', order_by)
        return None

    field, direction = parts[0].strip(), parts[1].strip()
    attribute = SORTABLE_FIELDS.get(_SORT_ALIASES.get(field, field))
    if attribute is None:
        logger.warning('Unknown "orderBy" field %r, aircraft are left unsorted.', field)
        return None
    return attribute, direction.lower() == "asc"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _compare(a: Any, b: Any) -> float:
    if isinstance(a, str) and isinstance(b, str):
        left, right = a.lower(), b.lower()
        return (left > right) - (left < right)
    if _is_number(a) and _is_number(b):
        return a - b
    return 0


def sort_aircraft(records: list[AircraftRecord], order_by: str | None) -> list[AircraftRecord]:
    """Sort by one field; records without a value for that field are dropped."""

    parsed = parse_order_by(order_by)
    if parsed is None:
        return list(records)

    attribute, ascending = parsed
    multiplier = 1 if ascending else -1
    present = [record for record in records if getattr(record, attribute) is not None]
    return sorted(
        present,
        key=cmp_to_key(
            lambda a, b: _compare(getattr(a, attribute), getattr(b, attribute)) * multiplier
        ),
    )


def limit_aircraft(records: list[AircraftRecord], limit: int | None) -> list[AircraftRecord]:
    if limit is not None and limit > 0 and len(records) > limit:
        return records[:limit]
    return records


class EnrichmentPipeline:
    """Turn a raw source snapshot into the list shown to the user."""

    def __init__(self, reference_db: ReferenceDatabase | None = None) -> None:
        self.reference_db = reference_db or ReferenceDatabase()

    def airline_label(
        self, record: AircraftRecord, plane: Optional[AircraftType] = None
    ) -> str:
        if record.operator:
            return record.operator
        if not is_scheduled_callsign(record.callsign):
            return PRIVATE_AIRLINE
        if plane and plane.operator:
            return plane.operator

        airline = self.reference_db.airline_for_callsign(record.callsign)
        if airline and airline.label:
            label = airline.label
            if not airline.active:
                label += INACTIVE_MARKER
            return label
        return UNKNOWN_AIRLINE

    def enrich(
        self,
        record: AircraftRecord,
        *,
        mode: str,
        lat_lng: tuple[float, float] | None = None,
    ) -> AircraftRecord:
        plane = self.reference_db.aircraft_by_icao(record.icao)
        update: dict[str, Any] = {
            "airline": self.airline_label(record, plane),
            "type": record.type or (plane.type if plane else None),
            "registration": record.registration or (plane.registration if plane else None),
            "description": record.description or (plane.model if plane else None),
        }

        if mode == "network":
            if lat_lng is not None and record.has_position:
                update["distance"] = haversine_distance(
                    lat_lng[0], lat_lng[1], record.lat, record.lng
                )
                update["bearing"] = initial_bearing(
                    lat_lng[0], lat_lng[1], record.lat, record.lng
                )
                update["distance_unit"] = "m"
            else:
                update["distance"] = None
                update["bearing"] = None
                update["distance_unit"] = None

        return record.model_copy(update=update)

    def run(
        self,
        records: Iterable[AircraftRecord],
        tracking: TrackingConfig,
        *,
        mode: str | None = None,
    ) -> list[AircraftRecord]:
        mode = mode or tracking.client.mode
        enriched = [
            self.enrich(record, mode=mode, lat_lng=tracking.lat_lng)
            for record in records
            if record.callsign
        ]
        ordered = sort_aircraft(enriched, tracking.order_by)
        return limit_aircraft(ordered, tracking.limit)


__all__ = [
    "EnrichmentPipeline",
    "INACTIVE_MARKER",
    "PRIVATE_AIRLINE",
    "UNKNOWN_AIRLINE",
    "limit_aircraft",
    "parse_order_by",
    "sort_aircraft",
]
