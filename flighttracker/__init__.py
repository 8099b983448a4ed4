"""FlightTracker backend: live aircraft ingestion, enrichment and presentation API."""
