"""Shared contract for the stream and poll aircraft sources."""

from __future__ import annotations

import logging
from typing import Callable, Generic, Protocol, TypeVar

from flighttracker.models.aircraft import AircraftRecord

logger = logging.getLogger("flighttracker.ingestors")

T = TypeVar("T")


class ConfigurationError(ValueError):
    """Raised when a source is started with an unusable configuration."""


class Listeners(Generic[T]):
    """Callback registry that can be silenced permanently.

    Callback errors are logged and never reach the emitting source.
    """

    def __init__(self) -> None:
        self._callbacks: list[Callable[[T], None]] = []
        self._closed = False

    def add(self, callback: Callable[[T], None]) -> Callable[[], None]:
        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    def emit(self, value: T) -> None:
        if self._closed:
            return
        for callback in list(self._callbacks):
            try:
                callback(value)
            except Exception as exc:
                logger.error("Listener callback error: %s", exc)

    def close(self) -> None:
        self._closed = True
        self._callbacks.clear()

    @property
    def closed(self) -> bool:
        return self._closed


class SourceAdapter(Protocol):
    """Interface shared by the network stream and poll sources."""

    mode: str

    def start(self) -> None:
        """Begin ingesting. Raises ConfigurationError on bad configuration."""

    def stop(self) -> None:
        """Release resources and stop emitting events."""

    def aircraft(self) -> list[AircraftRecord]:
        """Return the latest aircraft snapshot."""

    def add_connectivity_callback(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        """Register a callback receiving True on connect and False on disconnect."""

    def add_update_callback(
        self, callback: Callable[[list[AircraftRecord]], None]
    ) -> Callable[[], None]:
        """Register a callback receiving each new snapshot."""


def require_endpoint(host: str | None, port: int | None) -> None:
    if not host:
        raise ConfigurationError("The host (IP or hostname) is required")
    if not port:
        raise ConfigurationError("The port is required")


__all__ = ["ConfigurationError", "Listeners", "SourceAdapter", "require_endpoint"]
