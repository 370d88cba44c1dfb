"""Exception types raised by the compass pipeline."""

from __future__ import annotations

from typing import Iterable, Tuple


class CompassError(Exception):
    """Base class for compass application errors."""


class SensorUnavailableError(CompassError):
    """The device lacks a sensor the heading pipeline needs."""

    def __init__(self, missing: Iterable) -> None:
        self.missing: Tuple = tuple(missing)
        names = ", ".join(getattr(sensor, "value", str(sensor)) for sensor in self.missing)
        super().__init__(f"Required sensors unavailable: {names}")


class UnknownTrackError(CompassError, ValueError):
    """A track id outside the catalogue was selected."""

    def __init__(self, track_id: str, known: Tuple[str, ...] = ()) -> None:
        self.track_id = track_id
        self.known = known
        super().__init__(f"Unknown track '{track_id}' (known: {', '.join(known) or 'none'})")
