"""
Sample-counting calibration.

A calibration request starts a short session that counts successful
orientation estimates. When ``target_samples`` have been observed the
session completes exactly once and then goes inert until the next request.

The additive offset is carried through every azimuth but stays at its
configured value; the session only gates the "calibration complete"
notification.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.heading.heading_classifier import normalize_azimuth
from utils.config_sections import CalibrationConfig

log = logging.getLogger(__name__)


@dataclass
class CalibrationSession:
    """Progress of one calibration request."""

    target_samples: int = 10
    samples_seen: int = 0
    offset: float = 0.0

    @property
    def is_complete(self) -> bool:
        return self.samples_seen >= self.target_samples

    @property
    def progress(self) -> float:
        return min(1.0, self.samples_seen / self.target_samples)


class Calibrator:
    """Counts orientation samples after a calibration request."""

    def __init__(self, config: Optional[CalibrationConfig] = None) -> None:
        self.config = config or CalibrationConfig()
        self.session: Optional[CalibrationSession] = None
        self.completed_sessions = 0

    @property
    def target_samples(self) -> int:
        return self.config.target_samples

    @property
    def offset(self) -> float:
        if self.session is not None:
            return self.session.offset
        return self.config.offset_deg

    @property
    def samples_seen(self) -> int:
        return self.session.samples_seen if self.session is not None else 0

    @property
    def is_active(self) -> bool:
        return self.session is not None and not self.session.is_complete

    def request_calibration(self) -> CalibrationSession:
        """Start (or restart) counting from zero."""
        if self.is_active:
            log.info("Calibration restarted at %d/%d samples",
                     self.session.samples_seen, self.target_samples)
        self.session = CalibrationSession(
            target_samples=self.config.target_samples,
            offset=self.config.offset_deg,
        )
        return self.session

    def observe(self) -> bool:
        """
        Count one successful orientation estimate.

        Returns:
            True only on the call that reaches ``target_samples``
        """
        if not self.is_active:
            return False
        self.session.samples_seen += 1
        if self.session.is_complete:
            self.completed_sessions += 1
            log.info("Calibration complete after %d samples", self.session.samples_seen)
            return True
        return False

    def apply(self, azimuth_deg: float) -> float:
        """Apply the offset and normalize to [0, 360)."""
        return normalize_azimuth(azimuth_deg + 360.0 + self.offset)
