"""
Change-threshold gate between the estimator and the presentation layer.

Filtered sensor data still jitters by fractions of a degree. The gate only
lets an azimuth through when it differs from the last displayed value by
more than ``threshold`` degrees, and it only moves that baseline when a
value passes. Suppressed values never shift the baseline, so a slow drift
still triggers once it accumulates past the threshold.
"""

from __future__ import annotations

from typing import Optional

from utils.config_sections import GateConfig


def should_update(current: float, previous: float, threshold: float = 0.5) -> bool:
    """True iff ``abs(current - previous) > threshold`` (strict)."""
    return abs(current - previous) > threshold


class PresentationGate:
    """Holds the last displayed azimuth and filters redundant updates."""

    def __init__(self, config: Optional[GateConfig] = None) -> None:
        self.config = config or GateConfig()
        self.last_displayed: Optional[float] = None
        self.previous_displayed: Optional[float] = None
        self.passed = 0
        self.suppressed = 0

    @property
    def threshold(self) -> float:
        return self.config.threshold_deg

    def offer(self, azimuth: float, force: bool = False) -> bool:
        """
        Offer a new azimuth.

        The first value after construction or reset always passes.

        Returns:
            True when the presentation should update
        """
        if (
            force
            or self.last_displayed is None
            or should_update(azimuth, self.last_displayed, self.config.threshold_deg)
        ):
            self.previous_displayed = self.last_displayed
            self.last_displayed = azimuth
            self.passed += 1
            return True
        self.suppressed += 1
        return False

    def reset(self) -> None:
        self.last_displayed = None
        self.previous_displayed = None
