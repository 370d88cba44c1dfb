"""Playback speed from proximity to north: full speed at north, half at south."""

from __future__ import annotations

from typing import Optional

from core.heading.heading_classifier import distance_from_north
from utils.config_sections import TempoConfig


def speed_for(azimuth_deg: float, min_speed: float = 0.5, max_speed: float = 1.0) -> float:
    """Linear in the distance from north, symmetric about the north-south axis."""
    return max_speed - (max_speed - min_speed) * (distance_from_north(azimuth_deg) / 180.0)


class TempoController:
    def __init__(self, config: Optional[TempoConfig] = None) -> None:
        self.config = config or TempoConfig()
        self.current_speed = self.config.max_speed

    def speed_for(self, azimuth_deg: float) -> float:
        self.current_speed = speed_for(azimuth_deg, self.config.min_speed, self.config.max_speed)
        return self.current_speed
