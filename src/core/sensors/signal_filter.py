"""
Exponential low-pass filtering of 3-axis sensor streams.

Each new sample is blended into the running estimate:

    next = (1 - alpha) * previous + alpha * sample

With the default alpha of 0.1 this damps high-frequency jitter at the cost
of roughly ten samples of lag. The result is a convex combination of the
previous estimate and the sample, so finite inputs always stay finite.

Usage:
    gravity = LowPassFilter()
    smoothed = gravity.feed(Vector3(0.0, 0.0, 9.8))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from core.sensors.sensor_types import Vector3
from utils.config_sections import FilterConfig


def update(previous: Vector3, sample: Vector3, alpha: float = 0.1) -> Vector3:
    """Blend ``sample`` into ``previous`` (single-precision, per axis)."""
    a = np.float32(alpha)
    blended = (np.float32(1.0) - a) * previous.as_array() + a * sample.as_array()
    return Vector3.from_iterable(blended)


class LowPassFilter:
    """Running exponential moving average for one physical sensor."""

    def __init__(self, config: Optional[FilterConfig] = None) -> None:
        self.config = config or FilterConfig()
        self.value = Vector3.zero()
        self.samples = 0

    @property
    def alpha(self) -> float:
        return self.config.alpha

    def feed(self, sample: Vector3) -> Vector3:
        self.value = update(self.value, sample, self.config.alpha)
        self.samples += 1
        return self.value

    def reset(self) -> None:
        self.value = Vector3.zero()
        self.samples = 0


@dataclass
class FilterState:
    """Smoothed gravity and geomagnetic estimates for one session."""

    config: FilterConfig = field(default_factory=FilterConfig)
    gravity_filter: LowPassFilter = field(init=False)
    geomagnetic_filter: LowPassFilter = field(init=False)

    def __post_init__(self) -> None:
        self.gravity_filter = LowPassFilter(self.config)
        self.geomagnetic_filter = LowPassFilter(self.config)

    @property
    def gravity(self) -> Vector3:
        return self.gravity_filter.value

    @property
    def geomagnetic(self) -> Vector3:
        return self.geomagnetic_filter.value

    def feed_accelerometer(self, sample: Vector3) -> Vector3:
        return self.gravity_filter.feed(sample)

    def feed_magnetometer(self, sample: Vector3) -> Vector3:
        return self.geomagnetic_filter.feed(sample)

    def reset(self) -> None:
        self.gravity_filter.reset()
        self.geomagnetic_filter.reset()
