"""
Sensor sample types shared by the compass pipeline.

Vector3 is the unit of exchange between the host sensor callbacks, the
low-pass filters and the orientation estimator. Values are kept as
single-precision floats, matching what phone sensor stacks deliver.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

import numpy as np


class SensorType(str, Enum):
    """Physical sensors the pipeline consumes."""

    ACCELEROMETER = "accelerometer"
    MAGNETIC_FIELD = "magnetic_field"


class SensorAccuracy(int, Enum):
    """Accuracy levels reported by the host sensor stack."""

    UNRELIABLE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3


REQUIRED_SENSORS = (SensorType.ACCELEROMETER, SensorType.MAGNETIC_FIELD)


@dataclass(frozen=True)
class Vector3:
    """Three-axis sensor sample in device coordinates."""

    x: float
    y: float
    z: float

    @classmethod
    def zero(cls) -> "Vector3":
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def from_iterable(cls, values: Iterable[float]) -> "Vector3":
        arr = np.asarray(list(values), dtype=np.float32)
        if arr.shape != (3,):
            raise ValueError(f"expected 3 values, got shape {arr.shape}")
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float32)

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.as_array())))

    def __iter__(self):
        return iter((self.x, self.y, self.z))
