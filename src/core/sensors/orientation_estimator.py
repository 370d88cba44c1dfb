"""
Azimuth estimation from smoothed gravity and geomagnetic vectors.

The device-to-world rotation matrix is built with the usual accelerometer +
magnetometer pairing:

    H = E x A     east, perpendicular to gravity and the magnetic field
    M = A x H     north, horizontal component of the magnetic field
    R = [H; M; A] rows east, north, up (world frame)

Azimuth is the rotation about the up axis, ``atan2(R[0][1], R[1][1])``,
0 at magnetic north and increasing clockwise. The construction fails when
gravity is too weak (free fall, or filters not yet settled) or when the two
vectors are parallel / zero, in which case ``None`` is returned instead of
a NaN heading.
"""

from __future__ import annotations

import logging
import math
from typing import NamedTuple, Optional, Tuple

import numpy as np

from core.sensors.sensor_types import Vector3
from utils.config_sections import OrientationConfig

log = logging.getLogger(__name__)


class RotationResult(NamedTuple):
    rotation: np.ndarray     # 3x3 device -> world (east, north, up)
    inclination: np.ndarray  # 3x3 rotation about east by the magnetic dip


def get_rotation_matrix(
    gravity: Vector3,
    geomagnetic: Vector3,
    config: Optional[OrientationConfig] = None,
) -> Optional[RotationResult]:
    """Build rotation and inclination matrices, or None when degenerate."""
    cfg = config or OrientationConfig()
    a = gravity.as_array().astype(np.float64)
    e = geomagnetic.as_array().astype(np.float64)
    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(e))):
        return None

    normsq_a = float(np.dot(a, a))
    if normsq_a < cfg.free_fall_gravity_squared:
        return None

    h = np.cross(e, a)
    norm_h = float(np.linalg.norm(h))
    if norm_h < cfg.min_east_norm:
        return None

    h /= norm_h
    a /= math.sqrt(normsq_a)
    m = np.cross(a, h)
    rotation = np.vstack((h, m, a))

    # Inclination: angle of the field below the horizontal plane
    inv_e = 1.0 / float(np.linalg.norm(e))
    c = float(np.dot(e, m)) * inv_e
    s = float(np.dot(e, a)) * inv_e
    inclination = np.array(
        [
            [1.0, 0.0, 0.0],
            [0.0, c, s],
            [0.0, -s, c],
        ]
    )
    return RotationResult(rotation, inclination)


def get_orientation(rotation: np.ndarray) -> Tuple[float, float, float]:
    """
    Decompose a rotation matrix into (azimuth, pitch, roll) in radians.

    Azimuth is about -Z, pitch about X, roll about Y, following the phone
    sensor convention.
    """
    azimuth = math.atan2(rotation[0, 1], rotation[1, 1])
    pitch = math.asin(float(np.clip(-rotation[2, 1], -1.0, 1.0)))
    roll = math.atan2(-rotation[2, 0], rotation[2, 2])
    return azimuth, pitch, roll


def get_inclination(inclination: np.ndarray) -> float:
    """Magnetic dip angle in radians from an inclination matrix."""
    return math.atan2(inclination[1, 2], inclination[1, 1])


class OrientationEstimator:
    """Turns filtered gravity + geomagnetic vectors into an azimuth."""

    def __init__(self, config: Optional[OrientationConfig] = None) -> None:
        self.config = config or OrientationConfig()
        self.estimates = 0
        self.rejections = 0
        self.last_pitch_deg: Optional[float] = None
        self.last_roll_deg: Optional[float] = None

    def estimate(self, gravity: Vector3, geomagnetic: Vector3) -> Optional[float]:
        """
        Compute the raw azimuth in degrees, nominally in (-180, 180].

        Returns:
            Azimuth in degrees, or None when the inputs are degenerate
        """
        result = get_rotation_matrix(gravity, geomagnetic, self.config)
        if result is None:
            self.rejections += 1
            return None

        azimuth, pitch, roll = get_orientation(result.rotation)
        if not math.isfinite(azimuth):
            self.rejections += 1
            log.debug("Non-finite azimuth rejected (gravity=%s, field=%s)", gravity, geomagnetic)
            return None

        self.estimates += 1
        self.last_pitch_deg = math.degrees(pitch)
        self.last_roll_deg = math.degrees(roll)
        return math.degrees(azimuth)
