"""Unit tests for rotation-matrix azimuth estimation."""

from __future__ import annotations

import math

import numpy as np
import pytest

from core.mock_observer import flat_device_samples
from core.sensors.orientation_estimator import (
    OrientationEstimator,
    get_inclination,
    get_orientation,
    get_rotation_matrix,
)
from core.sensors.sensor_types import Vector3

GRAVITY = Vector3(0.0, 0.0, 9.8)


def _field_for(heading: float) -> Vector3:
    _, (_, mag) = flat_device_samples(heading)
    return Vector3.from_iterable(mag)


def test_flat_device_facing_north_reads_zero() -> None:
    estimator = OrientationEstimator()

    azimuth = estimator.estimate(GRAVITY, Vector3(0.0, 25.0, -40.0))

    assert azimuth == pytest.approx(0.0, abs=1e-6)
    assert estimator.last_pitch_deg == pytest.approx(0.0, abs=1e-6)
    assert estimator.last_roll_deg == pytest.approx(0.0, abs=1e-6)


@pytest.mark.parametrize("heading", [45.0, 90.0, 135.0, -90.0, -30.0])
def test_flat_device_reads_its_heading(heading: float) -> None:
    azimuth = OrientationEstimator().estimate(GRAVITY, _field_for(heading))

    assert azimuth == pytest.approx(heading, abs=1e-3)


def test_rotation_matrix_is_orthonormal() -> None:
    result = get_rotation_matrix(Vector3(0.5, 1.0, 9.6), Vector3(3.0, 20.0, -38.0))

    assert result is not None
    r = result.rotation
    np.testing.assert_allclose(r @ r.T, np.eye(3), atol=1e-9)


def test_inclination_matches_field_dip() -> None:
    result = get_rotation_matrix(GRAVITY, Vector3(0.0, 25.0, -40.0))

    # Field points below the horizon in the northern hemisphere
    expected = math.atan2(-40.0, 25.0)
    assert get_inclination(result.inclination) == pytest.approx(expected, abs=1e-6)


def test_orientation_of_identity_is_zero() -> None:
    assert get_orientation(np.eye(3)) == (0.0, 0.0, 0.0)


def test_free_fall_is_rejected() -> None:
    estimator = OrientationEstimator()

    # |a|² just below 1% of g²
    assert estimator.estimate(Vector3(0.0, 0.0, 0.98), Vector3(0.0, 25.0, -40.0)) is None
    assert estimator.rejections == 1


def test_zero_vectors_are_rejected() -> None:
    assert OrientationEstimator().estimate(Vector3.zero(), Vector3.zero()) is None
    assert OrientationEstimator().estimate(GRAVITY, Vector3.zero()) is None


def test_field_parallel_to_gravity_is_rejected() -> None:
    assert OrientationEstimator().estimate(GRAVITY, Vector3(0.0, 0.0, 50.0)) is None


def test_non_finite_inputs_are_rejected() -> None:
    estimator = OrientationEstimator()

    assert estimator.estimate(Vector3(float("nan"), 0.0, 9.8), Vector3(0.0, 25.0, -40.0)) is None
    assert estimator.estimate(GRAVITY, Vector3(float("inf"), 25.0, -40.0)) is None
    assert estimator.estimates == 0
    assert estimator.rejections == 2


def test_estimates_are_counted() -> None:
    estimator = OrientationEstimator()
    for heading in (0.0, 10.0, 20.0):
        estimator.estimate(GRAVITY, _field_for(heading))

    assert estimator.estimates == 3
    assert estimator.rejections == 0
