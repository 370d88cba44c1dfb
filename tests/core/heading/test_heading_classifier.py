"""Unit tests for cardinal labels and color bands."""

from __future__ import annotations

import numpy as np
import pytest

from core.heading.heading_classifier import (
    ColorBand,
    HeadingCategory,
    cardinal_direction,
    classify,
    color_band,
    distance_from_north,
    normalize_azimuth,
)


@pytest.mark.parametrize(
    "azimuth, expected",
    [
        (0.0, HeadingCategory.NORTH),
        (22.4999, HeadingCategory.NORTH),
        (22.5, HeadingCategory.NORTH_EAST),
        (67.5, HeadingCategory.EAST),
        (112.5, HeadingCategory.SOUTH_EAST),
        (157.5, HeadingCategory.SOUTH),
        (180.0, HeadingCategory.SOUTH),
        (202.5, HeadingCategory.SOUTH_WEST),
        (247.5, HeadingCategory.WEST),
        (292.5, HeadingCategory.NORTH_WEST),
        (337.4999, HeadingCategory.NORTH_WEST),
        (337.5, HeadingCategory.NORTH),
        (359.9, HeadingCategory.NORTH),
    ],
)
def test_cardinal_boundaries(azimuth: float, expected: HeadingCategory) -> None:
    assert cardinal_direction(azimuth) is expected


def test_every_azimuth_gets_exactly_one_label() -> None:
    counts = {category: 0 for category in HeadingCategory}
    for azimuth in np.arange(0.0, 360.0, 0.25):
        counts[cardinal_direction(float(azimuth))] += 1

    # North spans both ends of the range
    assert all(count == 180 for count in counts.values())


@pytest.mark.parametrize(
    "azimuth, expected",
    [
        (0.0, ColorBand.NEAR),
        (9.999, ColorBand.NEAR),
        (350.5, ColorBand.NEAR),
        (10.0, ColorBand.CLOSE),
        (350.0, ColorBand.CLOSE),
        (29.9, ColorBand.CLOSE),
        (30.0, ColorBand.FAR),
        (89.9, ColorBand.FAR),
        (90.0, ColorBand.OPPOSITE),
        (180.0, ColorBand.OPPOSITE),
        (270.0, ColorBand.OPPOSITE),
    ],
)
def test_color_band_boundaries(azimuth: float, expected: ColorBand) -> None:
    assert color_band(azimuth) is expected


def test_distance_from_north_is_symmetric() -> None:
    for azimuth in np.arange(0.0, 180.0, 1.5):
        assert distance_from_north(float(azimuth)) == pytest.approx(
            distance_from_north(360.0 - float(azimuth))
        )
    assert distance_from_north(180.0) == 180.0


def test_normalize_never_returns_360() -> None:
    assert normalize_azimuth(360.0) == 0.0
    assert normalize_azimuth(-1e-18) == 0.0
    assert normalize_azimuth(725.0) == pytest.approx(5.0)


def test_classify_returns_label_and_band() -> None:
    assert classify(95.0) == (HeadingCategory.EAST, ColorBand.OPPOSITE)
    assert classify(15.0) == (HeadingCategory.NORTH, ColorBand.CLOSE)


def test_category_text() -> None:
    assert HeadingCategory.NORTH_EAST.abbreviation == "NE"
    assert HeadingCategory.NORTH_EAST.display_text == "NE North-East"
    assert ColorBand.NEAR.rgb == (0x66, 0x99, 0x00)
    assert ColorBand.NEAR.bgr == (0x00, 0x99, 0x66)
