"""
Azimuth to cardinal direction and color band.

Both mappings are static ordered tables. Lower bounds are inclusive, so a
value sitting exactly on a boundary (22.5, 67.5, ...) belongs to the range
above it. North wraps around 0°.

Color bands grade the distance from north:

    distance < 10   NEAR      green
    distance < 30   CLOSE     blue
    distance < 90   FAR       orange
    otherwise       OPPOSITE  red
"""

from __future__ import annotations

from bisect import bisect_right
from enum import Enum
from typing import Tuple


class HeadingCategory(Enum):
    NORTH = ("N", "North")
    NORTH_EAST = ("NE", "North-East")
    EAST = ("E", "East")
    SOUTH_EAST = ("SE", "South-East")
    SOUTH = ("S", "South")
    SOUTH_WEST = ("SW", "South-West")
    WEST = ("W", "West")
    NORTH_WEST = ("NW", "North-West")

    @property
    def abbreviation(self) -> str:
        return self.value[0]

    @property
    def label(self) -> str:
        return self.value[1]

    @property
    def display_text(self) -> str:
        return f"{self.abbreviation} {self.label}"


class ColorBand(Enum):
    NEAR = ("near", (0x66, 0x99, 0x00))
    CLOSE = ("close", (0x00, 0x99, 0xCC))
    FAR = ("far", (0xFF, 0x88, 0x00))
    OPPOSITE = ("opposite", (0xCC, 0x00, 0x00))

    @property
    def name_text(self) -> str:
        return self.value[0]

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return self.value[1]

    @property
    def bgr(self) -> Tuple[int, int, int]:
        r, g, b = self.value[1]
        return b, g, r


# Upper-exclusive boundaries; index into _SECTORS with bisect_right
_SECTOR_BOUNDS = (22.5, 67.5, 112.5, 157.5, 202.5, 247.5, 292.5, 337.5)
_SECTORS = (
    HeadingCategory.NORTH,
    HeadingCategory.NORTH_EAST,
    HeadingCategory.EAST,
    HeadingCategory.SOUTH_EAST,
    HeadingCategory.SOUTH,
    HeadingCategory.SOUTH_WEST,
    HeadingCategory.WEST,
    HeadingCategory.NORTH_WEST,
    HeadingCategory.NORTH,
)

_COLOR_BANDS = (
    (10.0, ColorBand.NEAR),
    (30.0, ColorBand.CLOSE),
    (90.0, ColorBand.FAR),
)


def normalize_azimuth(azimuth_deg: float) -> float:
    """Wrap any angle into [0, 360)."""
    wrapped = float(azimuth_deg) % 360.0
    # Tiny negative inputs round up to exactly 360.0
    if wrapped >= 360.0:
        wrapped = 0.0
    return wrapped


def distance_from_north(azimuth_deg: float) -> float:
    """Angular distance to north in [0, 180]."""
    a = normalize_azimuth(azimuth_deg)
    return min(a, 360.0 - a)


def cardinal_direction(azimuth_deg: float) -> HeadingCategory:
    return _SECTORS[bisect_right(_SECTOR_BOUNDS, normalize_azimuth(azimuth_deg))]


def color_band(azimuth_deg: float) -> ColorBand:
    distance = distance_from_north(azimuth_deg)
    for upper, band in _COLOR_BANDS:
        if distance < upper:
            return band
    return ColorBand.OPPOSITE


def classify(azimuth_deg: float) -> Tuple[HeadingCategory, ColorBand]:
    """Map an azimuth to its cardinal label and color band."""
    return cardinal_direction(azimuth_deg), color_band(azimuth_deg)
