"""
Playback intent and the built-in track catalogue.

The session records what the user wants to hear (sound on/off, which
track) and the speed derived from the current heading. The audio service
reads this intent whenever a heading update arrives; nothing here touches
an audio device.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from core.errors import UnknownTrackError


@dataclass(frozen=True)
class Track:
    """Looping melody synthesized at runtime."""

    track_id: str
    title: str
    bpm: int
    notes: Tuple[Tuple[float, float], ...]  # (frequency Hz, beats); 0 Hz is a rest


TRACKS: Dict[str, Track] = {
    "cent": Track(
        track_id="cent",
        title="Centro",
        bpm=96,
        notes=((261.63, 1), (329.63, 1), (392.00, 1), (523.25, 1),
               (392.00, 1), (329.63, 1), (261.63, 2)),
    ),
    "natural": Track(
        track_id="natural",
        title="Natural",
        bpm=80,
        notes=((220.00, 2), (246.94, 1), (261.63, 1), (293.66, 2),
               (0.0, 1), (261.63, 1), (220.00, 2)),
    ),
    "pac": Track(
        track_id="pac",
        title="Pac",
        bpm=140,
        notes=((493.88, 0.5), (987.77, 0.5), (739.99, 0.5), (622.25, 0.5),
               (987.77, 0.25), (739.99, 0.75), (622.25, 1), (0.0, 1)),
    ),
    "sun": Track(
        track_id="sun",
        title="Sun",
        bpm=110,
        notes=((392.00, 1), (440.00, 1), (493.88, 1), (587.33, 2),
               (493.88, 1), (440.00, 2)),
    ),
}

DEFAULT_TRACK_ID = "pac"


def get_track(track_id: str) -> Track:
    try:
        return TRACKS[track_id]
    except KeyError:
        raise UnknownTrackError(track_id, tuple(TRACKS)) from None


@dataclass
class PlaybackIntent:
    """What the user asked the audio service to do."""

    enabled: bool = True
    track_id: str = DEFAULT_TRACK_ID
    speed_multiplier: float = 1.0

    def select(self, track_id: str) -> None:
        get_track(track_id)
        self.track_id = track_id

    @property
    def track(self) -> Track:
        return get_track(self.track_id)
