"""Unit tests for the CompassAudioSystem class."""

from __future__ import annotations

import numpy as np
import pytest

import core.audio.audio_system as audio_module
from core.audio.audio_system import CompassAudioSystem, render_track
from core.audio.playback import TRACKS, PlaybackIntent
from core.errors import UnknownTrackError


class SyncThread:
    def __init__(self, target, daemon=False):
        self.target = target
        self.daemon = daemon

    def start(self):
        self.target()


class FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.value = start

    def time(self) -> float:
        return self.value

    def advance(self, delta: float) -> None:
        self.value += delta


class FakeStream:
    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.started = False
        self.closed = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.started = False

    def close(self) -> None:
        self.closed = True


class FakeSoundDevice:
    def __init__(self) -> None:
        self.streams: list[FakeStream] = []

    def OutputStream(self, **kwargs) -> FakeStream:
        stream = FakeStream(**kwargs)
        self.streams.append(stream)
        return stream


@pytest.fixture()
def audio_env(monkeypatch: pytest.MonkeyPatch):
    clock = FakeClock()
    popen_calls: list[list[str]] = []
    fake_sd = FakeSoundDevice()

    monkeypatch.setattr(audio_module.platform, "system", lambda: "Darwin")
    monkeypatch.setattr(audio_module.shutil, "which", lambda _: "/usr/bin/say")
    monkeypatch.setattr(audio_module.subprocess, "Popen", lambda cmd: popen_calls.append(cmd))
    monkeypatch.setattr(audio_module.threading, "Thread", SyncThread)
    monkeypatch.setattr(audio_module.time, "time", clock.time)
    monkeypatch.setattr(audio_module.time, "sleep", lambda _: None)
    monkeypatch.setattr(audio_module, "sd", fake_sd)

    system = CompassAudioSystem()
    return system, clock, popen_calls, fake_sd


def test_speak_async_respects_repeat_cooldown(audio_env) -> None:
    system, clock, popen_calls, _ = audio_env

    assert system.speak_async("Calibration complete") is True
    assert popen_calls and popen_calls[0][-1] == "Calibration complete"

    # Immediate repetition blocked by repeat cooldown.
    assert system.speak_async("Calibration complete") is False

    clock.advance(system.repeat_cooldown + 0.1)
    assert system.speak_async("Calibration complete") is True
    assert len(popen_calls) == 2
    assert system.get_stats()["phrases_spoken"] == 2


def test_speak_async_force_bypasses_cooldown(audio_env) -> None:
    system, _, _, _ = audio_env

    assert system.speak_async("warning") is True
    assert system.speak_async("warning") is False
    assert system.speak_async("warning", force=True) is True


def test_speak_async_ignores_empty_message(audio_env) -> None:
    system, _, popen_calls, _ = audio_env

    assert system.speak_async("") is False
    assert popen_calls == []


def test_cooldown_setters(audio_env) -> None:
    system, _, _, _ = audio_env

    system.set_repeat_cooldown("invalid")
    assert system.repeat_cooldown == 2.0  # unchanged

    system.set_repeat_cooldown(0.05)
    assert system.repeat_cooldown == pytest.approx(0.1)

    system.set_announcement_cooldown(-1)
    assert system.announcement_cooldown == 0.0


def test_no_tts_backend_on_unknown_platform(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(audio_module.platform, "system", lambda: "Plan9")
    monkeypatch.setattr(audio_module, "sd", None)

    system = CompassAudioSystem()

    assert system.tts_backend is None
    assert system.speak_async("hello") is False


def test_play_opens_stream_for_track(audio_env) -> None:
    system, _, _, fake_sd = audio_env

    assert system.play("sun") is True

    assert system.is_playing
    assert system.current_track_id == "sun"
    assert fake_sd.streams[0].started
    assert fake_sd.streams[0].kwargs["samplerate"] == system.config.sample_rate


def test_play_restarts_previous_stream(audio_env) -> None:
    system, _, _, fake_sd = audio_env
    system.play("cent")

    system.play("pac")

    assert fake_sd.streams[0].closed
    assert system.current_track_id == "pac"
    assert system.get_stats()["tracks_started"] == 2


def test_play_unknown_track_raises(audio_env) -> None:
    system, _, _, _ = audio_env

    with pytest.raises(UnknownTrackError):
        system.play("polka")


def test_play_without_sounddevice(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(audio_module.platform, "system", lambda: "Plan9")
    monkeypatch.setattr(audio_module, "sd", None)
    system = CompassAudioSystem()

    assert system.play("pac") is False
    assert not system.is_playing


def test_set_speed_validates_and_counts(audio_env) -> None:
    system, _, _, _ = audio_env

    system.set_speed(0.75)
    system.set_speed(0.75)

    assert system.speed == 0.75
    assert system.stats["speed_changes"] == 1
    with pytest.raises(ValueError):
        system.set_speed(0)


def test_stream_callback_advances_by_speed(audio_env) -> None:
    system, _, _, _ = audio_env
    system.play("pac")
    wave_length = len(system._wave)
    out = np.zeros((256, 1), dtype=np.float32)

    system.set_speed(0.5)
    system._stream_callback(out, 256, None, None)

    assert system._position == pytest.approx(128.0)
    assert np.all(np.abs(out) <= 1.0)
    assert wave_length > 256


def test_stream_callback_outputs_silence_when_stopped(audio_env) -> None:
    system, _, _, _ = audio_env
    out = np.ones((64, 1), dtype=np.float32)

    system._stream_callback(out, 64, None, None)

    assert not out.any()


def test_intent_handlers(audio_env) -> None:
    system, _, _, _ = audio_env
    intent = PlaybackIntent(enabled=True, track_id="natural", speed_multiplier=0.8)

    # Tempo is ignored until a track is playing
    system.apply_tempo(intent)
    assert system.speed == 1.0

    system.apply_track_selection(intent)
    assert system.current_track_id == "natural"
    assert system.speed == pytest.approx(0.8)

    intent.speed_multiplier = 0.6
    system.apply_tempo(intent)
    assert system.speed == pytest.approx(0.6)

    intent.enabled = False
    system.apply_sound_enabled(intent)
    assert not system.is_playing


def test_render_track_is_normalized_float32() -> None:
    wave = render_track(TRACKS["natural"], sample_rate=8000)

    assert wave.dtype == np.float32
    assert np.max(np.abs(wave)) <= 1.0
    # 10 beats at 80 bpm
    assert len(wave) == pytest.approx(8000 * 10 * 60 / 80, rel=0.01)
