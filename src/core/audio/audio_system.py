"""
Audio service for the compass: looping music with heading-driven speed,
plus spoken notifications.

Music:
    Tracks from the catalogue are synthesized once with numpy and streamed
    through a sounddevice OutputStream. The stream callback resamples the
    loop with a fractional read position, so changing the speed multiplier
    takes effect on the next audio block.

Speech:
    Notifications are spoken with ``say`` on macOS or pyttsx3 on Linux,
    with repeat and announcement cooldowns so a flapping sensor does not
    repeat the same sentence.
"""

import logging
import platform
import shutil
import subprocess
import threading
import time
from collections import deque
from typing import Optional

import numpy as np

from core.audio.playback import PlaybackIntent, Track, get_track
from utils.config_sections import AudioConfig, load_audio_config

try:
    import sounddevice as sd
except (ImportError, OSError):  # PortAudio missing raises OSError
    sd = None
    logging.getLogger(__name__).warning("sounddevice unavailable. Music playback will be disabled.")

try:
    import pyttsx3
except ImportError:
    pyttsx3 = None
    logging.getLogger(__name__).warning("pyttsx3 not found. TTS will be disabled on non-macOS systems.")

log = logging.getLogger(__name__)

FADE_SECONDS = 0.01


def render_track(track: Track, sample_rate: int = 44100) -> np.ndarray:
    """Synthesize one loop of ``track`` as mono float32 in [-1, 1]."""
    beat_seconds = 60.0 / track.bpm
    fade_samples = int(sample_rate * FADE_SECONDS)
    pieces = []
    for frequency, beats in track.notes:
        n = max(1, int(sample_rate * beats * beat_seconds))
        if frequency <= 0:
            pieces.append(np.zeros(n, dtype=np.float32))
            continue
        t = np.arange(n, dtype=np.float32) / sample_rate
        tone = np.sin(2 * np.pi * frequency * t) + 0.3 * np.sin(4 * np.pi * frequency * t)
        tone /= 1.3
        if n > fade_samples * 2:
            tone[:fade_samples] *= np.linspace(0, 1, fade_samples)
            tone[-fade_samples:] *= np.linspace(1, 0, fade_samples)
        pieces.append(tone.astype(np.float32))
    return np.concatenate(pieces)


class CompassAudioSystem:
    """Background music whose tempo follows the heading, multi-platform TTS."""

    def __init__(self, config: Optional[AudioConfig] = None, compass_logger=None):
        self.config = config or load_audio_config()
        self._audio_log = compass_logger.audio if compass_logger else log

        self.tts_engine = None
        self.tts_backend: Optional[str] = None
        self.tts_rate = self.config.tts_rate_linux
        if self.config.tts_enabled:
            self._setup_tts()

        # Speech control
        self.audio_queue = deque(maxlen=3)
        self.last_announcement_time = 0.0
        self.announcement_cooldown = self.config.announcement_cooldown
        self.repeat_cooldown = self.config.repeat_cooldown
        self.last_phrase: Optional[str] = None
        self.last_phrase_time: float = 0.0
        self.tts_speaking = False

        # Music state (read by the stream callback)
        self._music_lock = threading.Lock()
        self._stream = None
        self._wave: Optional[np.ndarray] = None
        self._position = 0.0
        self.speed = 1.0
        self.current_track_id: Optional[str] = None

        self.stats = {
            'tracks_started': 0,
            'speed_changes': 0,
            'phrases_spoken': 0,
        }

        log.info("Compass audio system initialized (tts=%s, music=%s)",
                 self.tts_backend, "on" if sd else "off")

    @property
    def is_speaking(self) -> bool:
        return self.tts_speaking

    @property
    def is_playing(self) -> bool:
        return self._stream is not None

    # ------------------------------------------------------------------
    # TTS
    # ------------------------------------------------------------------

    def _setup_tts(self):
        """Configure TTS based on the operating system."""
        system = platform.system()

        if system == "Darwin" and shutil.which('say'):
            self.tts_backend = "say"
            self.tts_rate = self.config.tts_rate_mac
            log.info("Using 'say' for TTS on macOS.")

        elif system == "Linux" and pyttsx3:
            try:
                self.tts_engine = pyttsx3.init()
                self.tts_rate = self.config.tts_rate_linux
                self.tts_engine.setProperty('rate', self.tts_rate)
                self.tts_engine.setProperty('volume', 1.0)
                self.tts_backend = "pyttsx3"
                log.info("Using pyttsx3 for TTS on Linux (rate=%d).", self.tts_rate)
            except Exception as e:
                log.error("Failed to initialize pyttsx3 on Linux: %s", e)
                self.tts_backend = None
        else:
            log.warning("No supported TTS backend found for %s.", system)
            self.tts_backend = None

    def set_repeat_cooldown(self, seconds: float) -> None:
        try:
            self.repeat_cooldown = max(0.1, float(seconds))
        except (TypeError, ValueError):
            pass

    def set_announcement_cooldown(self, seconds: float) -> None:
        try:
            self.announcement_cooldown = max(0.0, float(seconds))
        except (TypeError, ValueError):
            pass

    def _should_announce(self, phrase: str) -> bool:
        if not self.tts_backend:
            return False

        now = time.time()
        if phrase == self.last_phrase:
            return (now - self.last_phrase_time) >= self.repeat_cooldown
        return (now - self.last_announcement_time) >= self.announcement_cooldown

    def speak_async(self, message: str, *, force: bool = False) -> bool:
        """Speak ``message`` on a daemon thread; False when skipped."""
        if not message:
            return False

        def _speak():
            try:
                self.tts_speaking = True
                self.audio_queue.append(message)

                if self.tts_backend == "say":
                    subprocess.Popen(["say", "-r", str(self.tts_rate), message])
                    time.sleep(0.1)

                elif self.tts_backend == "pyttsx3" and self.tts_engine:
                    self.tts_engine.say(message)
                    self.tts_engine.runAndWait()

            except Exception as e:
                log.warning("TTS error: %s", e)
            finally:
                if self.audio_queue and self.audio_queue[-1] == message:
                    try:
                        self.audio_queue.pop()
                    except IndexError:
                        pass
                self.tts_speaking = False

        should_speak = force or self._should_announce(message)
        self._audio_log.debug(
            f"speak_async('{message}', force={force}) -> should={should_speak}, backend={self.tts_backend}"
        )

        if self.tts_backend and should_speak:
            self.last_phrase = message
            self.last_announcement_time = time.time()
            self.last_phrase_time = self.last_announcement_time
            self.stats['phrases_spoken'] += 1
            threading.Thread(target=_speak, daemon=True).start()
            return True
        return False

    # ------------------------------------------------------------------
    # Music
    # ------------------------------------------------------------------

    def play(self, track_id: str) -> bool:
        """Start looping ``track_id`` from the beginning (restarts if playing)."""
        track = get_track(track_id)
        self.stop()
        if sd is None:
            self._audio_log.warning("Cannot play '%s': sounddevice not available", track_id)
            return False

        wave = render_track(track, self.config.sample_rate)
        with self._music_lock:
            self._wave = wave
            self._position = 0.0
        try:
            stream = sd.OutputStream(
                samplerate=self.config.sample_rate,
                channels=1,
                dtype='float32',
                blocksize=self.config.block_size,
                callback=self._stream_callback,
            )
            stream.start()
        except Exception as e:
            self._audio_log.warning("Failed to open audio stream: %s", e)
            with self._music_lock:
                self._wave = None
            return False

        self._stream = stream
        self.current_track_id = track_id
        self.stats['tracks_started'] += 1
        self._audio_log.info("Playing '%s' at speed %.2f", track.title, self.speed)
        return True

    def stop(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.stop()
                stream.close()
            except Exception as e:
                self._audio_log.warning("Error closing audio stream: %s", e)
            self._audio_log.info("Stopped '%s'", self.current_track_id)
        with self._music_lock:
            self._wave = None
        self.current_track_id = None

    def set_speed(self, speed: float) -> None:
        speed = float(speed)
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")
        with self._music_lock:
            if abs(speed - self.speed) > 1e-6:
                self.stats['speed_changes'] += 1
            self.speed = speed

    def _stream_callback(self, outdata, frames, time_info, status) -> None:
        if status:
            self._audio_log.debug("Stream status: %s", status)
        with self._music_lock:
            wave = self._wave
            if wave is None or len(wave) == 0:
                outdata.fill(0)
                return
            positions = self._position + np.arange(frames) * self.speed
            self._position = float((self._position + frames * self.speed) % len(wave))

        lower = np.floor(positions).astype(np.int64)
        frac = (positions - lower).astype(np.float32)
        lower %= len(wave)
        upper = (lower + 1) % len(wave)
        block = wave[lower] * (1.0 - frac) + wave[upper] * frac
        outdata[:, 0] = block * self.config.volume

    # ------------------------------------------------------------------
    # Intent handling
    # ------------------------------------------------------------------

    def apply_track_selection(self, intent: PlaybackIntent) -> None:
        """Selecting a track starts it when sound is enabled."""
        if intent.enabled:
            self.set_speed(intent.speed_multiplier)
            self.play(intent.track_id)

    def apply_sound_enabled(self, intent: PlaybackIntent) -> None:
        """Disabling sound stops the music; enabling waits for a track selection."""
        if not intent.enabled:
            self.stop()

    def apply_tempo(self, intent: PlaybackIntent) -> None:
        """Follow the heading-driven speed while music is playing."""
        if not intent.enabled or not self.is_playing:
            return
        self.set_speed(intent.speed_multiplier)

    def get_stats(self) -> dict:
        return {
            **self.stats,
            'playing': self.current_track_id,
            'speed': self.speed,
            'tts_backend': self.tts_backend,
        }

    def close(self):
        self.stop()
        if self.tts_backend == "pyttsx3" and self.tts_engine:
            try:
                self.tts_engine.stop()
            except Exception:
                pass
