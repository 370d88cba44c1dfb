"""
Compass session: the sensor-to-presentation pipeline.

One session owns every piece of mutable state for a running compass:

    raw samples -> LowPassFilter (gravity / geomagnetic)
                -> OrientationEstimator (rotation matrix azimuth)
                -> Calibrator (offset, sample counting)
                -> PresentationGate (change threshold)
                -> HeadingClassifier + TempoController
                -> on_heading_update(HeadingUpdate)

State machine:
- IDLE: no valid orientation estimate yet
- TRACKING: normal operation
- CALIBRATING: a calibration request is counting samples; it ends by itself
  after the configured number of estimates, or restarts on a new request

Samples are accepted from construction. ``stop()`` or a ``start()`` that
finds a missing sensor disables tracking: further samples are counted as
rejected and leave the filters untouched until a successful ``start()``.

Threading:
    With ``thread_safe=True`` (default) every entry point takes a re-entrant
    lock, so sensor callbacks may arrive from any thread. With
    ``thread_safe=False`` the host must serialize delivery (single event
    loop). Callbacks run on the delivering thread; hosts that draw on a UI
    thread marshal them there.

Usage:
    session = CompassSession(on_heading_update=render)
    session.start(available_sensors=[SensorType.ACCELEROMETER, SensorType.MAGNETIC_FIELD])
    session.feed_accelerometer(Vector3(0.0, 0.0, 9.8))
    session.feed_magnetometer(Vector3(0.0, 25.0, -40.0))
"""

from __future__ import annotations

import contextlib
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, Iterable, Optional, Sequence, Tuple, Union

from core.audio.playback import PlaybackIntent
from core.audio.tempo_controller import TempoController
from core.calibration.calibrator import Calibrator
from core.errors import SensorUnavailableError
from core.heading.heading_classifier import ColorBand, HeadingCategory, classify
from core.heading.presentation_gate import PresentationGate
from core.notifications import (
    CALIBRATION_COMPLETED,
    CALIBRATION_STARTED,
    SENSOR_UNRELIABLE,
    SENSORS_UNAVAILABLE,
    Notification,
    NotificationDuration,
    NotificationLevel,
)
from core.sensors.orientation_estimator import OrientationEstimator
from core.sensors.sensor_types import REQUIRED_SENSORS, SensorAccuracy, SensorType, Vector3
from core.sensors.signal_filter import FilterState
from utils.config_sections import (
    AudioConfig,
    CalibrationConfig,
    FilterConfig,
    GateConfig,
    OrientationConfig,
    TempoConfig,
    load_audio_config,
    load_calibration_config,
    load_filter_config,
    load_gate_config,
    load_orientation_config,
    load_tempo_config,
)

log = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    CALIBRATING = "calibrating"


@dataclass(frozen=True)
class HeadingUpdate:
    """Payload delivered to the presentation and audio layers."""

    azimuth: float
    label: HeadingCategory
    color_band: ColorBand
    tempo_multiplier: float
    calibration_just_completed: bool = False
    previous_azimuth: Optional[float] = None

    @property
    def degrees_text(self) -> str:
        return f"{self.azimuth:.1f}°"


@dataclass(frozen=True)
class CapabilityReport:
    available: FrozenSet[SensorType]
    missing: Tuple[SensorType, ...]

    @property
    def is_supported(self) -> bool:
        return not self.missing


def check_sensor_capabilities(
    available_sensors: Iterable[Union[SensorType, str]],
    required: Sequence[SensorType] = REQUIRED_SENSORS,
) -> CapabilityReport:
    """Compare the host's sensors against what the pipeline needs."""
    available = frozenset(SensorType(s) for s in available_sensors)
    missing = tuple(sensor for sensor in required if sensor not in available)
    return CapabilityReport(available=available, missing=missing)


HeadingCallback = Callable[[HeadingUpdate], None]
NotificationCallback = Callable[[Notification], None]


class CompassSession:
    """Owns filters, calibration, gate and playback intent for one run."""

    def __init__(
        self,
        on_heading_update: Optional[HeadingCallback] = None,
        on_notification: Optional[NotificationCallback] = None,
        *,
        filter_config: Optional[FilterConfig] = None,
        orientation_config: Optional[OrientationConfig] = None,
        gate_config: Optional[GateConfig] = None,
        calibration_config: Optional[CalibrationConfig] = None,
        tempo_config: Optional[TempoConfig] = None,
        audio_config: Optional[AudioConfig] = None,
        thread_safe: bool = True,
        compass_logger=None,
    ) -> None:
        self.on_heading_update = on_heading_update
        self.on_notification = on_notification

        self.calibration_config = calibration_config or load_calibration_config()
        audio_config = audio_config or load_audio_config()

        self.filters = FilterState(filter_config or load_filter_config())
        self.estimator = OrientationEstimator(orientation_config or load_orientation_config())
        self.calibrator = Calibrator(self.calibration_config)
        self.gate = PresentationGate(gate_config or load_gate_config())
        self.tempo = TempoController(tempo_config or load_tempo_config())
        self.playback = PlaybackIntent(enabled=audio_config.enabled_on_start)
        self.playback.select(audio_config.default_track)

        self._lock = threading.RLock() if thread_safe else contextlib.nullcontext()
        self._has_estimate = False
        # Samples are accepted from construction; stop() or a failed start()
        # turns tracking off until the next successful start()
        self.tracking_enabled = True
        self.missing_sensors: Tuple[SensorType, ...] = ()
        self.samples_received = 0
        self.rejected_samples = 0
        self.updates_emitted = 0

        self._sensor_log = compass_logger.sensors if compass_logger else log
        self._heading_log = compass_logger.heading if compass_logger else log
        self._calibration_log = compass_logger.calibration if compass_logger else log

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        with self._lock:
            if not self._has_estimate:
                return SessionState.IDLE
            if self.calibrator.is_active:
                return SessionState.CALIBRATING
            return SessionState.TRACKING

    def start(self, available_sensors: Iterable[Union[SensorType, str]] = REQUIRED_SENSORS) -> CapabilityReport:
        """
        Enable tracking after checking the host's sensors.

        Raises:
            SensorUnavailableError: when a required sensor is missing; the
                session stays disabled and a notification is emitted
        """
        report = check_sensor_capabilities(available_sensors)
        with self._lock:
            self.missing_sensors = report.missing
            if not report.is_supported:
                self.tracking_enabled = False
                log.error("Missing sensors: %s", [s.value for s in report.missing])
                self._notify(SENSORS_UNAVAILABLE, NotificationLevel.ERROR, NotificationDuration.LONG)
                raise SensorUnavailableError(report.missing)

            self.tracking_enabled = True
            log.info("Compass session started (sensors: %s)", sorted(s.value for s in report.available))
            if self.calibration_config.calibrate_on_start:
                self.request_calibration()
        return report

    def stop(self) -> None:
        with self._lock:
            self.tracking_enabled = False

    def reset(self) -> None:
        """Drop filter history and the displayed baseline (back to IDLE)."""
        with self._lock:
            self.filters.reset()
            self.gate.reset()
            self._has_estimate = False

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def feed_accelerometer(self, sample: Vector3) -> Optional[HeadingUpdate]:
        return self.feed(SensorType.ACCELEROMETER, sample)

    def feed_magnetometer(self, sample: Vector3) -> Optional[HeadingUpdate]:
        return self.feed(SensorType.MAGNETIC_FIELD, sample)

    def feed(self, sensor_type: Union[SensorType, str], values) -> Optional[HeadingUpdate]:
        """
        Ingest one raw sample and run the pipeline.

        Returns:
            The emitted HeadingUpdate, or None when nothing was presented
        """
        sensor_type = SensorType(sensor_type)
        sample = values if isinstance(values, Vector3) else Vector3.from_iterable(values)

        with self._lock:
            self.samples_received += 1
            if not self.tracking_enabled:
                self.rejected_samples += 1
                self._sensor_log.debug("Tracking disabled, ignoring %s sample", sensor_type.value)
                return None
            if not sample.is_finite():
                self.rejected_samples += 1
                self._sensor_log.warning("Dropping non-finite %s sample %s", sensor_type.value, sample)
                return None

            if sensor_type is SensorType.ACCELEROMETER:
                self.filters.feed_accelerometer(sample)
            else:
                self.filters.feed_magnetometer(sample)
            return self._process()

    def _process(self) -> Optional[HeadingUpdate]:
        raw = self.estimator.estimate(self.filters.gravity, self.filters.geomagnetic)
        if raw is None:
            self._sensor_log.debug(
                "Orientation unavailable (gravity=%s, field=%s)",
                self.filters.gravity, self.filters.geomagnetic,
            )
            return None

        self._has_estimate = True
        azimuth = self.calibrator.apply(raw)
        completed = self.calibrator.observe()

        # A completed calibration always reaches the host, even without movement
        if not self.gate.offer(azimuth, force=completed):
            return None

        label, band = classify(azimuth)
        tempo = self.tempo.speed_for(azimuth)
        self.playback.speed_multiplier = tempo

        update = HeadingUpdate(
            azimuth=azimuth,
            label=label,
            color_band=band,
            tempo_multiplier=tempo,
            calibration_just_completed=completed,
            previous_azimuth=self.gate.previous_displayed,
        )
        self.updates_emitted += 1
        self._heading_log.debug(
            "Heading %.1f %s band=%s tempo=%.3f", azimuth, label.abbreviation, band.name_text, tempo
        )

        if completed:
            self._calibration_log.info("Calibration completed at %.1f°", azimuth)
            self._notify(CALIBRATION_COMPLETED, NotificationLevel.INFO, NotificationDuration.SHORT)

        if self.on_heading_update is not None:
            try:
                self.on_heading_update(update)
            except Exception:
                log.exception("on_heading_update callback failed")
        return update

    # ------------------------------------------------------------------
    # User intent
    # ------------------------------------------------------------------

    def request_calibration(self) -> None:
        with self._lock:
            self.calibrator.request_calibration()
            self._calibration_log.info(
                "Calibration requested (%d samples)", self.calibrator.target_samples
            )
            self._notify(CALIBRATION_STARTED, NotificationLevel.INFO, NotificationDuration.LONG)

    def set_sound_enabled(self, enabled: bool) -> None:
        with self._lock:
            self.playback.enabled = bool(enabled)

    def select_track(self, track_id: str) -> None:
        """Record the chosen track; raises UnknownTrackError for unknown ids."""
        with self._lock:
            self.playback.select(track_id)

    def report_accuracy(self, sensor_type: Union[SensorType, str], accuracy: Union[SensorAccuracy, int]) -> None:
        """Surface an unreliable sensor as an advisory; pipeline state is untouched."""
        sensor_type = SensorType(sensor_type)
        accuracy = SensorAccuracy(accuracy)
        if accuracy is not SensorAccuracy.UNRELIABLE:
            return
        with self._lock:
            self._sensor_log.warning("%s reported unreliable accuracy", sensor_type.value)
            self._notify(SENSOR_UNRELIABLE, NotificationLevel.WARNING, NotificationDuration.SHORT)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def current_azimuth(self) -> Optional[float]:
        with self._lock:
            return self.gate.last_displayed

    def status_text(self) -> str:
        with self._lock:
            if self.missing_sensors:
                return "Sensors unavailable"
            if self.calibrator.is_active:
                return "Calibrating..."
            return "Audio: ON" if self.playback.enabled else "Audio: OFF"

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "state": self.state.value,
                "samples_received": self.samples_received,
                "rejected_samples": self.rejected_samples,
                "orientation_rejections": self.estimator.rejections,
                "updates_emitted": self.updates_emitted,
                "updates_suppressed": self.gate.suppressed,
                "calibrations_completed": self.calibrator.completed_sessions,
                "current_azimuth": self.current_azimuth,
            }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _notify(self, message: str, level: NotificationLevel, duration: NotificationDuration) -> None:
        notification = Notification(message=message, level=level, duration=duration)
        if self.on_notification is None:
            return
        try:
            self.on_notification(notification)
        except Exception:
            log.exception("on_notification callback failed")
