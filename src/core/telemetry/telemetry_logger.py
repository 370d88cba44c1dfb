"""Centralized telemetry - JSON Lines metrics for one compass session."""

import json
import logging
import threading
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

log = logging.getLogger(__name__)


@dataclass
class HeadingMetric:
    """One heading update that reached the presentation layer."""
    timestamp: float
    update_number: int
    azimuth: float
    label: str
    color_band: str
    tempo: float
    calibration_completed: bool = False


@dataclass
class NotificationMetric:
    """Transient message shown (or spoken) to the user."""
    timestamp: float
    level: str     # "info", "warning", "error"
    message: str


class TelemetryLogger:
    """
    Session metrics logger (thread-safe).
    - Heading: azimuth, label, band, tempo per presented update
    - Notifications: calibration, accuracy and capability messages
    - System: session start/end, errors
    """

    def __init__(self, output_dir: Optional[Path] = None):
        """
        Start a new telemetry session.

        Args:
            output_dir: Base directory for logs (default: logs/)
        """
        self._write_lock = threading.Lock()
        self._buffer_lock = threading.Lock()

        if output_dir is None:
            project_root = Path(__file__).resolve().parents[3]
            output_dir = project_root / "logs"

        base_dir = Path(output_dir)
        base_dir.mkdir(parents=True, exist_ok=True)

        self.session_timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        self.session_start = time.time()
        self.output_dir = base_dir / f"session_{self.session_timestamp}"
        self.output_dir.mkdir(parents=True, exist_ok=True)

        self.heading_log = self.output_dir / "heading.jsonl"
        self.notifications_log = self.output_dir / "notifications.jsonl"
        self.system_log = self.output_dir / "system.jsonl"

        self.heading_buffer: List[HeadingMetric] = []
        self.notification_buffer: List[NotificationMetric] = []

        self._log_system_event("session_start", {
            "session": self.session_timestamp,
            "timestamp": self.session_start
        })

        log.info("Telemetry session %s -> %s", self.session_timestamp, self.output_dir)

    def get_session_dir(self) -> Path:
        """Return the session directory path for use by other loggers."""
        return self.output_dir

    # ------------------------------------------------------------------
    # Heading Metrics
    # ------------------------------------------------------------------

    def log_heading_update(self, update) -> None:
        """
        Record a presented heading update.

        Args:
            update: HeadingUpdate emitted by the compass session

        Thread-safe: may be called from the sensor delivery thread.
        """
        with self._buffer_lock:
            metric = HeadingMetric(
                timestamp=time.time(),
                update_number=len(self.heading_buffer) + 1,
                azimuth=round(float(update.azimuth), 3),
                label=update.label.abbreviation,
                color_band=update.color_band.name_text,
                tempo=round(float(update.tempo_multiplier), 4),
                calibration_completed=bool(update.calibration_just_completed),
            )
            self.heading_buffer.append(metric)

        self._write_jsonl(self.heading_log, asdict(metric))

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def log_notification(self, notification) -> None:
        metric = NotificationMetric(
            timestamp=time.time(),
            level=notification.level.value,
            message=notification.message,
        )
        with self._buffer_lock:
            self.notification_buffer.append(metric)
        self._write_jsonl(self.notifications_log, asdict(metric))

    # ------------------------------------------------------------------
    # System Events
    # ------------------------------------------------------------------

    def _log_system_event(self, event_type: str, data: Dict[str, Any]) -> None:
        payload = {
            "timestamp": time.time(),
            "session": self.session_timestamp,
            "event_type": event_type,
            **data
        }
        self._write_jsonl(self.system_log, payload)

    def log_error(self, error_type: str, message: str, **kwargs: Any) -> None:
        """Record a system error."""
        self._log_system_event("error", {
            "error_type": error_type,
            "message": message,
            **kwargs
        })

    # ------------------------------------------------------------------
    # Session Management
    # ------------------------------------------------------------------

    def finalize_session(self) -> Dict[str, Any]:
        """
        Close the session and write summary.json.

        Returns:
            Dict with session statistics
        """
        session_duration = time.time() - self.session_start

        with self._buffer_lock:
            heading_copy = list(self.heading_buffer)
            notification_copy = list(self.notification_buffer)

        updates_by_label: Dict[str, int] = {}
        updates_by_band: Dict[str, int] = {}
        for metric in heading_copy:
            updates_by_label[metric.label] = updates_by_label.get(metric.label, 0) + 1
            updates_by_band[metric.color_band] = updates_by_band.get(metric.color_band, 0) + 1
        tempos = [m.tempo for m in heading_copy]

        summary = {
            "session": self.session_timestamp,
            "duration_seconds": session_duration,
            "total_heading_updates": len(heading_copy),
            "updates_per_second": len(heading_copy) / session_duration if session_duration > 0 else 0,
            "updates_by_label": updates_by_label,
            "updates_by_band": updates_by_band,
            "avg_tempo": sum(tempos) / len(tempos) if tempos else None,
            "calibrations_completed": sum(1 for m in heading_copy if m.calibration_completed),
            "total_notifications": len(notification_copy),
        }

        self._log_system_event("session_end", summary)

        summary_path = self.output_dir / "summary.json"
        with open(summary_path, 'w') as f:
            json.dump(summary, f, indent=2)

        log.info("Telemetry session %s closed, summary: %s", self.session_timestamp, summary_path.name)
        return summary

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _write_jsonl(self, path: Path, payload: Dict[str, Any]) -> None:
        with self._write_lock:
            with open(path, "a") as f:
                f.write(json.dumps(payload) + "\n")
