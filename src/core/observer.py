"""
Host sensor adapter: device callbacks in, compass session calls out.

The observer sits where the phone's sensor listener would. It accepts raw
events from whatever delivers them (the mock source on a desktop, a device
bridge elsewhere) and forwards them to the session in arrival order.

Two delivery modes:
- inline (``threaded=False``): the session runs on the calling thread
- threaded (default): events go through a FIFO queue drained by a single
  worker thread, so producers never block on pipeline work and ordering
  is preserved
"""

import logging
import queue
import threading
import time
from typing import Any, Dict, Optional, Sequence

from core.sensors.sensor_types import SensorAccuracy, SensorType

log = logging.getLogger(__name__)

_STOP = object()


class SensorObserver:
    """Forwards accelerometer / magnetometer events to a CompassSession."""

    def __init__(self, session, threaded: bool = True, max_queue: int = 1000):
        self.session = session
        self.threaded = threaded

        self._lock = threading.Lock()
        self.event_counts: Dict[str, int] = {sensor.value: 0 for sensor in SensorType}
        self.last_timestamp_ns: Dict[str, Optional[int]] = {sensor.value: None for sensor in SensorType}
        self.dropped_events = 0
        self.start_time = time.time()

        self._queue: "queue.Queue" = queue.Queue(maxsize=max_queue)
        self._stop = False
        self._worker: Optional[threading.Thread] = None
        if threaded:
            self._worker = threading.Thread(target=self._drain_loop, daemon=True)
            self._worker.start()

        log.info("SensorObserver ready (%s delivery)", "threaded" if threaded else "inline")

    def on_sensor_event(self, sensor_type, values: Sequence[float], timestamp_ns: Optional[int] = None) -> None:
        """
        Device callback for a new raw sample.

        Args:
            sensor_type: SensorType (or its string value)
            values: Three axis values in device coordinates
            timestamp_ns: Device timestamp, kept for statistics only
        """
        sensor_type = SensorType(sensor_type)
        with self._lock:
            self.event_counts[sensor_type.value] += 1
            self.last_timestamp_ns[sensor_type.value] = timestamp_ns

        if not self.threaded:
            self.session.feed(sensor_type, values)
            return

        if self._stop:
            return
        try:
            self._queue.put_nowait((sensor_type, tuple(values)))
        except queue.Full:
            # Dropping the newest keeps the stream ordered
            with self._lock:
                self.dropped_events += 1
                dropped = self.dropped_events
            if dropped % 100 == 1:
                log.warning("Sensor queue full, dropped %d events", dropped)

    def on_accuracy_changed(self, sensor_type, accuracy) -> None:
        self.session.report_accuracy(sensor_type, SensorAccuracy(accuracy))

    def _drain_loop(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                sensor_type, values = item
                self.session.feed(sensor_type, values)
            except Exception:
                log.exception("Compass pipeline failed on %s sample", item[0].value)
            finally:
                self._queue.task_done()

    def wait_until_idle(self) -> None:
        """Block until every queued event has been processed."""
        if self.threaded:
            self._queue.join()

    def get_event_counts(self) -> Dict[str, int]:
        with self._lock:
            return dict(self.event_counts)

    def get_rates(self) -> Dict[str, float]:
        elapsed = max(time.time() - self.start_time, 1e-6)
        with self._lock:
            return {name: count / elapsed for name, count in self.event_counts.items()}

    def get_system_stats(self) -> Dict[str, Any]:
        with self._lock:
            dropped = self.dropped_events
        return {
            "event_counts": self.get_event_counts(),
            "rates_hz": self.get_rates(),
            "dropped_events": dropped,
            "queue_size": self._queue.qsize(),
            "session": self.session.get_stats(),
        }

    def stop(self) -> None:
        """Stop the worker after pending events are processed."""
        if self._stop:
            return
        self._stop = True
        if self._worker is not None and self._worker.is_alive():
            self._queue.put(_STOP)
            self._worker.join(timeout=1.0)
        log.info("SensorObserver stopped: %s", self.get_event_counts())
