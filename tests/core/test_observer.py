"""Unit tests for the SensorObserver host adapter."""

from __future__ import annotations

import logging
import threading

import pytest

from core.observer import SensorObserver
from core.sensors.sensor_types import SensorAccuracy, SensorType


class SessionStub:
    def __init__(self, fail_on: int | None = None) -> None:
        self.fed: list[tuple[SensorType, tuple]] = []
        self.accuracy: list[tuple] = []
        self.fail_on = fail_on

    def feed(self, sensor_type, values):
        self.fed.append((sensor_type, tuple(values)))
        if self.fail_on is not None and len(self.fed) == self.fail_on:
            raise RuntimeError("pipeline failure")

    def report_accuracy(self, sensor_type, accuracy):
        self.accuracy.append((sensor_type, accuracy))

    def get_stats(self):
        return {"samples_received": len(self.fed)}


def test_inline_delivery_runs_on_caller_thread() -> None:
    session = SessionStub()
    observer = SensorObserver(session, threaded=False)

    observer.on_sensor_event(SensorType.ACCELEROMETER, (0.0, 0.0, 9.8), timestamp_ns=5)

    assert session.fed == [(SensorType.ACCELEROMETER, (0.0, 0.0, 9.8))]
    assert observer.get_event_counts()["accelerometer"] == 1
    assert observer.last_timestamp_ns["accelerometer"] == 5


def test_threaded_delivery_preserves_order() -> None:
    session = SessionStub()
    observer = SensorObserver(session)
    events = []
    for i in range(100):
        sensor = SensorType.ACCELEROMETER if i % 2 == 0 else SensorType.MAGNETIC_FIELD
        events.append((sensor, (float(i), 0.0, 0.0)))
        observer.on_sensor_event(sensor.value, (float(i), 0.0, 0.0))

    observer.wait_until_idle()
    observer.stop()

    assert session.fed == events
    assert observer.get_event_counts() == {"accelerometer": 50, "magnetic_field": 50}


def test_worker_survives_pipeline_errors() -> None:
    session = SessionStub(fail_on=1)
    observer = SensorObserver(session)

    observer.on_sensor_event(SensorType.ACCELEROMETER, (1.0, 0.0, 0.0))
    observer.on_sensor_event(SensorType.ACCELEROMETER, (2.0, 0.0, 0.0))
    observer.wait_until_idle()
    observer.stop()

    assert len(session.fed) == 2


def test_events_after_stop_are_ignored() -> None:
    session = SessionStub()
    observer = SensorObserver(session)
    observer.stop()

    observer.on_sensor_event(SensorType.MAGNETIC_FIELD, (0.0, 25.0, -40.0))

    assert session.fed == []


def test_accuracy_changes_are_forwarded() -> None:
    session = SessionStub()
    observer = SensorObserver(session, threaded=False)

    observer.on_accuracy_changed("magnetic_field", 0)

    assert session.accuracy == [("magnetic_field", SensorAccuracy.UNRELIABLE)]


def test_unknown_sensor_type_rejected() -> None:
    observer = SensorObserver(SessionStub(), threaded=False)

    with pytest.raises(ValueError):
        observer.on_sensor_event("gyroscope", (0.0, 0.0, 0.0))


def test_system_stats_include_session() -> None:
    session = SessionStub()
    observer = SensorObserver(session, threaded=False)
    observer.on_sensor_event(SensorType.ACCELEROMETER, (0.0, 0.0, 9.8))

    stats = observer.get_system_stats()

    assert stats["session"] == {"samples_received": 1}
    assert stats["dropped_events"] == 0
    assert stats["rates_hz"]["accelerometer"] > 0


class BlockingSessionStub(SessionStub):
    """Holds the worker inside feed() until released."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def feed(self, sensor_type, values):
        super().feed(sensor_type, values)
        self.entered.set()
        self.release.wait(timeout=5.0)


def test_full_queue_drops_are_counted_across_producers(caplog: pytest.LogCaptureFixture) -> None:
    session = BlockingSessionStub()
    observer = SensorObserver(session, max_queue=1)
    caplog.set_level(logging.WARNING, logger="core.observer")

    observer.on_sensor_event(SensorType.ACCELEROMETER, (0.0, 0.0, 9.8))
    assert session.entered.wait(timeout=5.0)
    # Worker is busy and the queue now holds one event
    observer.on_sensor_event(SensorType.MAGNETIC_FIELD, (0.0, 25.0, -40.0))

    def produce() -> None:
        for _ in range(50):
            observer.on_sensor_event(SensorType.MAGNETIC_FIELD, (0.0, 25.0, -40.0))

    producers = [threading.Thread(target=produce) for _ in range(5)]
    for producer in producers:
        producer.start()
    for producer in producers:
        producer.join()

    assert observer.get_system_stats()["dropped_events"] == 250
    # One warning per hundred drops: the 1st, 101st and 201st
    warnings = [r for r in caplog.records if "Sensor queue full" in r.getMessage()]
    assert len(warnings) == 3

    session.release.set()
    observer.wait_until_idle()
    observer.stop()
    assert len(session.fed) == 2
