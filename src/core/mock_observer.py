#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mock phone sensors for running the compass without a device.

This module provides a drop-in sensor source that drives a SensorObserver
(or anything with ``on_sensor_event``) with accelerometer and magnetometer
samples:
1. Synthetic: a device lying flat and turning at a constant rate
2. Static: a device lying flat at a fixed heading
3. Replay: samples recorded to a CSV file, played back in loop

Samples follow the phone axis convention (x right, y towards the top of the
screen, z out of the screen). Lying flat, gravity reads (0, 0, g) and the
magnetic field reads (-B_h sin h, B_h cos h, B_v) for a heading h.

Usage:
    source = MockSensorSource(observer, mode='synthetic', rate_hz=50)
    source.start()
    ...
    source.stop()

Replay CSV format (header required):
    type,x,y,z
    accelerometer,0.0,0.0,9.81
    magnetic_field,0.0,25.0,-40.0
"""

import logging
import math
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np

from core.sensors.sensor_types import SensorType
from utils.config_sections import MockSourceConfig, load_mock_source_config

log = logging.getLogger("MockSensorSource")

Sample = Tuple[SensorType, Tuple[float, float, float]]

MODES = ("synthetic", "static", "replay")


def flat_device_samples(
    heading_deg: float,
    field_horizontal: float = 25.0,
    field_vertical: float = -40.0,
    gravity: float = 9.80665,
) -> List[Sample]:
    """Noise-free accelerometer + magnetometer pair for a flat device."""
    h = math.radians(heading_deg)
    accel = (0.0, 0.0, gravity)
    mag = (-field_horizontal * math.sin(h), field_horizontal * math.cos(h), field_vertical)
    return [(SensorType.ACCELEROMETER, accel), (SensorType.MAGNETIC_FIELD, mag)]


def load_replay_file(path) -> List[Sample]:
    """Read a ``type,x,y,z`` CSV into an ordered sample list."""
    path = Path(path)
    if not path.exists():
        raise ValueError(f"Replay file not found: {path}")
    rows = np.atleast_1d(
        np.genfromtxt(path, delimiter=",", dtype=None, encoding="utf-8", names=True, comments="#")
    )
    samples: List[Sample] = []
    for row in rows:
        sensor_type = SensorType(str(row["type"]).strip())
        samples.append((sensor_type, (float(row["x"]), float(row["y"]), float(row["z"]))))
    if not samples:
        raise ValueError(f"Replay file has no samples: {path}")
    return samples


class MockSensorSource:
    """
    Mock sensor source for development without a phone.

    Operating modes:
    - 'synthetic': device turning at ``rotation_deg_per_s`` with Gaussian noise
    - 'static': fixed ``heading_deg`` with Gaussian noise
    - 'replay': CSV samples in loop

    See module docstring for usage examples.
    """

    def __init__(
        self,
        sink,
        mode: str = 'synthetic',
        heading_deg: float = 0.0,
        replay_path: Optional[str] = None,
        config: Optional[MockSourceConfig] = None,
        seed: Optional[int] = None,
    ) -> None:
        """
        Args:
            sink: Object with ``on_sensor_event(sensor_type, values, timestamp_ns)``
            mode: 'synthetic', 'static' or 'replay'
            heading_deg: Start heading (synthetic) or fixed heading (static)
            replay_path: CSV file for 'replay' mode
            config: Rates, noise and field strength
            seed: Seed for the noise generator
        """
        if mode not in MODES:
            raise ValueError(f"Unknown mode: {mode}")
        self.sink = sink
        self.mode = mode
        self.heading_deg = heading_deg
        self.replay_path = replay_path
        self.config = config or load_mock_source_config()
        self.rng = np.random.default_rng(seed)

        self.running = False
        self.tick_count = 0
        self.sample_count = 0
        self.start_time: Optional[float] = None
        self._thread: Optional[threading.Thread] = None
        self._replay: List[Sample] = []
        self._replay_index = 0

        if mode == 'replay':
            self._replay = load_replay_file(replay_path)
            log.info("Loaded %d replay samples from %s", len(self._replay), replay_path)

        log.info("Initialized in '%s' mode @ %d Hz", mode, self.config.rate_hz)

    def heading_at(self, elapsed_s: float) -> float:
        if self.mode == 'synthetic':
            return (self.heading_deg + self.config.rotation_deg_per_s * elapsed_s) % 360.0
        return self.heading_deg % 360.0

    def next_samples(self, elapsed_s: float) -> List[Sample]:
        """Samples for one tick (one of each sensor, or one replay row)."""
        if self.mode == 'replay':
            sample = self._replay[self._replay_index]
            self._replay_index = (self._replay_index + 1) % len(self._replay)
            if self._replay_index == 0:
                log.debug("Replay loop restarted")
            return [sample]

        samples = flat_device_samples(
            self.heading_at(elapsed_s),
            self.config.field_horizontal_ut,
            self.config.field_vertical_ut,
        )
        if self.config.noise_std <= 0:
            return samples
        noisy = []
        for sensor_type, values in samples:
            noise = self.rng.normal(0.0, self.config.noise_std, 3)
            noisy.append((sensor_type, tuple(float(v) for v in np.asarray(values) + noise)))
        return noisy

    def tick(self, elapsed_s: float) -> int:
        """Publish one tick of samples to the sink; returns samples sent."""
        samples = self.next_samples(elapsed_s)
        timestamp_ns = time.monotonic_ns()
        for sensor_type, values in samples:
            self.sink.on_sensor_event(sensor_type, values, timestamp_ns)
        self.tick_count += 1
        self.sample_count += len(samples)
        return len(samples)

    def start(self) -> None:
        if self.running:
            log.warning("Already running")
            return
        self.running = True
        self.start_time = time.time()
        self._thread = threading.Thread(target=self._generate_samples, daemon=True)
        self._thread.start()
        log.info("Started sample generation")

    def stop(self) -> None:
        self.running = False
        if self._thread:
            self._thread.join(timeout=2.0)
        log.info("Stopped (published %d samples)", self.sample_count)

    def _generate_samples(self) -> None:
        interval = 1.0 / self.config.rate_hz
        while self.running:
            loop_start = time.time()
            try:
                self.tick(loop_start - self.start_time)
            except Exception:
                log.exception("Mock sample generation failed")
            sleep_time = max(0.0, interval - (time.time() - loop_start))
            if sleep_time > 0:
                time.sleep(sleep_time)
