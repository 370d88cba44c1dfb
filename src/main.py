#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Compass - heading dial with north-seeking music tempo.

Architecture:
- MockSensorSource / device bridge: raw accelerometer + magnetometer samples
- SensorObserver: ordered delivery into the CompassSession
- CompassSession: filtering, orientation, calibration, gating, classification
- PresentationManager: dial dashboard, toasts, keyboard, audio wiring

Controls:
  q  quit
  c  calibrate
  s  toggle sound
  1-4  select track (cent, natural, pac, sun)
"""

import argparse
import logging
import sys
import time
from dataclasses import replace
from typing import List, Optional

from core.audio.audio_system import CompassAudioSystem
from core.compass_session import CompassSession
from core.errors import SensorUnavailableError
from core.mock_observer import MODES, MockSensorSource
from core.observer import SensorObserver
from core.sensors.sensor_types import REQUIRED_SENSORS, SensorType
from core.telemetry.loggers.compass_logger import get_compass_logger
from core.telemetry.telemetry_logger import TelemetryLogger
from presentation.dashboards.opencv_dashboard import CompassDashboard
from presentation.presentation_manager import PresentationManager, TRACK_KEYS
from utils.config import Config
from utils.config_sections import load_calibration_config, load_mock_source_config
from utils.ctrl_handler import CtrlCHandler

log = logging.getLogger("compass")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compass dial driven by (mock) phone sensors")
    parser.add_argument("--mode", choices=MODES, default="synthetic",
                        help="Sensor source (default: synthetic)")
    parser.add_argument("--heading", type=float, default=0.0,
                        help="Start heading (synthetic) or fixed heading (static), degrees")
    parser.add_argument("--replay", default=None, help="CSV file for --mode replay")
    parser.add_argument("--rate", type=int, default=None, help="Mock sample rate in Hz")
    parser.add_argument("--track", choices=sorted(TRACK_KEYS.values()), default=None,
                        help="Start playing this track immediately")
    parser.add_argument("--no-sound", action="store_true", help="Disable music and speech")
    parser.add_argument("--no-dashboard", action="store_true", help="Run without the dial window")
    parser.add_argument("--calibrate-on-start", action="store_true",
                        help="Run a calibration as soon as tracking starts")
    parser.add_argument("--missing-sensor", choices=[s.value for s in SensorType], default=None,
                        help="Pretend the device lacks this sensor")
    parser.add_argument("--duration", type=float, default=None,
                        help="Stop after this many seconds")
    parser.add_argument("--log-dir", default=Config.LOG_DIR, help="Telemetry base directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    telemetry = None
    compass_logger = None
    observer = None
    source = None
    presentation = None
    exit_code = 0

    try:
        if Config.TELEMETRY_ENABLED:
            telemetry = TelemetryLogger(output_dir=args.log_dir)
            compass_logger = get_compass_logger(session_dir=telemetry.get_session_dir())

        calibration_config = load_calibration_config()
        if args.calibrate_on_start:
            calibration_config.calibrate_on_start = True

        session = CompassSession(calibration_config=calibration_config, compass_logger=compass_logger)
        # Ctrl+C stops accepting samples at once; the loop exits on its next check
        ctrl_handler = CtrlCHandler(on_stop=session.stop)
        if args.no_sound:
            session.set_sound_enabled(False)

        audio_system = None if args.no_sound else CompassAudioSystem(compass_logger=compass_logger)
        dashboard = None if args.no_dashboard else CompassDashboard()
        presentation = PresentationManager(session, audio_system, dashboard, telemetry)
        presentation.attach()

        available = [s for s in REQUIRED_SENSORS if s.value != args.missing_sensor]
        try:
            session.start(available_sensors=available)
        except SensorUnavailableError as e:
            # Tracking stays disabled; the dial keeps showing the status
            log.error("%s", e)
            if telemetry is not None:
                telemetry.log_error("sensor_unavailable", str(e))
            exit_code = 1
            if dashboard is None:
                return exit_code

        if session.tracking_enabled:
            source_config = load_mock_source_config()
            if args.rate is not None:
                source_config = replace(source_config, rate_hz=args.rate)
            observer = SensorObserver(session)
            source = MockSensorSource(observer, mode=args.mode, heading_deg=args.heading,
                                      replay_path=args.replay, config=source_config)
            source.start()
            if args.track and session.playback.enabled:
                presentation.select_track(args.track)

        log.info("Compass running - q: quit, c: calibrate, s: sound, 1-4: tracks")
        started = time.time()
        while not ctrl_handler.should_stop and presentation.ui_state.running:
            key = presentation.update_display()
            if not presentation.handle_key(key):
                break
            if args.duration is not None and time.time() - started >= args.duration:
                break
            if dashboard is None:
                time.sleep(1.0 / 30)

    finally:
        if source is not None:
            source.stop()
        if observer is not None:
            observer.stop()
            log.info("Observer stats: %s", observer.get_system_stats())
        if presentation is not None:
            log.info("UI stats: %s", presentation.get_ui_stats())
            presentation.cleanup()
        if telemetry is not None:
            telemetry.finalize_session()
        if compass_logger is not None:
            compass_logger.close()

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
