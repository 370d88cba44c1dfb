"""
Per-topic debug logs for a compass session.

Each topic gets its own ``compass.<topic>`` logger writing to a file in the
session directory, mirrored to the console above a configurable level.
Levels and the file mode come from ``LoggingConfig`` (``Config.LOG_*``), so a
run can, for example, append to an existing session directory or surface
INFO heading decisions on the terminal.

Log Files:
- sensors.log: Raw/filtered samples and rejected orientation estimates
- heading.log: Gate decisions and emitted heading updates
- calibration.log: Calibration requests and completion
- audio.log: Track selection, tempo changes and spoken notifications

Usage:
    from core.telemetry.loggers.compass_logger import get_compass_logger

    compass_logger = get_compass_logger(session_dir=Path("logs/session_2026-10-17_10-30-00"))
    compass_logger.heading.debug("Azimuth 12.3 passed the gate")
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from utils.config_sections import LoggingConfig, load_logging_config

TOPICS = {
    "sensors": "sensors.log",
    "heading": "heading.log",
    "calibration": "calibration.log",
    "audio": "audio.log",
}

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(message)s"
LOG_DATEFMT = "%H:%M:%S"


def _default_session_dir(config: LoggingConfig) -> Path:
    root = Path(config.log_dir)
    if not root.is_absolute():
        root = Path(__file__).resolve().parents[4] / root
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    return root / f"session_{timestamp}"


class CompassLogger:
    """Topic loggers for one session; use get_compass_logger() to share it."""

    def __init__(self, session_dir: Optional[Path] = None, config: Optional[LoggingConfig] = None):
        self.config = config or load_logging_config()
        self.log_dir = Path(session_dir) if session_dir is not None else _default_session_dir(self.config)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self._loggers: Dict[str, logging.Logger] = {
            topic: self._build_logger(topic, filename) for topic, filename in TOPICS.items()
        }

    def _build_logger(self, topic: str, filename: str) -> logging.Logger:
        logger = logging.getLogger(f"compass.{topic}")
        logger.setLevel(min(logging.getLevelName(self.config.file_level),
                            logging.getLevelName(self.config.console_level)))
        logger.propagate = False
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

        file_handler = logging.FileHandler(self.log_dir / filename, mode=self.config.file_mode)
        file_handler.setLevel(self.config.file_level)
        file_handler.setFormatter(formatter)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(self.config.console_level)
        console_handler.setFormatter(formatter)

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)
        return logger

    def topic(self, name: str) -> logging.Logger:
        try:
            return self._loggers[name]
        except KeyError:
            raise ValueError(f"Unknown log topic '{name}'. Available: {', '.join(TOPICS)}") from None

    @property
    def sensors(self) -> logging.Logger:
        return self._loggers["sensors"]

    @property
    def heading(self) -> logging.Logger:
        return self._loggers["heading"]

    @property
    def calibration(self) -> logging.Logger:
        return self._loggers["calibration"]

    @property
    def audio(self) -> logging.Logger:
        return self._loggers["audio"]

    def close(self) -> None:
        """Flush and detach every topic handler."""
        for logger in self._loggers.values():
            for handler in logger.handlers[:]:
                handler.close()
                logger.removeHandler(handler)


_compass_logger: Optional[CompassLogger] = None


def get_compass_logger(session_dir: Optional[Path] = None,
                       config: Optional[LoggingConfig] = None) -> CompassLogger:
    """Get or create the shared compass logger. Arguments apply on first call only."""
    global _compass_logger
    if _compass_logger is None:
        _compass_logger = CompassLogger(session_dir=session_dir, config=config)
    return _compass_logger


def reset_compass_logger() -> None:
    """Close and forget the shared logger (used between sessions and in tests)."""
    global _compass_logger
    if _compass_logger is not None:
        _compass_logger.close()
    _compass_logger = None
