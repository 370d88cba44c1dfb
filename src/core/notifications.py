"""Transient user-facing messages emitted by the compass session."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum


class NotificationLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class NotificationDuration(str, Enum):
    SHORT = "short"
    LONG = "long"


@dataclass(frozen=True)
class Notification:
    message: str
    level: NotificationLevel = NotificationLevel.INFO
    duration: NotificationDuration = NotificationDuration.SHORT
    timestamp: float = field(default_factory=time.time)


CALIBRATION_STARTED = "Calibrating... rotate the device slowly"
CALIBRATION_COMPLETED = "Calibration complete"
SENSOR_UNRELIABLE = "Sensor accuracy is unreliable"
SENSORS_UNAVAILABLE = "Required sensors unavailable"
