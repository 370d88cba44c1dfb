"""
Typed configuration sections for the Compass application.

This module provides strongly-typed configuration sections to replace
scattered getattr(Config, ...) calls with proper type hints and defaults.

Benefits:
- Type safety: IDE autocomplete and type checking
- Discoverability: All config options visible in one place
- Default values: Centralized and documented
- Better testing: Can build sections directly without touching Config
"""

import logging
from dataclasses import dataclass


@dataclass
class FilterConfig:
    """Configuration for the exponential low-pass sensor filter."""

    alpha: float = 0.1  # Weight of the incoming sample

    def __post_init__(self) -> None:
        if not 0.0 < self.alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {self.alpha}")


@dataclass
class OrientationConfig:
    """Validity limits for the accelerometer + magnetometer rotation matrix."""

    gravity: float = 9.80665
    free_fall_ratio: float = 0.01  # |a|² below ratio * g² is treated as free fall
    min_east_norm: float = 0.1

    @property
    def free_fall_gravity_squared(self) -> float:
        return self.free_fall_ratio * self.gravity * self.gravity


@dataclass
class GateConfig:
    """Configuration for the presentation change gate."""

    threshold_deg: float = 0.5

    def __post_init__(self) -> None:
        if self.threshold_deg <= 0:
            raise ValueError(f"threshold_deg must be positive, got {self.threshold_deg}")


@dataclass
class CalibrationConfig:
    """Configuration for sample-counting calibration."""

    target_samples: int = 10
    offset_deg: float = 0.0
    calibrate_on_start: bool = False

    def __post_init__(self) -> None:
        if self.target_samples <= 0:
            raise ValueError(f"target_samples must be positive, got {self.target_samples}")


@dataclass
class TempoConfig:
    """Playback speed range mapped from distance to north."""

    max_speed: float = 1.0  # At north
    min_speed: float = 0.5  # At south

    def __post_init__(self) -> None:
        if not 0.0 < self.min_speed <= self.max_speed:
            raise ValueError(
                f"expected 0 < min_speed <= max_speed, got {self.min_speed}..{self.max_speed}"
            )


@dataclass
class AudioConfig:
    """Music playback and spoken notification settings."""

    enabled_on_start: bool = True
    default_track: str = "pac"
    sample_rate: int = 44100
    volume: float = 0.4
    block_size: int = 1024
    tts_enabled: bool = True
    tts_rate_mac: int = 190
    tts_rate_linux: int = 130
    repeat_cooldown: float = 2.0
    announcement_cooldown: float = 0.0


@dataclass
class DashboardConfig:
    """OpenCV compass dial rendering."""

    window_name: str = "Compass"
    size: int = 480
    animation_ms: int = 200
    toast_short_seconds: float = 2.0
    toast_long_seconds: float = 3.5


@dataclass
class MockSourceConfig:
    """Synthetic phone sensors for desktop runs."""

    rate_hz: int = 50
    rotation_deg_per_s: float = 15.0
    noise_std: float = 0.05
    field_horizontal_ut: float = 25.0
    field_vertical_ut: float = -40.0

    def __post_init__(self) -> None:
        if self.rate_hz <= 0:
            raise ValueError(f"rate_hz must be positive, got {self.rate_hz}")


@dataclass
class LoggingConfig:
    """Per-topic debug log files and their console mirror."""

    log_dir: str = "logs"
    file_level: str = "DEBUG"
    console_level: str = "WARNING"
    file_mode: str = "w"

    def __post_init__(self) -> None:
        for name in ("file_level", "console_level"):
            level = getattr(self, name).upper()
            if not isinstance(logging.getLevelName(level), int):
                raise ValueError(f"{name} must be a logging level name, got {level!r}")
            setattr(self, name, level)
        if self.file_mode not in ("w", "a"):
            raise ValueError(f"file_mode must be 'w' or 'a', got {self.file_mode!r}")


def load_filter_config() -> FilterConfig:
    """
    Load sensor filter configuration from Config with fallback defaults.

    Returns:
        FilterConfig with values from Config or defaults
    """
    from utils.config import Config

    return FilterConfig(alpha=getattr(Config, "FILTER_ALPHA", 0.1))


def load_orientation_config() -> OrientationConfig:
    """
    Load orientation limits from Config with fallback defaults.

    Returns:
        OrientationConfig with values from Config or defaults
    """
    from utils.config import Config

    return OrientationConfig(
        gravity=getattr(Config, "STANDARD_GRAVITY", 9.80665),
        free_fall_ratio=getattr(Config, "FREE_FALL_RATIO", 0.01),
        min_east_norm=getattr(Config, "MIN_EAST_NORM", 0.1),
    )


def load_gate_config() -> GateConfig:
    from utils.config import Config

    return GateConfig(threshold_deg=getattr(Config, "GATE_THRESHOLD_DEG", 0.5))


def load_calibration_config() -> CalibrationConfig:
    """
    Load calibration configuration from Config with fallback defaults.

    Returns:
        CalibrationConfig with values from Config or defaults
    """
    from utils.config import Config

    return CalibrationConfig(
        target_samples=getattr(Config, "CALIBRATION_SAMPLES", 10),
        offset_deg=getattr(Config, "CALIBRATION_OFFSET_DEG", 0.0),
        calibrate_on_start=getattr(Config, "CALIBRATE_ON_START", False),
    )


def load_tempo_config() -> TempoConfig:
    from utils.config import Config

    return TempoConfig(
        max_speed=getattr(Config, "TEMPO_MAX_SPEED", 1.0),
        min_speed=getattr(Config, "TEMPO_MIN_SPEED", 0.5),
    )


def load_audio_config() -> AudioConfig:
    """
    Load audio configuration from Config with fallback defaults.

    Returns:
        AudioConfig with values from Config or defaults
    """
    from utils.config import Config

    return AudioConfig(
        enabled_on_start=getattr(Config, "AUDIO_ENABLED_ON_START", True),
        default_track=getattr(Config, "AUDIO_DEFAULT_TRACK", "pac"),
        sample_rate=getattr(Config, "AUDIO_SAMPLE_RATE", 44100),
        volume=getattr(Config, "AUDIO_VOLUME", 0.4),
        block_size=getattr(Config, "AUDIO_BLOCK_SIZE", 1024),
        tts_enabled=getattr(Config, "TTS_ENABLED", True),
        tts_rate_mac=getattr(Config, "TTS_RATE_MAC", 190),
        tts_rate_linux=getattr(Config, "TTS_RATE_LINUX", 130),
        repeat_cooldown=getattr(Config, "TTS_REPEAT_COOLDOWN", 2.0),
        announcement_cooldown=getattr(Config, "TTS_ANNOUNCEMENT_COOLDOWN", 0.0),
    )


def load_dashboard_config() -> DashboardConfig:
    """
    Load dashboard configuration from Config with fallback defaults.

    Returns:
        DashboardConfig with values from Config or defaults
    """
    from utils.config import Config

    return DashboardConfig(
        window_name=getattr(Config, "DASHBOARD_WINDOW_NAME", "Compass"),
        size=getattr(Config, "DASHBOARD_SIZE", 480),
        animation_ms=getattr(Config, "DASHBOARD_ANIMATION_MS", 200),
        toast_short_seconds=getattr(Config, "TOAST_SHORT_SECONDS", 2.0),
        toast_long_seconds=getattr(Config, "TOAST_LONG_SECONDS", 3.5),
    )


def load_mock_source_config() -> MockSourceConfig:
    from utils.config import Config

    return MockSourceConfig(
        rate_hz=getattr(Config, "MOCK_RATE_HZ", 50),
        rotation_deg_per_s=getattr(Config, "MOCK_ROTATION_DEG_PER_S", 15.0),
        noise_std=getattr(Config, "MOCK_NOISE_STD", 0.05),
        field_horizontal_ut=getattr(Config, "MOCK_FIELD_HORIZONTAL_UT", 25.0),
        field_vertical_ut=getattr(Config, "MOCK_FIELD_VERTICAL_UT", -40.0),
    )


def load_logging_config() -> LoggingConfig:
    """
    Load topic logger configuration from Config with fallback defaults.

    Returns:
        LoggingConfig with values from Config or defaults
    """
    from utils.config import Config

    return LoggingConfig(
        log_dir=getattr(Config, "LOG_DIR", "logs"),
        file_level=getattr(Config, "LOG_FILE_LEVEL", "DEBUG"),
        console_level=getattr(Config, "LOG_CONSOLE_LEVEL", "WARNING"),
        file_mode=getattr(Config, "LOG_FILE_MODE", "w"),
    )
