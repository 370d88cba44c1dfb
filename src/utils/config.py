"""
Centralized configuration for the Compass application.

This module provides all configuration constants and runtime settings for:
- Sensor smoothing (exponential low-pass filter)
- Orientation estimation (rotation-matrix validity limits)
- Presentation gating and calibration
- Music tempo modulation and the track catalogue
- Text-to-speech notifications
- Dial dashboard rendering
- Mock sensor source used on desktops without a phone

The Config class contains all constants as class attributes, making them
accessible throughout the application without instantiation.

Usage:
    from utils.config import Config

    alpha = Config.FILTER_ALPHA
    if Config.AUDIO_ENABLED_ON_START:
        # Start the default track
"""


class Config:
    """System configuration constants for the Compass application."""

    # ==========================================================================
    # SENSOR FILTER: Exponential moving average applied to raw samples
    # ==========================================================================

    FILTER_ALPHA = 0.1                  # Weight of the new sample (0.9 kept from previous)

    # ==========================================================================
    # ORIENTATION: Rotation matrix validity limits
    # ==========================================================================

    STANDARD_GRAVITY = 9.80665          # m/s²
    FREE_FALL_RATIO = 0.01              # |gravity|² below ratio * g² is free fall
    MIN_EAST_NORM = 0.1                 # |geomagnetic x gravity| below this is degenerate

    # ==========================================================================
    # PRESENTATION GATE & CALIBRATION
    # ==========================================================================

    GATE_THRESHOLD_DEG = 0.5            # Minimum change before redraw / tempo update
    CALIBRATION_SAMPLES = 10            # Orientation estimates counted per calibration
    CALIBRATION_OFFSET_DEG = 0.0        # Additive offset applied to every azimuth
    CALIBRATE_ON_START = False          # Start a calibration as soon as tracking begins

    # ==========================================================================
    # TEMPO: Playback speed as a function of distance from north
    # ==========================================================================

    TEMPO_MAX_SPEED = 1.0               # Facing north
    TEMPO_MIN_SPEED = 0.5               # Facing south

    # ==========================================================================
    # AUDIO: Track catalogue and playback
    # ==========================================================================

    AUDIO_ENABLED_ON_START = True
    AUDIO_DEFAULT_TRACK = "pac"
    AUDIO_SAMPLE_RATE = 44100
    AUDIO_VOLUME = 0.4
    AUDIO_BLOCK_SIZE = 1024

    # ==========================================================================
    # TTS: Spoken notifications
    # ==========================================================================

    TTS_ENABLED = True
    TTS_RATE_MAC = 190
    TTS_RATE_LINUX = 130
    TTS_REPEAT_COOLDOWN = 2.0           # Seconds before the same phrase may repeat
    TTS_ANNOUNCEMENT_COOLDOWN = 0.0     # Seconds between different phrases

    # ==========================================================================
    # DASHBOARD: OpenCV compass dial
    # ==========================================================================

    DASHBOARD_WINDOW_NAME = "Compass"
    DASHBOARD_SIZE = 480                # Square canvas (pixels)
    DASHBOARD_ANIMATION_MS = 200        # Dial rotation animation length
    TOAST_SHORT_SECONDS = 2.0
    TOAST_LONG_SECONDS = 3.5

    # ==========================================================================
    # MOCK SOURCE: Synthetic phone sensors
    # ==========================================================================

    MOCK_RATE_HZ = 50                   # Android SENSOR_DELAY_GAME is ~50 Hz
    MOCK_ROTATION_DEG_PER_S = 15.0
    MOCK_NOISE_STD = 0.05
    MOCK_FIELD_HORIZONTAL_UT = 25.0     # Horizontal geomagnetic component (µT)
    MOCK_FIELD_VERTICAL_UT = -40.0      # Vertical component, northern hemisphere

    # ==========================================================================
    # TELEMETRY
    # ==========================================================================

    TELEMETRY_ENABLED = True
    LOG_DIR = "logs"
    LOG_FILE_LEVEL = "DEBUG"
    LOG_CONSOLE_LEVEL = "WARNING"       # Topic messages mirrored to the console
    LOG_FILE_MODE = "w"                 # "a" keeps earlier runs in the same session dir
