#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Presentation Manager - UI layer of the compass.

Responsibilities:
- Receiving HeadingUpdate / Notification callbacks from the session
- Marshalling them onto the UI thread (OpenCV must draw from one thread)
- Driving the dial dashboard, the status line and toasts
- Forwarding tempo, track and sound changes to the audio system
- Keyboard controls
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.audio.playback import TRACKS

log = logging.getLogger(__name__)

TRACK_KEYS = {str(i + 1): track_id for i, track_id in enumerate(TRACKS)}


@dataclass
class UIState:
    """User interface state"""
    dashboard_enabled: bool = True
    speak_notifications: bool = True
    running: bool = True


class PresentationManager:
    """
    Presentation and UI manager.

    Sensor callbacks arrive on the delivery thread; the manager buffers them
    and applies them to the dashboard when ``update_display`` runs on the UI
    thread. Audio tempo is applied immediately since the audio system is
    thread-safe.
    """

    def __init__(self, session, audio_system=None, dashboard=None, telemetry=None,
                 speak_notifications: bool = True):
        """
        Args:
            session: CompassSession providing intent and status
            audio_system: CompassAudioSystem (optional)
            dashboard: CompassDashboard (optional, None for headless runs)
            telemetry: TelemetryLogger (optional)
            speak_notifications: Speak toasts through the audio system
        """
        self.session = session
        self.audio_system = audio_system
        self.dashboard = dashboard
        self.telemetry = telemetry
        self.ui_state = UIState(
            dashboard_enabled=dashboard is not None,
            speak_notifications=speak_notifications,
        )

        self._ui_lock = threading.Lock()
        self._pending_update = None
        self._pending_notifications = deque(maxlen=10)

        self.latest_update = None
        self.heading_updates = 0
        self.notifications_shown = 0
        self.frame_count = 0
        self.last_fps_time = time.time()
        self.current_fps = 0.0

        log.info("PresentationManager ready (dashboard=%s, audio=%s)",
                 self.ui_state.dashboard_enabled, audio_system is not None)

    def attach(self) -> None:
        """Register this manager as the session's output channel."""
        self.session.on_heading_update = self.on_heading_update
        self.session.on_notification = self.on_notification

    # ------------------------------------------------------------------
    # Session callbacks (sensor thread)
    # ------------------------------------------------------------------

    def on_heading_update(self, update) -> None:
        with self._ui_lock:
            self._pending_update = update
            self.latest_update = update
            self.heading_updates += 1

        if self.audio_system is not None:
            self.audio_system.apply_tempo(self.session.playback)
        if self.telemetry is not None:
            self.telemetry.log_heading_update(update)

    def on_notification(self, notification) -> None:
        with self._ui_lock:
            self._pending_notifications.append(notification)
            self.notifications_shown += 1

        log.info("[%s] %s", notification.level.value.upper(), notification.message)
        if self.audio_system is not None and self.ui_state.speak_notifications:
            self.audio_system.speak_async(notification.message)
        if self.telemetry is not None:
            self.telemetry.log_notification(notification)

    # ------------------------------------------------------------------
    # UI thread
    # ------------------------------------------------------------------

    def update_display(self, now: Optional[float] = None) -> Optional[str]:
        """
        Apply buffered callbacks and redraw.

        Returns:
            Pressed key, if any
        """
        with self._ui_lock:
            update, self._pending_update = self._pending_update, None
            notifications = list(self._pending_notifications)
            self._pending_notifications.clear()

        self._update_fps_counter()
        if self.dashboard is None:
            return None

        if update is not None:
            self.dashboard.log_heading(update, now)
        for notification in notifications:
            self.dashboard.log_notification(notification, now)
        self.dashboard.set_status(self.session.status_text())
        return self.dashboard.show(now)

    def handle_key(self, key: Optional[str]) -> bool:
        """
        React to a key press.

        Returns:
            False when the user asked to quit
        """
        if not key:
            return True
        key = key.lower()

        if key == 'q':
            self.ui_state.running = False
            return False
        if key == 'c':
            self.session.request_calibration()
        elif key == 's':
            self.set_sound_enabled(not self.session.playback.enabled)
        elif key in TRACK_KEYS:
            self.select_track(TRACK_KEYS[key])
        return True

    def set_sound_enabled(self, enabled: bool) -> None:
        self.session.set_sound_enabled(enabled)
        if self.audio_system is not None:
            self.audio_system.apply_sound_enabled(self.session.playback)
        log.info("Sound %s", "enabled" if enabled else "disabled")

    def select_track(self, track_id: str) -> None:
        self.session.select_track(track_id)
        if self.audio_system is not None:
            self.audio_system.apply_track_selection(self.session.playback)
        log.info("Track selected: %s", track_id)

    def _update_fps_counter(self):
        self.frame_count += 1
        current_time = time.time()

        if current_time - self.last_fps_time >= 1.0:
            self.current_fps = self.frame_count / (current_time - self.last_fps_time)
            self.frame_count = 0
            self.last_fps_time = current_time

    def get_ui_stats(self) -> Dict[str, Any]:
        latest = self.latest_update
        return {
            'current_fps': self.current_fps,
            'dashboard_enabled': self.ui_state.dashboard_enabled,
            'heading_updates': self.heading_updates,
            'notifications': self.notifications_shown,
            'azimuth': latest.azimuth if latest else None,
            'direction': latest.label.abbreviation if latest else None,
            'status': self.session.status_text(),
        }

    def cleanup(self):
        """Release the dashboard window and audio output."""
        self.ui_state.running = False
        if self.dashboard is not None:
            try:
                self.dashboard.close()
            except Exception as e:
                log.warning("Dashboard cleanup error: %s", e)
        if self.audio_system is not None:
            try:
                self.audio_system.close()
            except Exception as e:
                log.warning("Audio cleanup error: %s", e)
        log.info("PresentationManager cleanup done")
