import math
import time
from typing import Optional

import cv2
import numpy as np

from core.notifications import NotificationDuration
from utils.config_sections import DashboardConfig, load_dashboard_config

CARDINAL_MARKS = ((0, "N"), (90, "E"), (180, "S"), (270, "W"))
WHITE = (255, 255, 255)
GREY = (140, 140, 140)
BACKGROUND = (24, 24, 24)


def shortest_delta(start: float, end: float) -> float:
    """Signed rotation in (-180, 180] taking ``start`` to ``end``."""
    delta = (end - start + 540.0) % 360.0 - 180.0
    return 180.0 if delta == -180.0 else delta


class CompassDashboard:
    """
    Compass dial rendered with OpenCV in one square window.

    Layout (top to bottom):
      [degrees]  [direction label]   colored by band
      [dial rotated by -azimuth, fixed needle pointing up]
      [status line]  [toast]
    """

    def __init__(self, config: Optional[DashboardConfig] = None, headless: bool = False):
        self.config = config or load_dashboard_config()
        self.size = int(self.config.size)
        self.window_name = self.config.window_name
        self.headless = headless

        self.degrees_text = "--.-°"
        self.direction_text = ""
        self.text_color = WHITE
        self.status_text = ""

        # Dial animation: displayed angle moves from _anim_from to _anim_to
        self._anim_from = 0.0
        self._anim_to = 0.0
        self._anim_start = 0.0

        self._toast_text: Optional[str] = None
        self._toast_until = 0.0
        self.frames_rendered = 0

        if not headless:
            cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
            cv2.resizeWindow(self.window_name, self.size, self.size)

    # ------------------------------------------------------------------
    # State updates
    # ------------------------------------------------------------------

    def log_heading(self, update, now: Optional[float] = None) -> None:
        """Start rotating the dial towards ``update.azimuth``."""
        now = time.time() if now is None else now
        self._anim_from = self.dial_angle(now)
        self._anim_to = float(update.azimuth)
        self._anim_start = now

        self.degrees_text = update.degrees_text
        self.direction_text = update.label.display_text
        self.text_color = update.color_band.bgr

    def log_notification(self, notification, now: Optional[float] = None) -> None:
        now = time.time() if now is None else now
        seconds = (self.config.toast_long_seconds
                   if notification.duration is NotificationDuration.LONG
                   else self.config.toast_short_seconds)
        self._toast_text = notification.message
        self._toast_until = now + seconds

    def set_status(self, text: str) -> None:
        self.status_text = text

    def dial_angle(self, now: Optional[float] = None) -> float:
        """Azimuth currently shown by the dial, mid-animation included."""
        now = time.time() if now is None else now
        duration = self.config.animation_ms / 1000.0
        if duration <= 0:
            return self._anim_to
        progress = min(1.0, max(0.0, (now - self._anim_start) / duration))
        angle = self._anim_from + shortest_delta(self._anim_from, self._anim_to) * progress
        return angle % 360.0

    def toast(self, now: Optional[float] = None) -> Optional[str]:
        now = time.time() if now is None else now
        if self._toast_text and now < self._toast_until:
            return self._toast_text
        return None

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, now: Optional[float] = None) -> np.ndarray:
        now = time.time() if now is None else now
        canvas = np.full((self.size, self.size, 3), BACKGROUND, dtype=np.uint8)
        cx = cy = self.size // 2
        radius = int(self.size * 0.32)
        azimuth = self.dial_angle(now)

        cv2.circle(canvas, (cx, cy), radius, GREY, 2, cv2.LINE_AA)

        for bearing in range(0, 360, 15):
            outer = self._dial_point(cx, cy, radius, bearing - azimuth)
            inner_r = radius - (14 if bearing % 45 == 0 else 7)
            inner = self._dial_point(cx, cy, inner_r, bearing - azimuth)
            cv2.line(canvas, inner, outer, WHITE if bearing % 90 == 0 else GREY, 2, cv2.LINE_AA)

        for bearing, letter in CARDINAL_MARKS:
            x, y = self._dial_point(cx, cy, radius - 32, bearing - azimuth)
            color = (0, 0, 220) if letter == "N" else WHITE
            cv2.putText(canvas, letter, (x - 9, y + 9),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.8, color, 2, cv2.LINE_AA)

        # Fixed needle: the device's forward direction
        tip = (cx, cy - radius + 20)
        cv2.arrowedLine(canvas, (cx, cy + 20), tip, self.text_color, 3, cv2.LINE_AA, tipLength=0.15)
        cv2.circle(canvas, (cx, cy), 5, WHITE, -1, cv2.LINE_AA)

        cv2.putText(canvas, self.degrees_text.replace("°", " deg"), (20, 40),
                    cv2.FONT_HERSHEY_SIMPLEX, 1.0, self.text_color, 2, cv2.LINE_AA)
        cv2.putText(canvas, self.direction_text, (20, 75),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, self.text_color, 2, cv2.LINE_AA)
        cv2.putText(canvas, self.status_text, (20, self.size - 20),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, WHITE, 1, cv2.LINE_AA)

        toast = self.toast(now)
        if toast:
            (w, h), _ = cv2.getTextSize(toast, cv2.FONT_HERSHEY_SIMPLEX, 0.55, 1)
            x0 = max(10, (self.size - w) // 2 - 10)
            y0 = self.size - 70
            cv2.rectangle(canvas, (x0, y0 - h - 10), (x0 + w + 20, y0 + 10), (60, 60, 60), -1)
            cv2.putText(canvas, toast, (x0 + 10, y0),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.55, WHITE, 1, cv2.LINE_AA)

        self.frames_rendered += 1
        return canvas

    @staticmethod
    def _dial_point(cx: int, cy: int, r: float, screen_bearing: float):
        phi = math.radians(screen_bearing)
        return int(round(cx + r * math.sin(phi))), int(round(cy - r * math.cos(phi)))

    def show(self, now: Optional[float] = None) -> Optional[str]:
        """Render, display and poll the keyboard; returns the pressed key."""
        canvas = self.render(now)
        if self.headless:
            return None
        cv2.imshow(self.window_name, canvas)
        key = cv2.waitKey(1) & 0xFF
        if key == 255:
            return None
        return chr(key)

    def close(self) -> None:
        if not self.headless:
            try:
                cv2.destroyWindow(self.window_name)
            except cv2.error:
                pass
