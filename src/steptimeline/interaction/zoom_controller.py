"""
Zoom Controller

Owns the zoom level. Every change is clamped to [min_zoom, max_zoom] and
rounded so that repeated stepping does not accumulate float drift.
"""

from PyQt6.QtCore import QObject, pyqtSignal

from ..constants import MIN_ZOOM, MAX_ZOOM, DEFAULT_ZOOM, ZOOM_STEP, WHEEL_DELTA_PER_STEP
from ..utils.message import Log

# Decimal places kept on the zoom level
ZOOM_PRECISION = 6


class ZoomController(QObject):
    """
    Discrete and wheel-driven zoom.

    Signals:
        zoom_changed(float): Emitted with the new level when it changes
    """

    zoom_changed = pyqtSignal(float)

    def __init__(
        self,
        min_zoom: float = MIN_ZOOM,
        max_zoom: float = MAX_ZOOM,
        default_zoom: float = DEFAULT_ZOOM,
        zoom_step: float = ZOOM_STEP,
        wheel_delta_per_step: float = WHEEL_DELTA_PER_STEP,
        parent=None,
    ):
        super().__init__(parent)

        if min_zoom <= 0 or min_zoom > max_zoom:
            raise ValueError(f"Invalid zoom bounds [{min_zoom}, {max_zoom}]")
        if zoom_step <= 0:
            raise ValueError(f"Zoom step must be positive, got {zoom_step}")

        self._min_zoom = float(min_zoom)
        self._max_zoom = float(max_zoom)
        self._zoom_step = float(zoom_step)
        self._wheel_delta_per_step = float(wheel_delta_per_step)
        self._default_zoom = self._clamp(default_zoom)
        self._level = self._default_zoom

    @property
    def level(self) -> float:
        return self._level

    @property
    def min_zoom(self) -> float:
        return self._min_zoom

    @property
    def max_zoom(self) -> float:
        return self._max_zoom

    @property
    def default_zoom(self) -> float:
        return self._default_zoom

    @property
    def can_zoom_in(self) -> bool:
        return self._level < self._max_zoom

    @property
    def can_zoom_out(self) -> bool:
        return self._level > self._min_zoom

    def zoom_in(self) -> None:
        """Step the level up by zoom_step."""
        self._set_level(self._level + self._zoom_step)

    def zoom_out(self) -> None:
        """Step the level down by zoom_step."""
        self._set_level(self._level - self._zoom_step)

    def apply_wheel(self, delta: float) -> None:
        """
        Zoom proportionally to a wheel delta.

        One notch (wheel_delta_per_step units) is one zoom step; trackpads
        report smaller deltas and zoom proportionally less. Positive zooms in.
        """
        if not delta or self._wheel_delta_per_step <= 0:
            return
        steps = float(delta) / self._wheel_delta_per_step
        self._set_level(self._level + steps * self._zoom_step)

    def set_zoom(self, level: float) -> None:
        self._set_level(level)

    def reset(self) -> None:
        """Restore the default level."""
        self._set_level(self._default_zoom)

    def _clamp(self, level: float) -> float:
        level = max(self._min_zoom, min(float(level), self._max_zoom))
        return round(level, ZOOM_PRECISION)

    def _set_level(self, level: float) -> None:
        new_level = self._clamp(level)
        if new_level == self._level:
            return
        self._level = new_level
        Log.debug(f"ZoomController: level={new_level}")
        self.zoom_changed.emit(new_level)
