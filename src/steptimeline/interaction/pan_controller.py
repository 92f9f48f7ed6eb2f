"""
Pan Controller

Owns the viewport center and moves it in response to pointer drags on the
empty timeline area, or to programmatic navigation.

State Machine:
    IDLE -> (start) -> PANNING -> (end / abort) -> IDLE

Pointer moves are coalesced through the frame scheduler: only the latest
center computed between two ticks is applied.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from ..constants import PAN_PIXELS_PER_DAY
from ..interfaces import FrameSchedulerInterface
from ..types import InteractionMode
from ..utils.message import Log
from .frame_scheduler import FrameScheduler


class PanController(QObject):
    """
    Drag-to-pan and programmatic navigation.

    Dragging right moves the window back in time:

        days_moved = -(pointer_x - origin_x) / pixels_per_day
        center     = origin_center + days_moved

    Signals:
        center_changed(datetime): Emitted whenever the applied center changes
    """

    center_changed = pyqtSignal(object)  # datetime

    def __init__(
        self,
        center: Optional[datetime] = None,
        pixels_per_day: float = PAN_PIXELS_PER_DAY,
        scheduler: Optional[FrameSchedulerInterface] = None,
        parent=None,
    ):
        super().__init__(parent)

        if pixels_per_day <= 0:
            raise ValueError(f"Pan pixels per day must be positive, got {pixels_per_day}")

        self._center = center if center is not None else datetime.now(timezone.utc)
        self._pixels_per_day = float(pixels_per_day)
        self._scheduler = scheduler if scheduler is not None else FrameScheduler(parent=self)

        self._state = InteractionMode.IDLE
        self._origin_x = 0.0
        self._origin_center = self._center

    @property
    def center(self) -> datetime:
        return self._center

    @property
    def state(self) -> InteractionMode:
        return self._state

    @property
    def is_panning(self) -> bool:
        return self._state == InteractionMode.PANNING

    @property
    def pixels_per_day(self) -> float:
        return self._pixels_per_day

    @pixels_per_day.setter
    def pixels_per_day(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"Pan pixels per day must be positive, got {value}")
        self._pixels_per_day = float(value)

    # =========================================================================
    # Pointer-driven panning
    # =========================================================================

    def start(self, pointer_x: float) -> bool:
        """
        Begin panning from a pointer position.

        Returns:
            False if a pan is already in progress
        """
        if self._state != InteractionMode.IDLE:
            Log.warning("PanController: start called while already panning")
            return False

        self._state = InteractionMode.PANNING
        self._origin_x = float(pointer_x)
        self._origin_center = self._center
        Log.debug(f"PanController: start at x={pointer_x:.1f}, center={self._center.isoformat()}")
        return True

    def move(self, pointer_x: float) -> None:
        """Schedule the center for a new pointer position. Ignored unless panning."""
        if self._state != InteractionMode.PANNING:
            return

        days_moved = -(float(pointer_x) - self._origin_x) / self._pixels_per_day
        target = self._origin_center + timedelta(days=days_moved)
        self._scheduler.schedule(lambda: self._apply(target))

    def end(self) -> None:
        """Apply the last pending center and return to IDLE."""
        if self._state != InteractionMode.PANNING:
            return

        self._scheduler.flush()
        self._scheduler.cancel()
        self._state = InteractionMode.IDLE
        Log.debug(f"PanController: end, center={self._center.isoformat()}")

    # =========================================================================
    # Programmatic navigation
    # =========================================================================

    def pan_to_date(self, date: datetime) -> None:
        """Center the view on an instant."""
        self._apply(date)

    def pan_by_days(self, days: float) -> None:
        """Shift the center by a (possibly fractional, possibly negative) day count."""
        self._apply(self._center + timedelta(days=days))

    def pan_to_today(self, now: Optional[datetime] = None) -> None:
        self._apply(now if now is not None else datetime.now(timezone.utc))

    def _apply(self, center: datetime) -> None:
        if center == self._center:
            return
        self._center = center
        self.center_changed.emit(center)
