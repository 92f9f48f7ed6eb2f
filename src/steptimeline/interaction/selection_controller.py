"""
Selection Controller

Range selection on the empty timeline area. Sweeping wider than the
minimum selection width asks the host to create a step for that range.
"""

from typing import Optional, Tuple

from PyQt6.QtCore import QObject, pyqtSignal

from ..constants import MIN_SELECTION_PX
from ..interfaces import FrameSchedulerInterface
from ..timing.time_scale import TimeScale
from ..types import InteractionMode
from ..utils.message import Log
from .frame_scheduler import FrameScheduler


class SelectionController(QObject):
    """
    Signals:
        selection_changed(float, float): Current (min_x, max_x) while sweeping
        create_requested(datetime, datetime): Released selection as instants
        interaction_ended(): Emitted when the controller returns to IDLE
    """

    selection_changed = pyqtSignal(float, float)
    create_requested = pyqtSignal(object, object)  # start, end
    interaction_ended = pyqtSignal()

    def __init__(
        self,
        min_selection_px: float = MIN_SELECTION_PX,
        scheduler: Optional[FrameSchedulerInterface] = None,
        parent=None,
    ):
        super().__init__(parent)
        self.min_selection_px = float(min_selection_px)
        self._scheduler = scheduler if scheduler is not None else FrameScheduler(parent=self)

        self._state = InteractionMode.IDLE
        self._scale: Optional[TimeScale] = None
        self._origin_x = 0.0
        self._current_x = 0.0

    @property
    def state(self) -> InteractionMode:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == InteractionMode.SELECTING

    @property
    def selection(self) -> Optional[Tuple[float, float]]:
        """(min_x, max_x) of the sweep in progress."""
        if not self.is_active:
            return None
        return min(self._origin_x, self._current_x), max(self._origin_x, self._current_x)

    def start(self, pointer_x: float, scale: TimeScale) -> bool:
        if self._state != InteractionMode.IDLE:
            Log.warning("SelectionController: start called while already selecting")
            return False
        self._state = InteractionMode.SELECTING
        self._scale = scale
        self._origin_x = self._current_x = float(pointer_x)
        return True

    def move(self, pointer_x: float) -> None:
        if not self.is_active:
            return
        x = float(pointer_x)
        self._scheduler.schedule(lambda: self._apply(x))

    def release(self, pointer_x: Optional[float] = None) -> bool:
        """
        Finish the sweep.

        Returns:
            True if a create request was emitted
        """
        if not self.is_active:
            return False

        if pointer_x is not None:
            self.move(pointer_x)
        self._scheduler.flush()

        min_x, max_x = self.selection
        scale = self._scale
        self._finish()

        if max_x - min_x <= self.min_selection_px:
            return False

        start, end = scale.inverse(min_x), scale.inverse(max_x)
        Log.info(f"SelectionController: create requested {start.isoformat()} -> {end.isoformat()}")
        self.create_requested.emit(start, end)
        return True

    def cancel(self) -> None:
        if self.is_active:
            self._finish()

    def _apply(self, x: float) -> None:
        if not self.is_active:
            return
        self._current_x = x
        self.selection_changed.emit(*self.selection)

    def _finish(self) -> None:
        self._scheduler.cancel()
        self._state = InteractionMode.IDLE
        self._scale = None
        self.interaction_ended.emit()
