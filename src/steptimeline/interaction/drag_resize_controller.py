"""
Drag / Resize Controller
=========================

Handles moving a step along the time axis and resizing either of its edges.

This controller centralizes edit logic to ensure:
- Preview geometry never touches the step itself
- Exactly one commit per completed interaction
- Duration is preserved exactly on move
- Resizes never shrink a step below the minimum duration

State Machine:
    IDLE -> (start_drag) ----------> DRAGGING ------> (release) -> IDLE
         -> (start_resize LEFT) ---> RESIZING_LEFT -> (release) -> IDLE
         -> (start_resize RIGHT) --> RESIZING_RIGHT -> (release) -> IDLE
                                        |
                                        v
                                    (cancel) -> IDLE, nothing committed
"""

from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Callable, Optional, Tuple

from PyQt6.QtCore import QObject, pyqtSignal

from ..constants import MIN_ITEM_WIDTH, MIN_STEP_DAYS
from ..interfaces import FrameSchedulerInterface
from ..timing.time_scale import TimeScale
from ..types import EditHandle, InteractionMode, Rect, Step, StepDates
from ..utils.message import Log
from .frame_scheduler import FrameScheduler


@dataclass
class EditContext:
    """Origin of the edit in progress."""
    step: Step
    origin_rect: Rect
    origin_x: float
    scale: TimeScale
    handle: EditHandle

    # Current preview (None until the first applied move)
    preview: Optional[Rect] = None


_MODES = {
    EditHandle.MOVE: InteractionMode.DRAGGING,
    EditHandle.RESIZE_LEFT: InteractionMode.RESIZING_LEFT,
    EditHandle.RESIZE_RIGHT: InteractionMode.RESIZING_RIGHT,
}


class DragResizeController(QObject):
    """
    Controls step move and resize operations.

    Preview geometry for a pointer delta d:
        DRAGGING:        left = origin_left + d, width unchanged
        RESIZING_LEFT:   left = origin_left + d, width = max(origin_width - d, min_width)
                         (the width freezes; release clamps start to end - 1 day)
        RESIZING_RIGHT:  width = max(origin_width + d, min_width)

    Signals:
        preview_changed(str, Rect): Emitted per applied move (step_id, rect)
        edit_committed(str, StepDates): Emitted when release produces new dates
        interaction_ended(): Emitted when the controller returns to IDLE
    """

    preview_changed = pyqtSignal(str, object)  # step_id, Rect
    edit_committed = pyqtSignal(str, object)   # step_id, StepDates
    interaction_ended = pyqtSignal()

    def __init__(
        self,
        on_commit: Optional[Callable[[str, StepDates], None]] = None,
        min_width: float = MIN_ITEM_WIDTH,
        min_step_days: float = MIN_STEP_DAYS,
        scheduler: Optional[FrameSchedulerInterface] = None,
        parent=None,
    ):
        super().__init__(parent)

        self._on_commit = on_commit
        self.min_width = float(min_width)
        self.min_step_days = min_step_days
        self._scheduler = scheduler if scheduler is not None else FrameScheduler(parent=self)

        self._state = InteractionMode.IDLE
        self._context: Optional[EditContext] = None
        self._last_preview: Optional[Tuple[str, Rect]] = None

    @property
    def state(self) -> InteractionMode:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state != InteractionMode.IDLE

    @property
    def edit_handle(self) -> EditHandle:
        return self._context.handle if self._context else EditHandle.NONE

    @property
    def step_id(self) -> Optional[str]:
        return self._context.step.id if self._context else None

    @property
    def preview(self) -> Optional[Rect]:
        """Preview rect of the interaction in progress."""
        return self._context.preview if self._context else None

    @property
    def last_preview(self) -> Optional[Tuple[str, Rect]]:
        """
        (step_id, rect) of the most recent preview.

        Kept after release until the next interaction starts, so a host can
        keep drawing it until the committed layout arrives.
        """
        return self._last_preview

    def set_commit_callback(self, callback: Optional[Callable[[str, StepDates], None]]) -> None:
        self._on_commit = callback

    # =========================================================================
    # Public API
    # =========================================================================

    def start_drag(self, step: Step, rect: Rect, pointer_x: float, scale: TimeScale) -> bool:
        """
        Begin moving a step.

        Args:
            step: Step under the pointer
            rect: Its current rect
            pointer_x: Pointer position at press
            scale: Time scale of the viewport the rect was laid out in

        Returns:
            False if another edit is in progress
        """
        return self._begin(step, rect, pointer_x, scale, EditHandle.MOVE)

    def start_resize(self, step: Step, rect: Rect, pointer_x: float, handle: EditHandle, scale: TimeScale) -> bool:
        """
        Begin resizing one edge of a step.

        Args:
            handle: EditHandle.RESIZE_LEFT or EditHandle.RESIZE_RIGHT
        """
        if handle not in (EditHandle.RESIZE_LEFT, EditHandle.RESIZE_RIGHT):
            raise ValueError(f"start_resize needs a resize handle, got {handle}")
        return self._begin(step, rect, pointer_x, scale, handle)

    def move(self, pointer_x: float) -> None:
        """Schedule a preview for a new pointer position. Ignored when IDLE."""
        context = self._context
        if context is None:
            return

        preview = self._preview_for(context, float(pointer_x) - context.origin_x)
        self._scheduler.schedule(lambda: self._apply_preview(context, preview))

    def release(self, pointer_x: Optional[float] = None) -> Optional[StepDates]:
        """
        Finish the interaction and commit the new dates.

        Args:
            pointer_x: Pointer position at release, applied as a final move

        Returns:
            The committed dates, or None when nothing changed
        """
        context = self._context
        if context is None:
            return None

        if pointer_x is not None:
            self.move(pointer_x)
        self._scheduler.flush()

        dates = None
        if context.preview is not None:
            dates = self._dates_for(context, context.preview)
            if dates.start == context.step.start and dates.end == context.step.end:
                dates = None

        self._finish()

        if dates is None:
            Log.debug(f"DragResizeController: release of '{context.step.id}' changed nothing")
            return None

        Log.info(
            f"DragResizeController: commit '{context.step.id}' "
            f"{dates.start.isoformat()} -> {dates.end.isoformat()}"
        )
        if self._on_commit is not None:
            self._on_commit(context.step.id, dates)
        self.edit_committed.emit(context.step.id, dates)
        return dates

    def cancel(self) -> None:
        """Abort without committing and drop the preview."""
        if self._context is None:
            return
        Log.debug(f"DragResizeController: cancelled edit of '{self._context.step.id}'")
        self._last_preview = None
        self._finish()

    # =========================================================================
    # Geometry
    # =========================================================================

    def _preview_for(self, context: EditContext, delta: float) -> Rect:
        origin = context.origin_rect

        if context.handle == EditHandle.MOVE:
            return replace(origin, left=origin.left + delta)

        if context.handle == EditHandle.RESIZE_LEFT:
            return replace(origin, left=origin.left + delta, width=max(origin.width - delta, self.min_width))

        return replace(origin, width=max(origin.width + delta, self.min_width))

    def _dates_for(self, context: EditContext, preview: Rect) -> StepDates:
        step = context.step
        origin = context.origin_rect
        scale = context.scale
        min_duration = timedelta(days=self.min_step_days)

        if context.handle == EditHandle.MOVE:
            start = step.start + scale.pixels_to_timedelta(preview.left - origin.left)
            return StepDates(start=start, end=start + step.duration)

        if context.handle == EditHandle.RESIZE_LEFT:
            start = step.start + scale.pixels_to_timedelta(preview.left - origin.left)
            start = min(start, step.end - min_duration)
            return StepDates(start=start, end=step.end)

        # Width change, not absolute edge: the origin width may already be
        # floored to min_width for short steps.
        end = step.end + scale.pixels_to_timedelta(preview.width - origin.width)
        end = max(end, step.start + min_duration)
        return StepDates(start=step.start, end=end)

    # =========================================================================
    # State
    # =========================================================================

    def _begin(self, step: Step, rect: Rect, pointer_x: float, scale: TimeScale, handle: EditHandle) -> bool:
        if self._state != InteractionMode.IDLE:
            Log.warning(f"DragResizeController: {handle.name} refused, already {self._state.name}")
            return False

        self._context = EditContext(
            step=step,
            origin_rect=rect,
            origin_x=float(pointer_x),
            scale=scale,
            handle=handle,
        )
        self._last_preview = None
        self._state = _MODES[handle]
        Log.debug(f"DragResizeController: {self._state.name} '{step.id}' from x={pointer_x:.1f}")
        return True

    def _apply_preview(self, context: EditContext, preview: Rect) -> None:
        if context is not self._context:
            return
        context.preview = preview
        self._last_preview = (context.step.id, preview)
        self.preview_changed.emit(context.step.id, preview)

    def _finish(self) -> None:
        self._scheduler.cancel()
        self._context = None
        self._state = InteractionMode.IDLE
        self.interaction_ended.emit()
