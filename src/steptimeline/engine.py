"""
Timeline Engine
================

Host-facing entry point. Wires the viewport, layout, interaction and sync
components together and enforces that at most one pointer interaction runs
at a time.

The host calls the compute functions whenever view_changed fires and draws
the result; it forwards pointer presses to the start_* methods. Moves and
releases arrive through the pointer host's global listeners, which the engine
acquires on every interaction start and releases on end, cancel or teardown.

Usage:
    engine = TimelineEngine(source, error_reporter=reporter)
    engine.set_width(1200)
    engine.view_changed.connect(redraw)

    viewport = engine.viewport()
    markers = engine.generate_markers(viewport)
    rects = engine.layout()
"""

from datetime import datetime
from typing import Dict, List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from .interfaces import (
    StepSourceInterface,
    ErrorReporterInterface,
    PointerHostInterface,
    FrameSchedulerInterface,
)
from .interaction.drag_resize_controller import DragResizeController
from .interaction.frame_scheduler import FrameScheduler
from .interaction.pan_controller import PanController
from .interaction.pointer import PointerGrab, QtPointerHost
from .interaction.selection_controller import SelectionController
from .interaction.zoom_controller import ZoomController
from .layout.track_assigner import TrackAssigner, TrackCache
from .settings import TimelineSettings
from .sync.optimistic_sync import OptimisticSyncCoordinator
from .timing.time_scale import TimeScale
from .timing.viewport import ViewportController
from .types import EditHandle, InteractionMode, Rect, Step, StepDates, TimeMarker, Viewport
from .utils.message import Log


class TimelineEngine(QObject):
    """
    Interactive timeline layout and manipulation.

    Components (public attributes):
        viewport_controller: Window and marker computation
        assigner: Track assignment and rect geometry
        pan, zoom: View navigation
        edits: Step drag / resize
        selection: Range selection to create steps
        sync: Local step list and background persistence

    Signals:
        view_changed(): Viewport, steps or preview changed; recompute and redraw
    """

    view_changed = pyqtSignal()

    def __init__(
        self,
        source: StepSourceInterface,
        pointer_host: Optional[PointerHostInterface] = None,
        error_reporter: Optional[ErrorReporterInterface] = None,
        settings: Optional[TimelineSettings] = None,
        center: Optional[datetime] = None,
        scheduler: Optional[FrameSchedulerInterface] = None,
        parent=None,
    ):
        super().__init__(parent)

        self.settings = settings if settings is not None else TimelineSettings()
        s = self.settings

        self._width = float(s.default_viewport_width)
        self._pointer_host = pointer_host if pointer_host is not None else QtPointerHost(parent=self)
        self._grab: Optional[PointerGrab] = None
        self._torn_down = False

        self.cache = TrackCache()
        self.scheduler = scheduler if scheduler is not None else FrameScheduler(s.frame_interval_ms, parent=self)

        self.viewport_controller = ViewportController(s.viewport_density)
        self.assigner = TrackAssigner(
            min_width=s.min_item_width,
            item_height=s.item_height,
            track_spacing=s.track_spacing,
            padding_top=s.padding_top,
        )
        self.pan = PanController(center, s.pan_pixels_per_day, self.scheduler, parent=self)
        self.zoom = ZoomController(
            min_zoom=s.min_zoom,
            max_zoom=s.max_zoom,
            default_zoom=s.default_zoom,
            zoom_step=s.zoom_step,
            wheel_delta_per_step=s.wheel_delta_per_step,
            parent=self,
        )
        self.edits = DragResizeController(
            on_commit=self._commit_edit,
            min_width=s.min_item_width,
            min_step_days=s.min_step_days,
            scheduler=self.scheduler,
            parent=self,
        )
        self.selection = SelectionController(s.min_selection_px, self.scheduler, parent=self)
        self.sync = OptimisticSyncCoordinator(
            source,
            cache=self.cache,
            error_reporter=error_reporter,
            rollback_on_failure=s.rollback_on_failure,
            parent=self,
        )

        self.pan.center_changed.connect(self._emit_view_changed)
        self.zoom.zoom_changed.connect(self._emit_view_changed)
        self.edits.preview_changed.connect(self._emit_view_changed)
        self.selection.selection_changed.connect(self._emit_view_changed)
        self.sync.steps_changed.connect(self._emit_view_changed)

        self.sync.refresh()

    # =========================================================================
    # Pure computations
    # =========================================================================

    def compute_viewport(self, center: datetime, zoom_level: float, width: float) -> Viewport:
        return self.viewport_controller.compute_window(center, zoom_level, width)

    def generate_markers(self, viewport: Optional[Viewport] = None) -> List[TimeMarker]:
        return self.viewport_controller.generate_markers(viewport or self.viewport())

    def compute_layout(self, steps: List[Step], viewport: Viewport, cache: TrackCache) -> Dict[str, Rect]:
        return self.assigner.compute_layout(steps, viewport, cache)

    # =========================================================================
    # Current view
    # =========================================================================

    @property
    def width(self) -> float:
        return self._width

    def set_width(self, width: float) -> None:
        """Update the available pixel width (host resize)."""
        width = max(0.0, float(width))
        if width != self._width:
            self._width = width
            self.view_changed.emit()

    def viewport(self) -> Viewport:
        return self.compute_viewport(self.pan.center, self.zoom.level, self._width)

    def scale(self) -> TimeScale:
        return TimeScale(self.viewport())

    def layout(self) -> Dict[str, Rect]:
        """Rects of the visible local steps for the current viewport."""
        return self.assigner.compute_layout(self.sync.steps, self.viewport(), self.cache, visible_only=True)

    def visible_steps(self) -> List[Step]:
        viewport = self.viewport()
        return [s for s in self.sync.steps if self.viewport_controller.is_visible(s, viewport)]

    def today_position(self, now: Optional[datetime] = None) -> Optional[float]:
        return self.viewport_controller.today_position(self.viewport(), now)

    def set_steps(self, steps: List[Step]) -> None:
        self.sync.set_steps(steps)

    # =========================================================================
    # Navigation
    # =========================================================================

    def zoom_in(self) -> None:
        self.zoom.zoom_in()

    def zoom_out(self) -> None:
        self.zoom.zoom_out()

    def reset_zoom(self) -> None:
        self.zoom.reset()

    def set_zoom(self, level: float) -> None:
        self.zoom.set_zoom(level)

    def apply_wheel(self, delta: float) -> None:
        self.zoom.apply_wheel(delta)

    def pan_to_date(self, date: datetime) -> None:
        self.pan.pan_to_date(date)

    def pan_by_days(self, days: float) -> None:
        self.pan.pan_by_days(days)

    def pan_to_today(self) -> None:
        self.pan.pan_to_today()

    # =========================================================================
    # Interactions
    # =========================================================================

    @property
    def active_mode(self) -> InteractionMode:
        if self.pan.is_panning:
            return self.pan.state
        if self.edits.is_active:
            return self.edits.state
        if self.selection.is_active:
            return self.selection.state
        return InteractionMode.IDLE

    def start_pan(self, pointer_x: float) -> bool:
        if not self._can_start("pan"):
            return False
        return self._acquire(self.pan.start(pointer_x))

    def move_pan(self, pointer_x: float) -> None:
        self.pan.move(pointer_x)

    def end_pan(self) -> None:
        if self.pan.is_panning:
            self.pan.end()
            self._release_grab()

    def start_drag(self, step_id: str, pointer_x: float) -> bool:
        """Begin moving a visible step from a pointer press."""
        return self._start_edit(step_id, pointer_x, EditHandle.MOVE)

    def start_resize(self, step_id: str, pointer_x: float, handle: EditHandle) -> bool:
        """Begin resizing the left or right edge of a visible step."""
        return self._start_edit(step_id, pointer_x, handle)

    def start_selection(self, pointer_x: float) -> bool:
        if not self._can_start("selection"):
            return False
        return self._acquire(self.selection.start(pointer_x, self.scale()))

    def move_interaction(self, pointer_x: float) -> None:
        """Route a pointer move to the active interaction."""
        mode = self.active_mode
        if mode == InteractionMode.PANNING:
            self.pan.move(pointer_x)
        elif mode == InteractionMode.SELECTING:
            self.selection.move(pointer_x)
        elif mode != InteractionMode.IDLE:
            self.edits.move(pointer_x)

    def release_interaction(self, pointer_x: Optional[float] = None) -> None:
        """Finish the active interaction (pointer up)."""
        mode = self.active_mode
        try:
            if mode == InteractionMode.PANNING:
                if pointer_x is not None:
                    self.pan.move(pointer_x)
                self.pan.end()
            elif mode == InteractionMode.SELECTING:
                self.selection.release(pointer_x)
            elif mode != InteractionMode.IDLE:
                self.edits.release(pointer_x)
        finally:
            self._release_grab()

    def cancel_interaction(self) -> None:
        """Abort the active interaction. Pans keep their last applied center."""
        self.pan.end()
        self.edits.cancel()
        self.selection.cancel()
        self.scheduler.cancel()
        self._release_grab()

    def teardown(self) -> None:
        """Release listeners, drop pending ticks and stop background persistence."""
        if self._torn_down:
            return
        self._torn_down = True
        self.cancel_interaction()
        if isinstance(self._pointer_host, QtPointerHost):
            self._pointer_host.remove_all()
        self.sync.shutdown(self.settings.shutdown_timeout_ms)
        Log.debug("TimelineEngine: torn down")

    # =========================================================================
    # Internals
    # =========================================================================

    def _start_edit(self, step_id: str, pointer_x: float, handle: EditHandle) -> bool:
        if not self._can_start(handle.name):
            return False

        step = self.sync.get_step(step_id)
        rect = self.layout().get(step_id) if step is not None else None
        if rect is None:
            Log.warning(f"TimelineEngine: cannot edit '{step_id}', not a visible step")
            return False

        if handle == EditHandle.MOVE:
            started = self.edits.start_drag(step, rect, pointer_x, self.scale())
        else:
            started = self.edits.start_resize(step, rect, pointer_x, handle, self.scale())
        return self._acquire(started)

    def _can_start(self, name: str) -> bool:
        if self._torn_down:
            Log.warning(f"TimelineEngine: {name} refused after teardown")
            return False
        mode = self.active_mode
        if mode != InteractionMode.IDLE:
            Log.warning(f"TimelineEngine: {name} refused while {mode.name}")
            return False
        return True

    def _acquire(self, started: bool) -> bool:
        if started:
            self._release_grab()
            self._grab = PointerGrab(
                self._pointer_host,
                on_move=self.move_interaction,
                on_release=self.release_interaction,
                on_cancel=self.cancel_interaction,
            )
        return started

    def _release_grab(self) -> None:
        if self._grab is not None:
            self._grab.release()
            self._grab = None

    def _commit_edit(self, step_id: str, dates: StepDates) -> None:
        self.sync.commit(step_id, dates)

    def _emit_view_changed(self, *args) -> None:
        self.view_changed.emit()
