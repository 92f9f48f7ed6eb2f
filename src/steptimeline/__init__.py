"""
Step Timeline
=============

Layout and manipulation engine for an interactive, Gantt-like timeline of
dated steps. Rendering is left to the host; the engine computes viewports,
axis markers and step rects, and turns pointer gestures into pans, zooms and
persisted date edits.

Directory Structure
-------------------
- timing/       - Date/pixel mapping, viewport window and axis markers
- layout/       - Track assignment and step rects
- interaction/  - Pan, zoom, drag/resize, range selection, frame coalescing
- sync/         - Optimistic local edits with background persistence
- utils/        - Logging and user paths

Import Examples
---------------
    from steptimeline import TimelineEngine, Step
    from steptimeline.timing import TimeScale, ViewportController
    from steptimeline.layout import TrackAssigner, TrackCache
    from steptimeline.interaction import PanController, ZoomController
    from steptimeline.settings import TimelineSettingsManager
    from steptimeline.interfaces import StepSourceInterface

Features
--------
- Zoom-adaptive axis markers (months, weeks, 3-day, days)
- Greedy non-overlapping track packing, stable across pans
- Drag to move, edge drags to resize, minimum duration enforced
- Pointer moves coalesced to one update per render tick
- Local-first edits persisted off the GUI thread
"""

__version__ = "1.0.0"

from .types import (
    Step,
    StepDates,
    Viewport,
    Rect,
    TimeMarker,
    EditHandle,
    InteractionMode,
    parse_instant,
    format_instant,
)
from .errors import (
    TimelineError,
    InvalidIntervalError,
    DegenerateViewportError,
    PersistenceFailure,
)
from .engine import TimelineEngine
from .settings import TimelineSettings, TimelineSettingsManager, JsonPreferencesRepository

__all__ = [
    'Step',
    'StepDates',
    'Viewport',
    'Rect',
    'TimeMarker',
    'EditHandle',
    'InteractionMode',
    'parse_instant',
    'format_instant',
    'TimelineError',
    'InvalidIntervalError',
    'DegenerateViewportError',
    'PersistenceFailure',
    'TimelineEngine',
    'TimelineSettings',
    'TimelineSettingsManager',
    'JsonPreferencesRepository',
]
