"""
Timeline Interaction

Pointer-driven controllers. At most one of them is active at a time; the
TimelineEngine enforces that.
"""

from .frame_scheduler import FrameScheduler
from .pointer import PointerGrab, QtPointerHost
from .pan_controller import PanController
from .zoom_controller import ZoomController
from .drag_resize_controller import DragResizeController
from .selection_controller import SelectionController

__all__ = [
    'FrameScheduler',
    'PointerGrab',
    'QtPointerHost',
    'PanController',
    'ZoomController',
    'DragResizeController',
    'SelectionController',
]
