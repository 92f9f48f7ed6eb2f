"""
Pointer Listeners

Scoped acquisition of global pointer-move / pointer-up listeners.

An interaction acquires a PointerGrab when it starts and releases it when it
ends, is cancelled, or the host tears down. release() is idempotent so every
exit path can call it unconditionally.
"""

import itertools
from typing import Callable, Dict, Hashable, Optional, Tuple

from PyQt6.QtCore import QObject, QEvent, QCoreApplication

from ..interfaces import PointerHostInterface
from ..utils.message import Log


class PointerGrab:
    """
    Listener registration that is guaranteed to be released once.

    Usable as a context manager:

        with PointerGrab(host, on_move, on_release, on_cancel):
            ...
    """

    def __init__(
        self,
        host: PointerHostInterface,
        on_move: Callable[[float], None],
        on_release: Callable[[float], None],
        on_cancel: Callable[[], None],
    ):
        self._host = host
        self._token: Optional[Hashable] = host.add_pointer_listener(on_move, on_release, on_cancel)

    @property
    def active(self) -> bool:
        return self._token is not None

    def release(self) -> None:
        """Remove the listeners. Safe to call more than once."""
        if self._token is None:
            return
        token, self._token = self._token, None
        self._host.remove_pointer_listener(token)

    def __enter__(self) -> 'PointerGrab':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


_Listener = Tuple[Callable[[float], None], Callable[[float], None], Callable[[], None]]


class QtPointerHost(QObject):
    """
    Pointer host backed by a Qt event filter.

    The filter is installed on the target (the application by default) while
    at least one listener is registered, and removed with the last one.
    Application deactivation (focus loss) is reported as a cancel.
    Events are observed, never consumed.

    Listeners receive global screen x unless map_x is given; pass the
    widget's global-to-local mapping so that x values share the frame of the
    start_* calls.
    """

    def __init__(
        self,
        target: Optional[QObject] = None,
        map_x: Optional[Callable[[float], float]] = None,
        parent=None,
    ):
        super().__init__(parent)
        self._target = target
        self._map_x = map_x
        self._listeners: Dict[int, _Listener] = {}
        self._ids = itertools.count(1)
        self._installed = False

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    @property
    def is_filtering(self) -> bool:
        return self._installed

    def add_pointer_listener(self, on_move, on_release, on_cancel) -> int:
        token = next(self._ids)
        self._listeners[token] = (on_move, on_release, on_cancel)
        if not self._installed:
            target = self._resolve_target()
            if target is not None:
                target.installEventFilter(self)
                self._installed = True
        return token

    def remove_pointer_listener(self, token) -> None:
        self._listeners.pop(token, None)
        if not self._listeners and self._installed:
            target = self._resolve_target()
            if target is not None:
                target.removeEventFilter(self)
            self._installed = False

    def remove_all(self) -> None:
        """Drop every listener (host teardown)."""
        for token in list(self._listeners):
            self.remove_pointer_listener(token)

    def _resolve_target(self) -> Optional[QObject]:
        if self._target is not None:
            return self._target
        app = QCoreApplication.instance()
        if app is None:
            Log.warning("QtPointerHost: no QCoreApplication; pointer events will not be observed")
        return app

    def _pointer_x(self, event) -> float:
        x = event.globalPosition().x()
        return self._map_x(x) if self._map_x is not None else x

    def eventFilter(self, obj, event) -> bool:
        event_type = event.type()
        if event_type == QEvent.Type.MouseMove:
            x = self._pointer_x(event)
            for on_move, _, _ in list(self._listeners.values()):
                on_move(x)
        elif event_type == QEvent.Type.MouseButtonRelease:
            x = self._pointer_x(event)
            for _, on_release, _ in list(self._listeners.values()):
                on_release(x)
        elif event_type == QEvent.Type.ApplicationDeactivate:
            for _, _, on_cancel in list(self._listeners.values()):
                on_cancel()
        return False
