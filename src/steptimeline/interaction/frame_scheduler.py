"""
Frame Scheduler

Coalesces pointer-driven updates to at most one per render tick.

Any number of schedule() calls between two ticks collapse to the latest
callback: there is no backlog and no replay. Uses a single-shot QTimer as the
tick source, so it needs a running Qt event loop to fire on its own; flush()
runs the pending callback synchronously.
"""

from typing import Callable, Optional

from PyQt6.QtCore import QObject, QTimer

from ..constants import FRAME_INTERVAL_MS
from ..utils.message import Log


class FrameScheduler(QObject):
    """
    "Request next tick" + dirty flag.

    The dirty flag is the pending callback itself: None means clean.
    """

    def __init__(self, interval_ms: int = FRAME_INTERVAL_MS, parent=None):
        super().__init__(parent)

        self._pending: Optional[Callable[[], None]] = None

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(int(interval_ms))
        self._timer.timeout.connect(self._on_tick)

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def schedule(self, callback: Callable[[], None]) -> None:
        """Run callback on the next tick, replacing any callback still pending."""
        self._pending = callback
        if not self._timer.isActive():
            self._timer.start()

    def cancel(self) -> None:
        """Drop the pending callback and stop the tick."""
        self._timer.stop()
        self._pending = None

    def flush(self) -> None:
        """Run the pending callback now instead of waiting for the tick."""
        self._timer.stop()
        self._run_pending()

    def _run_pending(self) -> None:
        callback = self._pending
        self._pending = None
        if callback is not None:
            callback()

    def _on_tick(self) -> None:
        # Exceptions escaping a Qt slot abort the process under PyQt6
        try:
            self._run_pending()
        except Exception as e:
            Log.error(f"FrameScheduler: tick callback failed: {e}", exc_info=True)
