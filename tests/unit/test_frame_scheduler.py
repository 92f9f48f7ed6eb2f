"""
Unit tests for FrameScheduler.

Verifies that callbacks scheduled between ticks collapse to the latest one,
and that flush/cancel behave without waiting for the timer.
"""
import pytest
from unittest.mock import MagicMock

from PyQt6.QtCore import QElapsedTimer

from steptimeline.interaction import FrameScheduler


def wait_for_tick(qapp, scheduler, timeout_ms=1000):
    """Spin the event loop until the scheduler has nothing pending."""
    timer = QElapsedTimer()
    timer.start()
    while scheduler.has_pending and timer.elapsed() < timeout_ms:
        qapp.processEvents()


class TestFrameScheduler:
    """Tests for tick coalescing."""

    def test_latest_callback_wins(self, qapp):
        """Only the last of several schedule() calls runs."""
        scheduler = FrameScheduler(interval_ms=0)
        calls = []
        scheduler.schedule(lambda: calls.append(1))
        scheduler.schedule(lambda: calls.append(2))
        scheduler.schedule(lambda: calls.append(3))

        wait_for_tick(qapp, scheduler)

        assert calls == [3]
        assert not scheduler.has_pending

    def test_flush_runs_pending_now(self, qapp):
        scheduler = FrameScheduler()
        callback = MagicMock()
        scheduler.schedule(callback)

        scheduler.flush()

        callback.assert_called_once_with()
        assert not scheduler.has_pending

    def test_flush_without_pending_is_noop(self, qapp):
        FrameScheduler().flush()

    def test_cancel_drops_pending(self, qapp):
        scheduler = FrameScheduler(interval_ms=0)
        callback = MagicMock()
        scheduler.schedule(callback)

        scheduler.cancel()
        qapp.processEvents()
        scheduler.flush()

        callback.assert_not_called()

    def test_flush_propagates_callback_errors(self, qapp):
        """Errors surface to the caller of flush()."""
        scheduler = FrameScheduler()
        scheduler.schedule(MagicMock(side_effect=RuntimeError("boom")))
        with pytest.raises(RuntimeError):
            scheduler.flush()

    def test_tick_errors_are_logged_not_raised(self, qapp):
        """A failing callback on a timer tick does not escape the event loop."""
        scheduler = FrameScheduler(interval_ms=0)
        failing = MagicMock(side_effect=RuntimeError("boom"))
        scheduler.schedule(failing)

        wait_for_tick(qapp, scheduler)

        failing.assert_called_once_with()
        assert not scheduler.has_pending

    def test_interval(self, qapp):
        assert FrameScheduler(interval_ms=16).interval_ms == 16
