"""
Unit tests for TimelineEngine.

Drives whole interactions through a fake pointer host, as a host widget
would: press via start_*, then moves and release via the global listeners.

Setup: center Jan 16 2024, width 1200, zoom 1 -> 10 px per day,
window Nov 17 2023 .. Mar 16 2024.
"""
import threading
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import MagicMock
from PyQt6 import sip

from steptimeline import TimelineEngine, TimelineSettings, Step, StepDates, EditHandle, InteractionMode


def utc(year, month, day):
    return datetime(year, month, day, tzinfo=timezone.utc)


CENTER = utc(2024, 1, 16)


@pytest.fixture
def source():
    source = MagicMock()
    source.get_steps.return_value = [
        Step("a", utc(2024, 1, 1), utc(2024, 1, 5)),
        Step("b", utc(2024, 1, 3), utc(2024, 1, 8)),
        Step("far", utc(2026, 1, 1), utc(2026, 2, 1)),
    ]
    source.mutate.side_effect = lambda step_id, dates: Step(step_id, dates.start, dates.end)
    return source


@pytest.fixture
def engine(qapp, source, pointer_host, scheduler):
    engine = TimelineEngine(
        source,
        pointer_host=pointer_host,
        settings=TimelineSettings(),
        center=CENTER,
        scheduler=scheduler,
    )
    yield engine
    engine.teardown()


class TestView:
    """Tests for the pure view computations."""

    def test_viewport(self, engine):
        vp = engine.viewport()
        assert vp.start == CENTER - timedelta(days=60)
        assert vp.end == CENTER + timedelta(days=60)
        assert vp.pixel_width == 1200

    def test_layout_covers_visible_steps_only(self, engine):
        rects = engine.layout()
        assert set(rects) == {"a", "b"}
        assert rects["a"].left == pytest.approx(450.0)
        assert rects["a"].top != rects["b"].top

    def test_markers(self, engine):
        markers = engine.generate_markers()
        assert markers
        assert all(0 <= m.x <= 1200 + 1e-6 for m in markers)

    def test_today_position(self, engine):
        assert engine.today_position(CENTER) == pytest.approx(600.0)
        assert engine.today_position(utc(2030, 1, 1)) is None

    def test_set_width_emits_view_changed(self, engine):
        listener = MagicMock()
        engine.view_changed.connect(listener)

        engine.set_width(600)
        engine.set_width(600)

        listener.assert_called_once_with()
        assert engine.viewport().span == timedelta(days=60)

    def test_set_steps_replaces_local_list(self, engine):
        engine.set_steps([Step("z", utc(2024, 1, 10), utc(2024, 1, 12))])
        assert set(engine.layout()) == {"z"}


class TestNavigation:
    """Tests for zoom and programmatic pan."""

    def test_zoom_changes_window(self, engine):
        listener = MagicMock()
        engine.view_changed.connect(listener)

        engine.set_zoom(4.0)

        assert engine.viewport().span == timedelta(days=30)
        listener.assert_called_once_with()

    def test_zoom_steps_and_reset(self, engine):
        engine.zoom_in()
        assert engine.zoom.level == pytest.approx(1.1)
        engine.zoom_out()
        engine.apply_wheel(-120)
        assert engine.zoom.level == pytest.approx(0.9)
        engine.reset_zoom()
        assert engine.zoom.level == 1.0

    def test_pan_by_days(self, engine):
        engine.pan_by_days(10)
        assert engine.viewport().center == CENTER + timedelta(days=10)

    def test_pan_to_date(self, engine):
        engine.pan_to_date(utc(2025, 5, 1))
        assert engine.pan.center == utc(2025, 5, 1)


class TestPanInteraction:
    """Tests for drag-to-pan through the pointer host."""

    def test_pan_through_pointer_host(self, engine, pointer_host):
        assert engine.start_pan(100)
        assert len(pointer_host.listeners) == 1

        pointer_host.move(130)
        pointer_host.release(130)

        assert engine.pan.center == CENTER - timedelta(days=2)
        assert engine.active_mode == InteractionMode.IDLE
        assert pointer_host.listeners == {}

    def test_explicit_pan_api(self, engine, pointer_host):
        engine.start_pan(0)
        engine.move_pan(-30)
        engine.end_pan()

        assert engine.pan.center == CENTER + timedelta(days=2)
        assert pointer_host.listeners == {}


class TestEditInteraction:
    """Tests for drag and resize through the engine."""

    def test_drag_commits_and_persists(self, engine, pointer_host, source):
        assert engine.start_drag("a", 500)
        pointer_host.move(550)
        pointer_host.release(550)

        step = engine.sync.get_step("a")
        assert (step.start, step.end) == (utc(2024, 1, 6), utc(2024, 1, 10))
        assert pointer_host.listeners == {}

        assert engine.sync.wait_for_idle()
        source.mutate.assert_called_once_with("a", StepDates(utc(2024, 1, 6), utc(2024, 1, 10)))

    def test_resize_right(self, engine, pointer_host):
        engine.start_resize("b", 0, EditHandle.RESIZE_RIGHT)
        pointer_host.release(20)

        step = engine.sync.get_step("b")
        assert (step.start, step.end) == (utc(2024, 1, 3), utc(2024, 1, 10))
        engine.sync.wait_for_idle()

    def test_commit_invalidates_layout_cache(self, engine, pointer_host):
        engine.layout()
        assert len(engine.cache) > 0

        engine.start_drag("a", 0)
        pointer_host.release(10)

        assert len(engine.cache) == 0
        engine.sync.wait_for_idle()

    def test_cancel_commits_nothing(self, engine, pointer_host, source):
        engine.start_drag("a", 500)
        pointer_host.move(600)
        pointer_host.cancel()

        step = engine.sync.get_step("a")
        assert step.start == utc(2024, 1, 1)
        assert pointer_host.listeners == {}
        assert engine.active_mode == InteractionMode.IDLE
        source.mutate.assert_not_called()

    def test_offscreen_step_cannot_be_grabbed(self, engine, pointer_host):
        assert not engine.start_drag("far", 0)
        assert not engine.start_drag("missing", 0)
        assert pointer_host.listeners == {}


class TestExclusivity:
    """Only one interaction may run at a time."""

    def test_second_interaction_refused(self, engine, pointer_host):
        assert engine.start_drag("a", 500)

        assert not engine.start_pan(100)
        assert not engine.start_resize("b", 0, EditHandle.RESIZE_LEFT)
        assert not engine.start_selection(10)

        assert engine.active_mode == InteractionMode.DRAGGING
        assert len(pointer_host.listeners) == 1

    def test_new_interaction_allowed_while_persisting(self, engine, pointer_host):
        engine.start_drag("a", 0)
        pointer_host.release(10)

        assert engine.start_pan(0)
        engine.cancel_interaction()
        engine.sync.wait_for_idle()


class TestSelection:
    """Tests for range selection through the engine."""

    def test_selection_requests_create(self, engine, pointer_host):
        requested = []
        engine.selection.create_requested.connect(lambda start, end: requested.append((start, end)))

        engine.start_selection(600)
        pointer_host.move(650)
        pointer_host.release(700)

        assert requested == [(CENTER, CENTER + timedelta(days=10))]
        assert pointer_host.listeners == {}


class TestTeardown:
    """Tests for releasing resources."""

    def test_teardown_releases_everything(self, engine, pointer_host, scheduler):
        engine.start_drag("a", 0)
        pointer_host.move(40)

        engine.teardown()

        assert pointer_host.listeners == {}
        assert scheduler.pending is None
        assert engine.sync.is_closed
        assert not engine.start_pan(0)

    def test_teardown_is_idempotent(self, engine):
        engine.teardown()
        engine.teardown()

    def test_teardown_with_slow_persistence_then_delete(self, qapp, source, pointer_host, scheduler):
        """Deleting the engine after teardown is safe while mutate() is still running."""
        gate = threading.Event()
        source.mutate.side_effect = lambda step_id, dates: gate.wait(5)
        engine = TimelineEngine(
            source,
            pointer_host=pointer_host,
            settings=TimelineSettings(shutdown_timeout_ms=10),
            center=CENTER,
            scheduler=scheduler,
        )
        engine.start_drag("a", 0)
        pointer_host.release(10)
        worker = engine.sync.active_workers[0]

        engine.teardown()
        sip.delete(engine)

        gate.set()
        assert worker.wait(5000)
        qapp.processEvents()
