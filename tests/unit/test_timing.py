"""
Unit tests for TimeScale and ViewportController.

Covers the date <-> pixel mapping, window computation from center/zoom/width,
zoom-adaptive axis markers, visibility and the today indicator.
"""
from datetime import datetime, timedelta, timezone

import pytest

from steptimeline.errors import DegenerateViewportError
from steptimeline.timing import TimeScale, ViewportController
from steptimeline.types import Step, Viewport


def utc(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def controller():
    return ViewportController(density=10)


@pytest.fixture
def viewport():
    """120-day window, 10 px per day."""
    return Viewport(start=utc(2024, 1, 1), end=utc(2024, 4, 30), pixel_width=1200, zoom_level=1.0)


class TestTimeScale:
    """Tests for the linear date/pixel mapping."""

    def test_window_edges_map_to_zero_and_width(self, viewport):
        """Viewport start maps to 0 and end to pixel_width."""
        scale = TimeScale(viewport)
        assert scale.forward(viewport.start) == 0.0
        assert scale.forward(viewport.end) == pytest.approx(1200.0)

    def test_forward_inverse_round_trip(self, viewport):
        """forward(inverse(x)) returns x across the width."""
        scale = TimeScale(viewport)
        for x in (0.0, 0.5, 17.25, 600.0, 1199.9, 1200.0):
            assert scale.forward(scale.inverse(x)) == pytest.approx(x, abs=1e-6)

    def test_pixels_per_day(self, viewport):
        """A 120-day window across 1200 px gives 10 px per day."""
        scale = TimeScale(viewport)
        assert scale.pixels_per_day == pytest.approx(10.0)
        assert scale.days_to_pixels(5) == pytest.approx(50.0)
        assert scale.pixels_to_days(50) == pytest.approx(5.0)

    def test_instants_outside_window_map_outside_width(self, viewport):
        """Dates before the window are negative, after it beyond the width."""
        scale = TimeScale(viewport)
        assert scale.forward(utc(2023, 12, 22)) == pytest.approx(-100.0)
        assert scale.forward(utc(2024, 5, 10)) == pytest.approx(1300.0)

    def test_zero_width_viewport_clamps(self):
        """A zero-width viewport maps every instant to 0 and every x to start."""
        vp = Viewport(start=utc(2024, 1, 1), end=utc(2024, 2, 1), pixel_width=0, zoom_level=1.0)
        scale = TimeScale(vp)
        assert scale.forward(utc(2024, 1, 15)) == 0.0
        assert scale.inverse(250.0) == vp.start
        assert scale.pixels_per_day == 0.0

    def test_negative_width_is_clamped_to_zero(self):
        """Viewport clamps a negative pixel width."""
        vp = Viewport(start=utc(2024, 1, 1), end=utc(2024, 2, 1), pixel_width=-20, zoom_level=1.0)
        assert vp.pixel_width == 0.0

    def test_degenerate_viewport_raises(self):
        """start >= end is rejected."""
        with pytest.raises(DegenerateViewportError):
            Viewport(start=utc(2024, 1, 1), end=utc(2024, 1, 1), pixel_width=100, zoom_level=1.0)


class TestComputeWindow:
    """Tests for ViewportController.compute_window()."""

    def test_default_zoom_shows_sixty_days_each_side(self, controller):
        """width 1200, zoom 1, density 10 -> [center - 60d, center + 60d]."""
        center = utc(2024, 6, 15)
        vp = controller.compute_window(center, 1.0, 1200)
        assert vp.start == center - timedelta(days=60)
        assert vp.end == center + timedelta(days=60)
        assert vp.pixel_width == 1200
        assert vp.zoom_level == 1.0

    def test_max_zoom_narrows_window(self, controller):
        """zoom 4 -> 30 visible days."""
        center = utc(2024, 6, 15)
        vp = controller.compute_window(center, 4.0, 1200)
        assert vp.span == timedelta(days=30)

    def test_half_window_is_floored(self, controller):
        """days_visible / 2 is floored to whole days."""
        vp = controller.compute_window(utc(2024, 6, 15), 0.7, 1200)
        # 1200 / 7 = 171.4 days visible -> 85 each side
        assert vp.span == timedelta(days=170)

    def test_tiny_width_keeps_one_day_each_side(self, controller):
        """The window never collapses."""
        center = utc(2024, 6, 15)
        vp = controller.compute_window(center, 4.0, 5)
        assert vp.start == center - timedelta(days=1)
        assert vp.end == center + timedelta(days=1)

    def test_zero_width_still_valid(self, controller):
        """A zero width produces a valid (non-degenerate) window."""
        vp = controller.compute_window(utc(2024, 6, 15), 1.0, 0)
        assert vp.start < vp.end
        assert vp.pixel_width == 0.0

    def test_non_positive_zoom_raises(self, controller):
        with pytest.raises(ValueError):
            controller.compute_window(utc(2024, 6, 15), 0, 1200)

    def test_invalid_density_raises(self):
        with pytest.raises(ValueError):
            ViewportController(density=0)


class TestGenerateMarkers:
    """Tests for zoom-adaptive marker generation."""

    def test_year_span_uses_monthly_markers(self, controller):
        """Spans over a year get one marker per month, major in January."""
        vp = controller.compute_window(utc(2024, 6, 15), 0.3, 1200)
        assert vp.start == utc(2023, 11, 28)
        assert vp.end == utc(2025, 1, 1)

        markers = controller.generate_markers(vp)

        assert markers[0].date == utc(2023, 11, 28)
        assert markers[-1].date == utc(2024, 12, 28)
        assert len(markers) == 14
        assert [m.date for m in markers if m.is_major] == [utc(2024, 1, 28)]
        assert markers[2].label == "Jan 2024"

    def test_monthly_markers_clamp_to_short_months(self, controller):
        """A window starting on the 31st keeps that day where the month has it."""
        vp = Viewport(start=utc(2024, 1, 31), end=utc(2025, 3, 1), pixel_width=1200, zoom_level=0.3)
        dates = [m.date for m in controller.generate_markers(vp)]

        assert dates[:4] == [utc(2024, 1, 31), utc(2024, 2, 29), utc(2024, 3, 31), utc(2024, 4, 30)]
        assert dates[-1] == utc(2025, 2, 28)

    def test_quarter_span_uses_weekly_markers(self, controller):
        """Spans over 90 days get weekly markers."""
        vp = controller.compute_window(utc(2024, 6, 15), 1.0, 1200)
        markers = controller.generate_markers(vp)

        assert markers[0].date == utc(2024, 4, 16)
        assert markers[0].label == "16 Apr"
        gaps = {b.date - a.date for a, b in zip(markers, markers[1:])}
        assert gaps == {timedelta(days=7)}
        assert len(markers) == 18
        for marker in markers:
            assert marker.is_major == (marker.date.day == 1)

    def test_weekly_major_only_on_first_of_month(self, controller):
        """Weekly markers are major only when they land on the 1st."""
        vp = Viewport(start=utc(2024, 1, 3), end=utc(2024, 5, 3), pixel_width=1200, zoom_level=1.0)
        markers = controller.generate_markers(vp)

        assert markers[0].date == utc(2024, 1, 3)
        assert [m.date for m in markers if m.is_major] == [utc(2024, 5, 1)]

    def test_month_span_uses_three_day_markers(self, controller):
        """Spans between 30 and 90 days get a marker every 3 days."""
        vp = controller.compute_window(utc(2024, 6, 15), 2.0, 1200)
        markers = controller.generate_markers(vp)

        gaps = {b.date - a.date for a, b in zip(markers, markers[1:])}
        assert gaps == {timedelta(days=3)}
        for marker in markers:
            assert marker.is_major == (marker.date.weekday() == 0)

    def test_short_span_uses_daily_markers(self, controller):
        """Spans of 30 days or less get daily markers, major on Mondays."""
        vp = controller.compute_window(utc(2024, 6, 15), 4.0, 1200)
        markers = controller.generate_markers(vp)

        assert len(markers) == 31
        assert markers[0].date == utc(2024, 5, 31)
        assert markers[-1].date == utc(2024, 6, 30)
        majors = [m.date for m in markers if m.is_major]
        assert majors == [utc(2024, 6, 3), utc(2024, 6, 10), utc(2024, 6, 17), utc(2024, 6, 24)]

    def test_markers_start_at_window_start(self, controller):
        """A window starting mid-day puts its first marker at x = 0."""
        vp = Viewport(start=utc(2024, 3, 1, 12), end=utc(2024, 3, 11, 12), pixel_width=1000, zoom_level=1.0)
        markers = controller.generate_markers(vp)

        assert markers[0].date == utc(2024, 3, 1, 12)
        assert markers[0].x == pytest.approx(0.0)
        assert markers[-1].date == utc(2024, 3, 11, 12)
        assert markers[-1].x == pytest.approx(1000.0)
        assert len(markers) == 11
        assert [m.date for m in markers if m.is_major] == [utc(2024, 3, 4, 12), utc(2024, 3, 11, 12)]

    def test_marker_x_matches_time_scale(self, controller):
        """Marker x is the forward mapping of its date, ascending."""
        vp = controller.compute_window(utc(2024, 6, 15), 1.0, 1200)
        scale = TimeScale(vp)
        markers = controller.generate_markers(vp)

        xs = [m.x for m in markers]
        assert xs == sorted(xs)
        for marker in markers:
            assert marker.x == pytest.approx(scale.forward(marker.date))
            assert 0 <= marker.x <= 1200 + 1e-6


class TestVisibility:
    """Tests for is_visible() and today_position()."""

    def test_is_visible(self, viewport):
        """Any intersection with the window counts as visible."""
        inside = Step("a", utc(2024, 2, 1), utc(2024, 2, 5))
        straddling = Step("b", utc(2023, 12, 1), utc(2024, 1, 2))
        before = Step("c", utc(2023, 11, 1), utc(2023, 11, 5))
        after = Step("d", utc(2024, 6, 1), utc(2024, 6, 5))

        assert ViewportController.is_visible(inside, viewport)
        assert ViewportController.is_visible(straddling, viewport)
        assert not ViewportController.is_visible(before, viewport)
        assert not ViewportController.is_visible(after, viewport)

    def test_today_position_inside_window(self, viewport):
        now = utc(2024, 1, 11)
        assert ViewportController.today_position(viewport, now) == pytest.approx(100.0)

    def test_today_position_outside_window(self, viewport):
        assert ViewportController.today_position(viewport, utc(2025, 1, 1)) is None
