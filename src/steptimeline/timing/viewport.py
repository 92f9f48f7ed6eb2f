"""
Viewport Controller

Derives the visible date window from a center instant, a zoom level and the
available pixel width, and generates adaptive axis markers for it.

Design:
- Works in days (the steps' natural unit); instants stay timezone-aware
- Zoom-adaptive marker density (months when zoomed out, days when zoomed in)
- Never builds a degenerate window
"""

import calendar
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

from ..constants import VIEWPORT_DENSITY
from ..types import Step, TimeMarker, Viewport
from .time_scale import TimeScale

# Performance limit on markers per axis
MAX_MARKERS = 500


def _months(anchor_day: int) -> Callable[[datetime], datetime]:
    """Calendar-month step that keeps the anchor day where the month allows it."""
    def advance(value: datetime) -> datetime:
        index = value.month  # zero-based index of the following month
        year, month = value.year + index // 12, index % 12 + 1
        day = min(anchor_day, calendar.monthrange(year, month)[1])
        return value.replace(year=year, month=month, day=day)
    return advance


def _days(count: int) -> Callable[[datetime], datetime]:
    def advance(value: datetime) -> datetime:
        return value + timedelta(days=count)
    return advance


class ViewportController:
    """
    Computes viewports and their time markers.

    Marker granularity follows the visible span:

        span > 365 days  -> monthly markers, major in January
        span > 90 days   -> weekly markers, major on the 1st of a month
        span > 30 days   -> 3-day markers, major on Mondays
        otherwise        -> daily markers, major on Mondays
    """

    def __init__(self, density: float = VIEWPORT_DENSITY):
        """
        Initialize viewport controller.

        Args:
            density: Pixels per day at zoom level 1 (the K constant)
        """
        if density <= 0:
            raise ValueError(f"Viewport density must be positive, got {density}")
        self.density = density

    def compute_window(self, center: datetime, zoom_level: float, width: float) -> Viewport:
        """
        Compute the visible window around a center instant.

        days_visible = width / (zoom_level * density), split evenly either side
        of the center and floored to whole days. At least one day is kept on
        each side so the window is never empty.

        Args:
            center: Instant at the middle of the window
            zoom_level: Current zoom level (> 0)
            width: Available pixel width

        Returns:
            Viewport covering [center - half, center + half]
        """
        if zoom_level <= 0:
            raise ValueError(f"Zoom level must be positive, got {zoom_level}")

        width = max(0.0, float(width))
        days_visible = width / (zoom_level * self.density)
        half = max(1, math.floor(days_visible / 2))

        return Viewport(
            start=center - timedelta(days=half),
            end=center + timedelta(days=half),
            pixel_width=width,
            zoom_level=zoom_level,
        )

    def generate_markers(self, viewport: Viewport) -> List[TimeMarker]:
        """
        Generate axis markers for a viewport, in ascending order.

        The walk starts at viewport.start itself (x = 0) and stops after
        viewport.end.
        """
        scale = TimeScale(viewport)
        current, advance, is_major, label_format = self._marker_plan(viewport)

        markers: List[TimeMarker] = []
        while current <= viewport.end and len(markers) < MAX_MARKERS:
            markers.append(TimeMarker(
                date=current,
                label=current.strftime(label_format),
                x=scale.forward(current),
                is_major=is_major(current),
            ))
            current = advance(current)
        return markers

    def _marker_plan(
        self, viewport: Viewport
    ) -> Tuple[datetime, Callable[[datetime], datetime], Callable[[datetime], bool], str]:
        """Pick (first marker, step, major predicate, label format) for the span."""
        span_days = viewport.span_days

        first = viewport.start
        if span_days > 365:
            return first, _months(first.day), lambda d: d.month == 1, "%b %Y"
        if span_days > 90:
            return first, _days(7), lambda d: d.day == 1, "%d %b"
        if span_days > 30:
            return first, _days(3), lambda d: d.weekday() == 0, "%d %b"
        return first, _days(1), lambda d: d.weekday() == 0, "%d %b"

    @staticmethod
    def is_visible(step: Step, viewport: Viewport) -> bool:
        """Whether any part of the step falls inside the window."""
        return step.end >= viewport.start and step.start <= viewport.end

    @staticmethod
    def today_position(viewport: Viewport, now: Optional[datetime] = None) -> Optional[float]:
        """
        X offset of the "today" indicator, or None when today is off-screen.

        Args:
            viewport: Current viewport
            now: Override for the current instant (defaults to UTC now)
        """
        if now is None:
            now = datetime.now(timezone.utc)
        if not viewport.contains(now):
            return None
        return TimeScale(viewport).forward(now)
