"""
Time Scale

Converts between instants (internal format) and horizontal pixel offsets
(display format) within a viewport.

Design:
- Pure functions of the viewport (no side effects)
- Linear: forward and inverse are exact mirrors within float tolerance
- Clamps instead of dividing by zero when the viewport has no pixel width
"""

from datetime import datetime, timedelta

from ..types import Viewport

SECONDS_PER_DAY = 86400.0


class TimeScale:
    """
    Bidirectional linear mapping between instants and pixel offsets.

    forward(date) = (date - start) / (end - start) * pixel_width
    inverse(x)    = start + x / pixel_width * (end - start)
    """

    def __init__(self, viewport: Viewport):
        self._viewport = viewport
        self._span_seconds = viewport.span.total_seconds()
        self._width = float(viewport.pixel_width)

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def pixels_per_day(self) -> float:
        """Current density. Zero when the viewport has no width."""
        if self._span_seconds <= 0:
            return 0.0
        return self._width * SECONDS_PER_DAY / self._span_seconds

    def forward(self, date: datetime) -> float:
        """
        Convert an instant to a pixel offset from the viewport's left edge.

        Instants outside the window map outside [0, pixel_width].
        """
        if self._span_seconds <= 0:
            return 0.0
        offset = (date - self._viewport.start).total_seconds()
        return offset / self._span_seconds * self._width

    def inverse(self, x: float) -> datetime:
        """
        Convert a pixel offset to an instant.

        A zero-width viewport maps every offset to the window start.
        """
        if self._width <= 0:
            return self._viewport.start
        return self._viewport.start + self.pixels_to_timedelta(x)

    def pixels_to_timedelta(self, pixels: float) -> timedelta:
        """Length of time covered by a horizontal pixel distance."""
        if self._width <= 0:
            return timedelta(0)
        return timedelta(seconds=pixels / self._width * self._span_seconds)

    def timedelta_to_pixels(self, delta: timedelta) -> float:
        """Horizontal pixel distance covering a length of time."""
        if self._span_seconds <= 0:
            return 0.0
        return delta.total_seconds() / self._span_seconds * self._width

    def days_to_pixels(self, days: float) -> float:
        return self.timedelta_to_pixels(timedelta(days=days))

    def pixels_to_days(self, pixels: float) -> float:
        return self.pixels_to_timedelta(pixels).total_seconds() / SECONDS_PER_DAY
