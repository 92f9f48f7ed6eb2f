"""
Timing System

Date/pixel mapping with instants as the single source of truth.
Pixel offsets are display coordinates derived from the current viewport.

Modules:
- TimeScale: Convert between instants and pixel offsets
- ViewportController: Compute the visible window and its axis markers
"""

from .time_scale import TimeScale
from .viewport import ViewportController

__all__ = [
    'TimeScale',
    'ViewportController',
]
