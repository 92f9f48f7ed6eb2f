"""
Timeline Layout

Track assignment and rect geometry.
"""

from .track_assigner import TrackAssigner, TrackCache, intervals_overlap

__all__ = [
    'TrackAssigner',
    'TrackCache',
    'intervals_overlap',
]
