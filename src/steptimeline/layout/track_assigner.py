"""
Track Assigner
==============

Stacks steps into vertical tracks so that no two steps sharing a track
overlap in time.

This is the single source of truth for:
- Step -> track assignment (memoized in a TrackCache)
- Track -> Y-coordinate mapping
- Step -> Rect geometry for the current viewport

Assignment is greedy lowest-free-track in start order, which is optimal for
interval graphs when computed from scratch. Cached assignments are reused
as-is until the cache owner invalidates it, so tracks stay stable while the
user pans and zooms.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from ..constants import MIN_ITEM_WIDTH, ITEM_HEIGHT, TRACK_SPACING, PADDING_TOP
from ..errors import InvalidIntervalError
from ..types import Rect, Step, Viewport
from ..timing.time_scale import TimeScale
from ..utils.message import Log


class TrackCache:
    """
    Memoized step -> track mapping, shared across layout passes.

    Owned by the layout's owner and passed into compute_layout() by reference.
    Cleared in full by invalidate(): one changed step can alter the
    collision-free packing of every other step.
    """

    def __init__(self):
        self._tracks: Dict[str, int] = {}
        self._generation = 0

    def get(self, step_id: str) -> Optional[int]:
        return self._tracks.get(step_id)

    def set(self, step_id: str, track: int) -> None:
        if track < 0:
            raise ValueError(f"Track index must be >= 0, got {track}")
        self._tracks[step_id] = track

    def invalidate(self) -> None:
        """Forget every assignment."""
        if self._tracks:
            Log.debug(f"TrackCache: invalidated {len(self._tracks)} assignments")
        self._tracks.clear()
        self._generation += 1

    @property
    def generation(self) -> int:
        """Incremented on every invalidate(). Useful for render caching."""
        return self._generation

    def as_dict(self) -> Dict[str, int]:
        return dict(self._tracks)

    def __len__(self) -> int:
        return len(self._tracks)

    def __contains__(self, step_id: str) -> bool:
        return step_id in self._tracks


def intervals_overlap(a: Step, b: Step) -> bool:
    """
    Pairwise overlap test.

    Touching endpoints count as overlapping, so steps that share a boundary
    instant never share a track.
    """
    return not (a.end < b.start or b.end < a.start)


class TrackAssigner:
    """
    Computes track assignments and rects for a set of steps.

    Geometry:
        left   = forward(start)
        width  = max(forward(end) - forward(start), min_width)
        top    = padding_top + track * (item_height + track_spacing)
        height = item_height

    Known limitation: the min_width floor can make two short, time-disjoint
    steps on the same track touch or overlap in pixel space.
    """

    def __init__(
        self,
        min_width: float = MIN_ITEM_WIDTH,
        item_height: float = ITEM_HEIGHT,
        track_spacing: float = TRACK_SPACING,
        padding_top: float = PADDING_TOP,
    ):
        self.min_width = min_width
        self.item_height = item_height
        self.track_spacing = track_spacing
        self.padding_top = padding_top
        self._track_count = 0

    @property
    def track_count(self) -> int:
        """Number of tracks used by the last layout pass."""
        return self._track_count

    @property
    def content_height(self) -> float:
        """Pixel height needed to show every track of the last pass."""
        if self._track_count == 0:
            return float(self.padding_top)
        return self.track_top(self._track_count - 1) + self.item_height + self.track_spacing

    def track_top(self, track: int) -> float:
        """Y coordinate of a track's top edge."""
        return self.padding_top + track * (self.item_height + self.track_spacing)

    def assign_tracks(self, steps: Iterable[Step], cache: TrackCache) -> Dict[str, int]:
        """
        Assign every step to a track, reusing cached assignments.

        Args:
            steps: Steps to place (end > start required)
            cache: Assignment cache, read and updated in place

        Returns:
            step_id -> track index

        Raises:
            InvalidIntervalError: if a step's end is not after its start
        """
        ordered = sorted(steps, key=lambda s: (s.start, s.id))
        tracks: List[List[Step]] = []
        assignment: Dict[str, int] = {}
        fresh: List[Step] = []

        # Cached steps are placed first so that new steps pack around them
        for step in ordered:
            if step.end <= step.start:
                raise InvalidIntervalError(step.id, step.start, step.end)

            track = cache.get(step.id)
            if track is None:
                fresh.append(step)
                continue
            self._place(tracks, step, track)
            assignment[step.id] = track

        for step in fresh:
            track = self._first_free_track(tracks, step)
            cache.set(step.id, track)
            self._place(tracks, step, track)
            assignment[step.id] = track

        self._track_count = len(tracks)
        return assignment

    def compute_layout(
        self,
        steps: Iterable[Step],
        viewport: Viewport,
        cache: TrackCache,
        visible_only: bool = False,
    ) -> Dict[str, Rect]:
        """
        Lay out steps for a viewport.

        Args:
            steps: Steps to place
            viewport: Current viewport
            cache: Assignment cache owned by the caller
            visible_only: Assign tracks over every step but only return rects
                for steps intersecting the viewport. Keeps tracks stable while
                panning brings new steps into view.

        Returns:
            step_id -> Rect
        """
        steps = list(steps)
        assignment = self.assign_tracks(steps, cache)
        scale = TimeScale(viewport)

        rects: Dict[str, Rect] = {}
        for step in steps:
            if visible_only and (step.end < viewport.start or step.start > viewport.end):
                continue
            rects[step.id] = self.rect_for(step, assignment[step.id], scale)
        return rects

    def rect_for(self, step: Step, track: int, scale: TimeScale) -> Rect:
        left, right = self._horizontal_extent(step, scale)
        return Rect(
            left=left,
            width=max(right - left, self.min_width),
            top=self.track_top(track),
            height=self.item_height,
        )

    @staticmethod
    def _horizontal_extent(step: Step, scale: TimeScale) -> Tuple[float, float]:
        return scale.forward(step.start), scale.forward(step.end)

    @staticmethod
    def _place(tracks: List[List[Step]], step: Step, track: int) -> None:
        while len(tracks) <= track:
            tracks.append([])
        tracks[track].append(step)

    @staticmethod
    def _first_free_track(tracks: List[List[Step]], step: Step) -> int:
        """Index of the first track with no member overlapping step."""
        for index, members in enumerate(tracks):
            if not any(intervals_overlap(step, other) for other in members):
                return index
        return len(tracks)
