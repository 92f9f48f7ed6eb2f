"""
Timeline Data Types
====================

Public data contracts for the timeline engine.

Consumers pass Steps in and receive Viewports, TimeMarkers and Rects back.
Edits leave the engine as StepDates payloads.

All types are dataclasses for easy serialization and comparison.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum, auto
from typing import Optional, Dict, Any, Union

from .errors import InvalidIntervalError, DegenerateViewportError


Instant = Union[datetime, str]


def parse_instant(value: Instant) -> datetime:
    """
    Parse an ISO-8601 string (or pass through a datetime).

    A trailing 'Z' is accepted. Naive values are read as UTC so that every
    instant the engine handles is timezone-aware.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise TypeError(f"Expected datetime or ISO-8601 string, got {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_instant(value: datetime) -> str:
    """Format an instant as ISO-8601 with a 'Z' suffix for UTC."""
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


# =============================================================================
# Input Types
# =============================================================================

@dataclass
class Step:
    """
    A time-ranged item placed on the timeline.

    Steps are owned by the external Steps collaborator. The engine only reads
    them and requests edits; display attributes are carried through untouched.

    Attributes:
        id: Unique identifier
        start: Start instant (timezone-aware)
        end: End instant, strictly after start
        title: Display title
        description: Optional display description
        background_color: Optional fill color (hex string)
        text_color: Optional label color (hex string)
        user_data: Custom application metadata (pass-through)

    Example:
        step = Step.from_dict({
            "id": "step-1",
            "startDate": "2024-01-01T00:00:00Z",
            "endDate": "2024-01-10T00:00:00Z",
            "title": "Design",
        })
    """
    id: str
    start: datetime
    end: datetime
    title: str = ""
    description: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    user_data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Normalize instants and validate the range."""
        self.start = parse_instant(self.start)
        self.end = parse_instant(self.end)
        if self.end <= self.start:
            raise InvalidIntervalError(self.id, self.start, self.end)

    @property
    def duration(self) -> timedelta:
        """Length of the step. Always positive."""
        return self.end - self.start

    def with_dates(self, dates: 'StepDates') -> 'Step':
        """Return a copy of this step moved to the given dates."""
        return replace(self, start=dates.start, end=dates.end)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        result = {
            'id': self.id,
            'startDate': format_instant(self.start),
            'endDate': format_instant(self.end),
            'title': self.title,
        }
        if self.description is not None:
            result['description'] = self.description
        if self.background_color is not None:
            result['backgroundColor'] = self.background_color
        if self.text_color is not None:
            result['textColor'] = self.text_color
        if self.user_data:
            result['user_data'] = self.user_data.copy()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Step':
        """
        Create from a collaborator payload.

        Accepts both the camelCase keys of the Steps API ('startDate',
        'endDate', 'backgroundColor', 'textColor') and plain 'start'/'end'.
        """
        start = data.get('startDate', data.get('start'))
        end = data.get('endDate', data.get('end'))
        if start is None or end is None:
            raise KeyError(f"Step payload '{data.get('id')}' is missing start or end")

        return cls(
            id=str(data['id']),
            start=parse_instant(start),
            end=parse_instant(end),
            title=data.get('title', ''),
            description=data.get('description'),
            background_color=data.get('backgroundColor', data.get('background_color')),
            text_color=data.get('textColor', data.get('text_color')),
            user_data=dict(data.get('user_data', {})),
        )


@dataclass
class StepDates:
    """New start/end for a step, as sent to the mutation collaborator."""
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def to_dict(self) -> Dict[str, str]:
        return {
            'startDate': format_instant(self.start),
            'endDate': format_instant(self.end),
        }


# =============================================================================
# Output Types
# =============================================================================

@dataclass
class Viewport:
    """
    The visible date window and its pixel geometry.

    A window with start >= end is a programming error and raises
    DegenerateViewportError. A negative pixel width is clamped to zero;
    TimeScale copes with zero width by clamping.
    """
    start: datetime
    end: datetime
    pixel_width: float
    zoom_level: float

    def __post_init__(self):
        if self.start >= self.end:
            raise DegenerateViewportError(self.start, self.end)
        if self.pixel_width < 0:
            self.pixel_width = 0.0

    @property
    def span(self) -> timedelta:
        return self.end - self.start

    @property
    def span_days(self) -> float:
        return self.span.total_seconds() / 86400.0

    @property
    def center(self) -> datetime:
        return self.start + self.span / 2

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass
class Rect:
    """Pixel geometry of a laid-out step."""
    left: float
    width: float
    top: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width


@dataclass
class TimeMarker:
    """One tick on the time axis."""
    date: datetime
    label: str
    x: float
    is_major: bool = False


# =============================================================================
# State Types
# =============================================================================

class EditHandle(Enum):
    """Which part of a step is being edited."""
    NONE = auto()
    MOVE = auto()
    RESIZE_LEFT = auto()
    RESIZE_RIGHT = auto()


class InteractionMode(Enum):
    """The single pointer interaction allowed at any instant."""
    IDLE = auto()
    PANNING = auto()
    DRAGGING = auto()
    RESIZING_LEFT = auto()
    RESIZING_RIGHT = auto()
    SELECTING = auto()
