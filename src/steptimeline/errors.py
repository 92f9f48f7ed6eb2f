"""
Timeline Errors

Exception taxonomy for the timeline engine.

Pure geometry clamps wherever a safe default exists; these exceptions are
reserved for documented precondition violations and for persistence failures
reported back from the Steps collaborator.
"""
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .types import StepDates


class TimelineError(Exception):
    """Base exception for timeline engine errors."""
    pass


class InvalidIntervalError(TimelineError, ValueError):
    """Raised when a step's end is not after its start."""

    def __init__(self, step_id: str, start, end):
        self.step_id = step_id
        self.start = start
        self.end = end
        super().__init__(
            f"Step '{step_id}' has end {end} not after start {start}"
        )


class DegenerateViewportError(TimelineError, ValueError):
    """Raised when a viewport would be built with start >= end."""

    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"Viewport start {start} must be before end {end}")


class PersistenceFailure(TimelineError):
    """
    Raised (or reported) when the Steps collaborator rejects a mutation.

    Not retried by the engine: retry policy belongs to the collaborator.
    """

    def __init__(self, step_id: str, dates: 'StepDates', cause: Optional[BaseException] = None):
        self.step_id = step_id
        self.dates = dates
        self.cause = cause
        message = f"Failed to persist step '{step_id}'"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
