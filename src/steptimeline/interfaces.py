"""
Timeline Interfaces

Protocol definitions for timeline integration points.
These allow the engine to work with any Steps backend, error reporting path,
pointer event source and render-tick scheduler.

Note: state changes inside the engine are announced via Qt signals
(center_changed, preview_changed, sync_failed, etc.) rather than callback
interfaces, following Qt conventions.
"""

from typing import Protocol, List, Callable, Any, Hashable, runtime_checkable

from .types import Step, StepDates
from .errors import PersistenceFailure


@runtime_checkable
class StepSourceInterface(Protocol):
    """
    Protocol for the Steps collaborator.

    Implement this to connect the timeline to your backing store.
    """

    def get_steps(self) -> List[Step]:
        """
        Get all steps.

        Returns:
            Steps in any order; instants already parsed (see Step.from_dict)
        """
        ...

    def mutate(self, step_id: str, dates: StepDates) -> Any:
        """
        Persist new dates for a step.

        Called off the GUI thread. May block, or return an awaitable which
        the worker runs to completion.

        Args:
            step_id: Step to update
            dates: New start/end

        Returns:
            The updated step (ignored by the engine)

        Raises:
            Any exception to signal a rejected mutation
        """
        ...


@runtime_checkable
class ErrorReporterInterface(Protocol):
    """Protocol for the host's error-reporting path (toasts, dialogs, logs)."""

    def report_error(self, error: PersistenceFailure) -> None:
        """
        Surface a persistence failure to the user.

        Args:
            error: The failure, carrying step_id, dates and cause
        """
        ...


@runtime_checkable
class PointerHostInterface(Protocol):
    """
    Protocol for global pointer listeners.

    The engine registers listeners when an interaction starts and removes them
    when it ends, is cancelled, or the host tears down.
    """

    def add_pointer_listener(
        self,
        on_move: Callable[[float], None],
        on_release: Callable[[float], None],
        on_cancel: Callable[[], None],
    ) -> Hashable:
        """
        Register global pointer-move / pointer-up / abort listeners.

        Args:
            on_move: Called with the pointer x on every move
            on_release: Called with the pointer x on button release
            on_cancel: Called when the interaction is aborted (focus loss)

        Returns:
            Opaque token for remove_pointer_listener()
        """
        ...

    def remove_pointer_listener(self, token: Hashable) -> None:
        """Remove listeners registered under token. Unknown tokens are ignored."""
        ...


@runtime_checkable
class FrameSchedulerInterface(Protocol):
    """Protocol for "run on next render tick" scheduling with coalescing."""

    def schedule(self, callback: Callable[[], None]) -> None:
        """Run callback on the next tick, replacing any callback still pending."""
        ...

    def cancel(self) -> None:
        """Drop the pending callback, if any."""
        ...

    def flush(self) -> None:
        """Run the pending callback now, if any."""
        ...
