"""
Step Mutation Worker

Runs StepSourceInterface.mutate(step_id, dates) in a background QThread so a
slow backing store never blocks pointer handling. Signals are delivered on
the thread that owns the receiver (the GUI thread for the coordinator).

mutate() may block or return an awaitable; awaitables are driven to
completion on a private event loop inside the worker.
"""
import asyncio
import inspect
from typing import Optional

from PyQt6.QtCore import QThread, pyqtSignal

from ..interfaces import StepSourceInterface
from ..types import StepDates
from ..utils.message import Log


async def _resolve(awaitable):
    return await awaitable


class StepMutationWorker(QThread):
    """
    Persists one step's new dates off the GUI thread.

    previous_dates is carried for the receiver (rollback bookkeeping) and is
    not used by the worker itself.
    """

    mutation_succeeded = pyqtSignal(str, object)         # step_id, result
    mutation_failed = pyqtSignal(str, object, object)    # step_id, dates, exception

    def __init__(
        self,
        source: StepSourceInterface,
        step_id: str,
        dates: StepDates,
        previous_dates: Optional[StepDates] = None,
        parent=None,
    ):
        super().__init__(parent)
        if not step_id:
            raise ValueError("step_id is required for StepMutationWorker")
        self.source = source
        self.step_id = step_id
        self.dates = dates
        self.previous_dates = previous_dates

    def run(self):
        try:
            Log.debug(f"StepMutationWorker: persisting '{self.step_id}'")
            result = self.source.mutate(self.step_id, self.dates)
            if inspect.isawaitable(result):
                result = asyncio.run(_resolve(result))
        except Exception as e:
            Log.debug(f"StepMutationWorker: mutate('{self.step_id}') raised {type(e).__name__}: {e}")
            self.mutation_failed.emit(self.step_id, self.dates, e)
            return

        self.mutation_succeeded.emit(self.step_id, result)
