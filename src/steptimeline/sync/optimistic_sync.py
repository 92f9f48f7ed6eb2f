"""
Optimistic Sync Coordinator
============================

Owns the local step list and applies committed edits to it immediately,
persisting them in the background.

Flow for commit(step_id, dates):
1. Replace the step in the local list (the next layout shows it at once)
2. Invalidate the whole track cache (one move can repack every track)
3. Start a StepMutationWorker that calls mutate() off the GUI thread

On failure the error is logged, emitted as sync_failed and handed to the
error reporter. The optimistic value is kept unless rollback_on_failure is
set, in which case the previous dates come back provided no newer local edit
has replaced the failed one.
"""

from functools import partial
from typing import Dict, Iterable, List, Optional, Set

from PyQt6.QtCore import QObject, QCoreApplication, Qt, pyqtSignal

from ..constants import SHUTDOWN_TIMEOUT_MS
from ..errors import PersistenceFailure
from ..interfaces import ErrorReporterInterface, StepSourceInterface
from ..layout.track_assigner import TrackCache
from ..types import Step, StepDates
from ..utils.message import Log
from .worker import StepMutationWorker

# Workers still running when their coordinator shut down. Held here, without a
# Qt parent, so destroying the coordinator never destroys a live QThread.
_detached_workers: Set[StepMutationWorker] = set()


def _release_detached(worker: StepMutationWorker) -> None:
    if worker not in _detached_workers:
        return
    worker.wait()
    _detached_workers.discard(worker)
    worker.deleteLater()


class OptimisticSyncCoordinator(QObject):
    """
    Local-first edit persistence.

    Signals:
        steps_changed(): The local step list changed (commit, rollback, refetch)
        sync_succeeded(str, object): mutate() returned for step_id
        sync_failed(PersistenceFailure): mutate() raised
    """

    steps_changed = pyqtSignal()
    sync_succeeded = pyqtSignal(str, object)
    sync_failed = pyqtSignal(object)  # PersistenceFailure

    def __init__(
        self,
        source: StepSourceInterface,
        cache: Optional[TrackCache] = None,
        error_reporter: Optional[ErrorReporterInterface] = None,
        rollback_on_failure: bool = False,
        parent=None,
    ):
        super().__init__(parent)

        self._source = source
        self._cache = cache if cache is not None else TrackCache()
        self._error_reporter = error_reporter
        self.rollback_on_failure = rollback_on_failure

        self._steps: List[Step] = []
        self._index: Dict[str, int] = {}
        self._workers: List[StepMutationWorker] = []
        self._closed = False

    # =========================================================================
    # Local state
    # =========================================================================

    @property
    def cache(self) -> TrackCache:
        return self._cache

    @property
    def steps(self) -> List[Step]:
        """Snapshot of the local step list."""
        return list(self._steps)

    @property
    def active_workers(self) -> List[StepMutationWorker]:
        return list(self._workers)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def get_step(self, step_id: str) -> Optional[Step]:
        index = self._index.get(step_id)
        return self._steps[index] if index is not None else None

    def set_steps(self, steps: Iterable[Step]) -> None:
        """Replace the local list with an authoritative one."""
        self._steps = list(steps)
        self._index = {step.id: i for i, step in enumerate(self._steps)}
        self._cache.invalidate()
        Log.debug(f"OptimisticSyncCoordinator: loaded {len(self._steps)} steps")
        self.steps_changed.emit()

    def refresh(self) -> None:
        """Refetch every step from the source."""
        self.set_steps(self._source.get_steps())

    # =========================================================================
    # Commit
    # =========================================================================

    def commit(self, step_id: str, dates: StepDates) -> bool:
        """
        Apply an edit locally and persist it in the background.

        Returns:
            False if the step is unknown or the coordinator is shut down
        """
        if self._closed:
            Log.warning(f"OptimisticSyncCoordinator: commit of '{step_id}' after shutdown ignored")
            return False

        step = self.get_step(step_id)
        if step is None:
            Log.warning(f"OptimisticSyncCoordinator: commit for unknown step '{step_id}'")
            return False

        previous = StepDates(start=step.start, end=step.end)
        self._replace(step.with_dates(dates))

        worker = StepMutationWorker(self._source, step_id, dates, previous_dates=previous, parent=self)
        worker.mutation_succeeded.connect(self._on_mutation_succeeded)
        worker.mutation_failed.connect(partial(self._on_mutation_failed, worker))
        worker.finished.connect(partial(self._on_worker_finished, worker))
        self._workers.append(worker)
        worker.start()
        return True

    def _replace(self, step: Step) -> None:
        self._steps[self._index[step.id]] = step
        self._cache.invalidate()
        self.steps_changed.emit()

    # =========================================================================
    # Worker results (GUI thread)
    # =========================================================================

    def _on_mutation_succeeded(self, step_id: str, result) -> None:
        if self._closed:
            return
        Log.debug(f"OptimisticSyncCoordinator: '{step_id}' persisted")
        self.sync_succeeded.emit(step_id, result)

    def _on_mutation_failed(self, worker: StepMutationWorker, step_id: str, dates: StepDates, error: Exception) -> None:
        if self._closed:
            return

        failure = PersistenceFailure(step_id, dates, cause=error)
        Log.error(f"OptimisticSyncCoordinator: {failure}")

        if self.rollback_on_failure:
            self._roll_back(step_id, dates, worker.previous_dates)

        self.sync_failed.emit(failure)
        if self._error_reporter is not None:
            try:
                self._error_reporter.report_error(failure)
            except Exception as e:
                Log.error(f"OptimisticSyncCoordinator: error reporter raised: {e}", exc_info=True)

    def _roll_back(self, step_id: str, failed: StepDates, previous: Optional[StepDates]) -> None:
        current = self.get_step(step_id)
        if current is None or previous is None:
            return
        if current.start != failed.start or current.end != failed.end:
            Log.debug(f"OptimisticSyncCoordinator: '{step_id}' edited again since, no rollback")
            return
        Log.info(f"OptimisticSyncCoordinator: rolling back '{step_id}'")
        self._replace(current.with_dates(previous))

    def _on_worker_finished(self, worker: StepMutationWorker) -> None:
        if worker in self._workers:
            self._workers.remove(worker)
            worker.deleteLater()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def wait_for_idle(self, timeout_ms: int = SHUTDOWN_TIMEOUT_MS) -> bool:
        """
        Block until every running worker finished, then deliver their results.

        Returns:
            False if a worker was still running at the timeout
        """
        idle = True
        for worker in list(self._workers):
            if not worker.wait(timeout_ms):
                idle = False
        QCoreApplication.processEvents()
        return idle

    def shutdown(self, timeout_ms: int = SHUTDOWN_TIMEOUT_MS) -> None:
        """Stop accepting commits, wait for live workers, ignore their results."""
        if self._closed:
            return
        self._closed = True
        for worker in list(self._workers):
            if not worker.wait(timeout_ms):
                Log.warning(
                    f"OptimisticSyncCoordinator: worker for '{worker.step_id}' "
                    f"still running after {timeout_ms} ms, detaching it"
                )
                self._detach(worker)
        Log.debug("OptimisticSyncCoordinator: shut down")

    def _detach(self, worker: StepMutationWorker) -> None:
        """Hand a still-running worker to the module until its thread ends."""
        worker.mutation_succeeded.disconnect()
        worker.mutation_failed.disconnect()
        worker.finished.disconnect()
        worker.setParent(None)
        self._workers.remove(worker)

        _detached_workers.add(worker)
        worker.finished.connect(partial(_release_detached, worker), Qt.ConnectionType.QueuedConnection)
        if worker.isFinished():
            _release_detached(worker)
