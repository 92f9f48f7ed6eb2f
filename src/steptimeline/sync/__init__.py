"""
Timeline Sync

Optimistic local edits with background persistence.
"""

from .optimistic_sync import OptimisticSyncCoordinator
from .worker import StepMutationWorker

__all__ = [
    'OptimisticSyncCoordinator',
    'StepMutationWorker',
]
