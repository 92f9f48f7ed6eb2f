"""
Shared fixtures.

Qt objects (QObject signals, QTimer, QThread) need a QCoreApplication.
"""
import os
import sys
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Allow running the suite from a checkout without installing the package
SRC_DIR = Path(__file__).resolve().parent.parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


@pytest.fixture(scope="session")
def qapp():
    """Ensure a QCoreApplication exists for signals, timers and threads."""
    from PyQt6.QtCore import QCoreApplication
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


class ImmediateScheduler:
    """Frame scheduler that keeps the pending callback until flush()."""

    def __init__(self):
        self.pending = None
        self.scheduled = 0

    def schedule(self, callback):
        self.pending = callback
        self.scheduled += 1

    def cancel(self):
        self.pending = None

    def flush(self):
        callback, self.pending = self.pending, None
        if callback is not None:
            callback()


class FakePointerHost:
    """Records listener registrations so tests can drive and inspect them."""

    def __init__(self):
        self.listeners = {}
        self._next = 0

    def add_pointer_listener(self, on_move, on_release, on_cancel):
        self._next += 1
        self.listeners[self._next] = (on_move, on_release, on_cancel)
        return self._next

    def remove_pointer_listener(self, token):
        self.listeners.pop(token, None)

    def move(self, x):
        for on_move, _, _ in list(self.listeners.values()):
            on_move(x)

    def release(self, x):
        for _, on_release, _ in list(self.listeners.values()):
            on_release(x)

    def cancel(self):
        for _, _, on_cancel in list(self.listeners.values()):
            on_cancel()


@pytest.fixture
def scheduler():
    return ImmediateScheduler()


@pytest.fixture
def pointer_host():
    return FakePointerHost()
