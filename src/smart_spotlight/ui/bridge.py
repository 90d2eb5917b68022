"""Qt implementations of the core runtime seams.

Core code never touches Qt; it takes a TaskRunner and a Scheduler. These
adapters run blocking backend calls on the global QThreadPool and deliver
callbacks, timers and stream events on the UI thread via signals.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Signal, Slot

from smart_spotlight.core.events import EventBus
from smart_spotlight.core.runtime import Scheduler, TaskRunner, TimerHandle


class TaskSignals(QObject):
    """Signals for thread-safe task completion"""
    succeeded = Signal(object)
    failed = Signal(object)


class BackendTask(QRunnable):
    """Runs one blocking call on the thread pool"""

    def __init__(self, fn: Callable[[], Any]):
        super().__init__()
        self.fn = fn
        self.signals = TaskSignals()

    def run(self):
        try:
            result = self.fn()
        except Exception as e:
            self.signals.failed.emit(e)
        else:
            self.signals.succeeded.emit(result)


class QtTaskRunner(TaskRunner):
    """TaskRunner backed by QThreadPool; callbacks arrive on the UI thread."""

    def __init__(self, pool: Optional[QThreadPool] = None):
        self.pool = pool or QThreadPool.globalInstance()
        self._tasks: set[BackendTask] = set()

    def submit(self, fn, on_success=None, on_error=None) -> None:
        task = BackendTask(fn)
        task.setAutoDelete(False)
        self._tasks.add(task)

        def finished_ok(result):
            self._tasks.discard(task)
            if on_success is not None:
                on_success(result)

        def finished_error(exc):
            self._tasks.discard(task)
            if on_error is not None:
                on_error(exc)

        task.signals.succeeded.connect(finished_ok)
        task.signals.failed.connect(finished_error)
        self.pool.start(task)


class QtTimerHandle(TimerHandle):
    def __init__(self, timer: QTimer):
        self.timer = timer

    def cancel(self) -> None:
        self.timer.stop()
        self.timer.deleteLater()


class QtScheduler(Scheduler):
    """Single-shot QTimers; must be used from the UI thread."""

    def __init__(self, parent: Optional[QObject] = None):
        self.parent = parent

    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> TimerHandle:
        timer = QTimer(self.parent)
        timer.setSingleShot(True)

        def fire():
            timer.deleteLater()
            fn()

        timer.timeout.connect(fire)
        timer.start(delay_ms)
        return QtTimerHandle(timer)


class EventBridge(QObject):
    """Re-publishes events from background threads onto the bus on the UI thread."""
    received = Signal(str, object)

    def __init__(self, bus: EventBus, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.bus = bus
        self.received.connect(self._publish)

    def post(self, channel: str, payload: Any) -> None:
        """Thread-safe; may be called from any thread"""
        self.received.emit(channel, payload)

    @Slot(str, object)
    def _publish(self, channel: str, payload: Any) -> None:
        self.bus.publish(channel, payload)
