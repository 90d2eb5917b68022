"""Execution seams: where blocking backend calls run and how timers fire.

The controller never blocks on the backend. It hands each call to a
TaskRunner and receives the outcome through callbacks on the UI thread.
Qt-backed implementations live in ``smart_spotlight.ui.bridge``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


class TaskRunner(ABC):
    @abstractmethod
    def submit(
        self,
        fn: Callable[[], Any],
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        """Run ``fn`` off the UI thread; deliver its outcome to one callback."""


class InlineTaskRunner(TaskRunner):
    """Runs tasks immediately on the calling thread (tests, headless use)."""

    def submit(self, fn, on_success=None, on_error=None) -> None:
        try:
            result = fn()
        except Exception as exc:
            if on_error is None:
                raise
            on_error(exc)
            return
        if on_success is not None:
            on_success(result)


class TimerHandle(ABC):
    @abstractmethod
    def cancel(self) -> None:
        """Stop the timer if it has not fired yet."""


class Scheduler(ABC):
    @abstractmethod
    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> TimerHandle:
        """Call ``fn`` on the UI thread after ``delay_ms`` milliseconds."""


class _ManualTimer(TimerHandle):
    def __init__(self, due_ms: int, fn: Callable[[], None]):
        self.due_ms = due_ms
        self.fn = fn
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Deterministic scheduler driven by ``advance``."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._timers: list[_ManualTimer] = []

    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> TimerHandle:
        timer = _ManualTimer(self.now_ms + max(0, int(delay_ms)), fn)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled and not t.fired)

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while True:
            due = [t for t in self._timers if not t.cancelled and not t.fired and t.due_ms <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due_ms)
            self.now_ms = timer.due_ms
            timer.fired = True
            timer.fn()
        self.now_ms = target
        self._timers = [t for t in self._timers if not t.cancelled and not t.fired]
