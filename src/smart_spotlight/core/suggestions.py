"""Debounced lookup of prior queries for the input's suggestion list."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from smart_spotlight.common.models import HistoryEntry
from smart_spotlight.core.runtime import Scheduler, TaskRunner, TimerHandle

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 150


class SuggestionFetcher:
    """Fetch history matches for the current text, at most once per quiet period.

    Args:
        fetch: blocking lookup, normally ``BackendClient.fetch_history``
        scheduler: fires the debounce timer on the UI thread
        runner: runs the lookup off the UI thread
        on_results: receives the new suggestion list (possibly empty)
        is_blocked: true while a result is shown or a submission is in flight
    """

    def __init__(
        self,
        fetch: Callable[[str], list[HistoryEntry]],
        scheduler: Scheduler,
        runner: TaskRunner,
        on_results: Callable[[list[HistoryEntry]], None],
        is_blocked: Callable[[], bool] = lambda: False,
        delay_ms: int = DEFAULT_DEBOUNCE_MS,
    ):
        self._fetch = fetch
        self._scheduler = scheduler
        self._runner = runner
        self._on_results = on_results
        self._is_blocked = is_blocked
        self.delay_ms = delay_ms
        self._timer: Optional[TimerHandle] = None
        self._generation = 0

    def text_changed(self, text: str) -> None:
        """Restart the debounce window for ``text``."""
        self.cancel()
        self._generation += 1
        generation = self._generation
        self._timer = self._scheduler.call_later(self.delay_ms, lambda: self._fire(text, generation))

    def cancel(self) -> None:
        """Drop any pending timer and any lookup still in flight."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._generation += 1

    def _fire(self, text: str, generation: int) -> None:
        self._timer = None
        if generation != self._generation:
            return
        if not text.strip() or self._is_blocked():
            self._on_results([])
            return

        def deliver(entries) -> None:
            if generation != self._generation or self._is_blocked():
                return
            self._on_results(list(entries or []))

        def failed(exc: Exception) -> None:
            logger.debug("History lookup failed: %s", exc)
            if generation == self._generation:
                self._on_results([])

        self._runner.submit(lambda: self._fetch(text), on_success=deliver, on_error=failed)
