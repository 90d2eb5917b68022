"""Prompt controller (pure Python, no Qt).

Turns user input and the backend's PromptEvent stream into transitions of
the single live PromptSession, and keeps the host window sized to
whatever surface is showing.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from smart_spotlight.common.models import (
    EVENT_AUTHORIZATION_REQUIRED,
    EVENT_CONFIRMATION_REQUIRED,
    EVENT_ERROR,
    EVENT_FINAL_RESULT,
    EVENT_TOOL_USE,
    PROMPT_EVENT_CHANNEL,
    ConfirmationRequiredData,
    HistoryEntry,
    PromptEvent,
)
from smart_spotlight.core.backend import BackendClient
from smart_spotlight.core.confirmation import ConfirmationProtocol
from smart_spotlight.core.events import EventBus, Subscription
from smart_spotlight.core.runtime import InlineTaskRunner, ManualScheduler, Scheduler, TaskRunner
from smart_spotlight.core.session import (
    ConfirmationRequest,
    PromptSession,
    SessionState,
    new_request_id,
)
from smart_spotlight.core.suggestions import DEFAULT_DEBOUNCE_MS, SuggestionFetcher
from smart_spotlight.core.viewport import WindowSize, window_size

logger = logging.getLogger(__name__)


class WindowHost(ABC):
    """The host window the controller sizes and hides."""

    @abstractmethod
    def set_window_size(self, width: int, height: int) -> None:
        pass

    @abstractmethod
    def hide_window(self) -> None:
        pass


class PromptController:
    """Owns the active PromptSession and drives it from input and events."""

    def __init__(
        self,
        backend: BackendClient,
        bus: EventBus,
        window: WindowHost,
        runner: Optional[TaskRunner] = None,
        scheduler: Optional[Scheduler] = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        channel: str = PROMPT_EVENT_CHANNEL,
        request_ids: Callable[[], str] = new_request_id,
    ):
        self.backend = backend
        self.bus = bus
        self.window = window
        self.channel = channel
        self._runner = runner or InlineTaskRunner()
        self._scheduler = scheduler or ManualScheduler()
        self._request_ids = request_ids

        self.session = PromptSession()
        self.input_text = ""
        self.suggestions: list[HistoryEntry] = []
        self.selected_index = -1
        self.window_size: Optional[WindowSize] = None

        self.confirmation = ConfirmationProtocol(backend, self._runner)
        self.suggestion_fetcher = SuggestionFetcher(
            backend.fetch_history,
            self._scheduler,
            self._runner,
            on_results=self._set_suggestions,
            is_blocked=self._suggestions_blocked,
            delay_ms=debounce_ms,
        )
        self._subscription: Optional[Subscription] = None
        self._listeners: list[Callable[["PromptController"], None]] = []

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        """Subscribe to the event channel; calling twice keeps one subscription."""
        if self._subscription is not None and self._subscription.active:
            return
        self._subscription = self.bus.subscribe(self.channel, self.handle_event)
        self._apply_viewport()

    def close(self) -> None:
        """Release the event subscription and any pending suggestion lookup."""
        self.suggestion_fetcher.cancel()
        if self._subscription is not None:
            self._subscription.release()
            self._subscription = None

    @property
    def is_listening(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def __enter__(self) -> "PromptController":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def add_listener(self, listener: Callable[["PromptController"], None]) -> None:
        """Register a view callback invoked after every state change."""
        self._listeners.append(listener)

    # ── Derived view state ───────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def is_loading(self) -> bool:
        return self.session.is_loading

    @property
    def pending_confirmation(self) -> Optional[ConfirmationRequest]:
        return self.session.pending_confirmation

    def current_size(self) -> WindowSize:
        state = self.session.state
        return window_size(
            has_error=state is SessionState.FAILED,
            has_response=state in (SessionState.COMPLETED, SessionState.AWAITING_CONFIRMATION),
            has_suggestions=bool(self.suggestions),
        )

    # ── User input ───────────────────────────────────────────────────────

    def edit_query(self, text: str) -> None:
        """Keystroke in the input: clear any shown outcome and look up suggestions."""
        self.input_text = text
        self.selected_index = -1
        if self.session.state in (SessionState.COMPLETED, SessionState.FAILED):
            self.session.reset()
        self._changed()
        self.suggestion_fetcher.text_changed(text)

    def submit(self, text: Optional[str] = None) -> bool:
        """Start a new session for ``text`` (defaults to the input); blank text is ignored."""
        query = self.input_text if text is None else text
        if not query.strip():
            return False

        previous = self.session.state
        if previous is SessionState.AWAITING_CONFIRMATION:
            logger.info(
                "Superseding query with unresolved confirmation %s",
                self.session.pending_confirmation.token,
            )
        elif previous is SessionState.SUBMITTING:
            logger.info("Superseding in-flight query %s", self.session.request_id)

        request_id = self._request_ids()
        self.session.begin(query, request_id)
        self.input_text = query
        self.suggestion_fetcher.cancel()
        self._clear_suggestions()
        self._changed()

        def sent(_ack) -> None:
            logger.info("Prompt %s sent to backend", request_id)

        self._runner.submit(
            lambda: self.backend.submit_query(query, request_id),
            on_success=sent,
            on_error=lambda exc: self._request_failed(request_id, exc),
        )
        return True

    def resolve_confirmation(self, decision: bool) -> bool:
        """Send the user's decision for the pending confirmation.

        The window is resized and the loading indicator updated before the
        network call is handed off. Returns False when nothing was pending.
        """
        if self.session.state is not SessionState.AWAITING_CONFIRMATION:
            logger.warning("No confirmation pending; ignoring decision %s", decision)
            return False

        request_id = self.session.request_id
        request = self.session.take_confirmation(decision)
        self._changed()
        self.confirmation.resolve(
            request.token,
            decision,
            on_error=lambda exc: self._request_failed(request_id, exc),
        )
        return True

    def move_selection(self, delta: int) -> None:
        if not self.suggestions:
            return
        if delta > 0:
            self.selected_index = min(self.selected_index + 1, len(self.suggestions) - 1)
        elif self.selected_index > -1:
            self.selected_index -= 1
        else:
            self.selected_index = len(self.suggestions) - 1
        self._notify()

    def accept_selection(self) -> bool:
        """Enter key: submit the highlighted suggestion, or the typed text."""
        if 0 <= self.selected_index < len(self.suggestions):
            query = self.suggestions[self.selected_index].query
            self.input_text = query
            return self.submit(query)
        return self.submit()

    def choose_suggestion(self, index: int) -> bool:
        if not 0 <= index < len(self.suggestions):
            return False
        self.selected_index = index
        return self.accept_selection()

    def escape(self) -> None:
        self.window.hide_window()

    def copy_result(self) -> None:
        """The user copied the result; the window gets out of the way."""
        self.window.hide_window()

    # ── Backend events ───────────────────────────────────────────────────

    def handle_event(self, event: Union[PromptEvent, dict[str, Any]]) -> None:
        """Apply one PromptEvent. Malformed and stale events are dropped."""
        if not isinstance(event, PromptEvent):
            try:
                event = PromptEvent.model_validate(event)
            except PydanticValidationError as exc:
                logger.warning("Ignoring malformed prompt event: %s", exc)
                return

        if not self.session.owns(event.request_id):
            logger.debug(
                "Ignoring stale %s event for %s (current %s)",
                event.type,
                event.request_id,
                self.session.request_id,
            )
            return

        if event.type == EVENT_CONFIRMATION_REQUIRED:
            self._on_confirmation_required(event)
        elif event.type == EVENT_FINAL_RESULT:
            self._on_final_result(event)
        elif event.type == EVENT_ERROR:
            self._on_error(event)
        elif event.type == EVENT_TOOL_USE:
            logger.debug("Tool in use: %s", event.data)
        elif event.type == EVENT_AUTHORIZATION_REQUIRED:
            logger.info("Authorization requested by backend: %s", event.data)

    def _on_confirmation_required(self, event: PromptEvent) -> None:
        if self.session.state is not SessionState.SUBMITTING:
            logger.debug("Ignoring confirmation request in state %s", self.session.state.value)
            return
        try:
            data = ConfirmationRequiredData.model_validate(event.data)
        except PydanticValidationError:
            logger.warning("Malformed confirmation request: %r", event.data)
            self.session.fail("Received a malformed confirmation request")
            self._changed()
            return
        request = ConfirmationRequest(token=data.token, tool_name=data.tool, arguments=data.args)
        self.session.await_confirmation(request)
        self._changed()

    def _on_final_result(self, event: PromptEvent) -> None:
        if self.session.state is not SessionState.SUBMITTING:
            logger.debug("Ignoring final result in state %s", self.session.state.value)
            return
        self.session.complete("" if event.data is None else str(event.data))
        self._changed()

    def _on_error(self, event: PromptEvent) -> None:
        # The backend also reports a timed-out confirmation while it is still shown.
        if self.session.state not in (SessionState.SUBMITTING, SessionState.AWAITING_CONFIRMATION):
            logger.debug("Ignoring error event in state %s", self.session.state.value)
            return
        self.session.fail(str(event.data or "Unknown error"))
        self._changed()

    def _request_failed(self, request_id: str, exc: Exception) -> None:
        if request_id != self.session.request_id:
            logger.debug("Dropping failure for superseded request %s: %s", request_id, exc)
            return
        logger.warning("Backend request failed: %s", exc)
        self.session.fail(str(exc))
        self._changed()

    # ── Suggestions ──────────────────────────────────────────────────────

    def _suggestions_blocked(self) -> bool:
        return self.session.state in (
            SessionState.SUBMITTING,
            SessionState.AWAITING_CONFIRMATION,
            SessionState.COMPLETED,
        )

    def _set_suggestions(self, entries: list[HistoryEntry]) -> None:
        if self._suggestions_blocked():
            entries = []
        self.suggestions = list(entries)
        self.selected_index = -1
        self._changed()

    def _clear_suggestions(self) -> None:
        self.suggestions = []
        self.selected_index = -1

    # ── Side effects ─────────────────────────────────────────────────────

    def _changed(self) -> None:
        self._apply_viewport()
        self._notify()

    def _apply_viewport(self) -> None:
        size = self.current_size()
        if size != self.window_size:
            self.window_size = size
            self.window.set_window_size(size.width, size.height)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
