"""Prompt session state.

A PromptSession tracks one query from submission to its terminal outcome.
It is only mutated through the named transition methods below; the
controller owns the single live instance.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class SessionState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    COMPLETED = "completed"
    FAILED = "failed"


class InvalidTransition(RuntimeError):
    """Raised when a transition is requested from a state that does not allow it."""


@dataclass(frozen=True)
class ConfirmationRequest:
    """A single-use, server-issued authorization request."""

    token: str
    tool_name: str
    arguments: Any = None

    def describe(self) -> str:
        """Markdown shown to the user before they decide."""
        lines = [
            "### Confirm operation",
            "",
            f"**Tool:** `{self.tool_name}`",
            "",
        ]
        if self.arguments not in (None, "", [], {}):
            lines.extend(["```json", _format_arguments(self.arguments), "```", ""])
        lines.append("Proceed?")
        return "\n".join(lines)


def _format_arguments(arguments: Any) -> str:
    if isinstance(arguments, str):
        return arguments
    try:
        return json.dumps(arguments, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(arguments)


def new_request_id() -> str:
    return uuid.uuid4().hex


@dataclass
class PromptSession:
    state: SessionState = SessionState.IDLE
    query: str = ""
    request_id: Optional[str] = None
    result: Optional[str] = None
    error_message: Optional[str] = None
    pending_confirmation: Optional[ConfirmationRequest] = field(default=None, repr=False)

    # -- Queries --------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return self.state is SessionState.SUBMITTING

    @property
    def is_awaiting_backend(self) -> bool:
        return self.state is SessionState.SUBMITTING

    @property
    def has_result(self) -> bool:
        return self.state is SessionState.COMPLETED

    @property
    def has_error(self) -> bool:
        return self.state is SessionState.FAILED

    def owns(self, request_id: Optional[str]) -> bool:
        """Whether an event tagged with ``request_id`` belongs to this session."""
        if request_id is None:
            return self.is_awaiting_backend
        return request_id == self.request_id

    # -- Transitions ----------------------------------------------------------

    def begin(self, query: str, request_id: str) -> None:
        """Any state -> Submitting. A pending confirmation is orphaned, not resolved."""
        self.state = SessionState.SUBMITTING
        self.query = query
        self.request_id = request_id
        self._clear_outcome()

    def await_confirmation(self, request: ConfirmationRequest) -> None:
        self._require(SessionState.SUBMITTING)
        self._clear_outcome()
        self.pending_confirmation = request
        self.state = SessionState.AWAITING_CONFIRMATION

    def take_confirmation(self, decision: bool) -> ConfirmationRequest:
        """AwaitingConfirmation -> Submitting (approve) or Idle (decline).

        Returns the request and drops the session's reference to it, so the
        token cannot be resolved a second time.
        """
        self._require(SessionState.AWAITING_CONFIRMATION)
        request = self.pending_confirmation
        self.pending_confirmation = None
        self.state = SessionState.SUBMITTING if decision else SessionState.IDLE
        return request

    def complete(self, result: str) -> None:
        self._require(SessionState.SUBMITTING)
        self._clear_outcome()
        self.result = result
        self.state = SessionState.COMPLETED

    def fail(self, message: str) -> None:
        """Store an error. Allowed from any state; transport failures land here."""
        self._clear_outcome()
        self.error_message = message
        self.state = SessionState.FAILED

    def reset(self) -> None:
        """Completed/Failed -> Idle when the user edits the query again."""
        self._require(SessionState.COMPLETED, SessionState.FAILED)
        self._clear_outcome()
        self.state = SessionState.IDLE

    # -- Helpers --------------------------------------------------------------

    def _clear_outcome(self) -> None:
        self.result = None
        self.error_message = None
        self.pending_confirmation = None

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidTransition(f"expected state in ({allowed}), got {self.state.value}")
