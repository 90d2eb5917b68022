"""Prompt engines: run a query and publish its PromptEvents.

The reasoning engine itself lives outside this project; MockPromptEngine
stands in for it so the client's whole event protocol (tool use,
confirmation, result, error) can be exercised end to end.
"""

from __future__ import annotations

import json
import logging
import re
import threading
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from smart_spotlight.common.models import (
    EVENT_CONFIRMATION_REQUIRED,
    EVENT_ERROR,
    EVENT_FINAL_RESULT,
    EVENT_TOOL_USE,
    PromptEvent,
)
from smart_spotlight.core.errors import UnknownTokenError

logger = logging.getLogger(__name__)

CONFIRMATION_TIMEOUT_S = 120.0

MUTATING_VERBS = [
    "create", "insert", "add",
    "update", "modify", "patch", "put",
    "delete", "remove", "drop",
    "write", "send", "post", "publish",
]

WRITE_ACTION_RE = re.compile(r"\b(" + "|".join(MUTATING_VERBS) + r")\b", re.IGNORECASE)


def confirmation_required(tool: str, args: Any) -> bool:
    """True when the tool name or any argument value mentions a mutating verb"""
    if WRITE_ACTION_RE.search(tool):
        return True
    return bool(WRITE_ACTION_RE.search(json.dumps(args, default=str)))


class PromptEngine(ABC):
    """Abstract base class for query executors"""

    @abstractmethod
    def submit(self, text: str, request_id: Optional[str] = None) -> str:
        """
        Start processing a query in the background

        Args:
            text: The user's query
            request_id: Client-chosen id; generated when absent

        Returns:
            str: The request id every event of this query carries
        """
        pass

    @abstractmethod
    def resolve(self, token: str, decision: bool):
        """Deliver a confirmation decision; raise UnknownTokenError if not pending"""
        pass


class _PendingConfirmation:
    def __init__(self):
        self.event = threading.Event()
        self.decision = False


class MockQueryWorker(threading.Thread):
    """Background thread that plays one fake tool-using query."""

    def __init__(self, engine: "MockPromptEngine", text: str, request_id: str):
        super().__init__(daemon=True, name=f"query-{request_id[:8]}")
        self.engine = engine
        self.text = text
        self.request_id = request_id

    def emit(self, event_type: str, data: Any = None):
        self.engine.emit(PromptEvent(type=event_type, data=data, request_id=self.request_id))

    def run(self):
        try:
            self._run()
        except Exception as e:
            logger.exception("Query %s failed", self.request_id)
            self.emit(EVENT_ERROR, str(e))

    def _run(self):
        match = WRITE_ACTION_RE.search(self.text)
        tool = f"{match.group(1).lower()}_item" if match else "search"
        server = "workspace"
        args = {"query": self.text}

        time.sleep(self.engine.step_delay)
        self.emit(EVENT_TOOL_USE, {"server": server, "tool": tool})

        if confirmation_required(tool, args):
            token = str(uuid.uuid4())
            pending = self.engine.open_confirmation(token)
            self.emit(EVENT_CONFIRMATION_REQUIRED, {
                "token": token,
                "server": server,
                "tool": tool,
                "args": args,
            })
            answered = pending.event.wait(self.engine.confirmation_timeout)
            self.engine.close_confirmation(token)
            if not answered:
                logger.info("Confirmation %s timed out", token)
                self.emit(EVENT_ERROR, "confirmation timeout")
                return
            if not pending.decision:
                logger.info("Operation %s declined by user", tool)
                return

        time.sleep(self.engine.step_delay)
        self.emit(EVENT_FINAL_RESULT, self.engine.render_result(self.text, server, tool))


class MockPromptEngine(PromptEngine):
    """Stand-in engine that emits realistic events without a model behind it."""

    def __init__(
        self,
        emit: Callable[[PromptEvent], Any],
        on_query: Optional[Callable[[str], Any]] = None,
        step_delay: float = 0.3,
        confirmation_timeout: float = CONFIRMATION_TIMEOUT_S,
    ):
        self.emit = emit
        self.on_query = on_query
        self.step_delay = step_delay
        self.confirmation_timeout = confirmation_timeout
        self._lock = threading.Lock()
        self._pending: dict[str, _PendingConfirmation] = {}
        self.workers: list[MockQueryWorker] = []

    def submit(self, text: str, request_id: Optional[str] = None) -> str:
        request_id = request_id or uuid.uuid4().hex
        if self.on_query is not None:
            self.on_query(text)
        worker = MockQueryWorker(self, text, request_id)
        self.workers = [w for w in self.workers if w.is_alive()] + [worker]
        worker.start()
        logger.info("Query %s started", request_id)
        return request_id

    def open_confirmation(self, token: str) -> _PendingConfirmation:
        pending = _PendingConfirmation()
        with self._lock:
            self._pending[token] = pending
        return pending

    def close_confirmation(self, token: str):
        with self._lock:
            self._pending.pop(token, None)

    def resolve(self, token: str, decision: bool):
        with self._lock:
            pending = self._pending.pop(token, None)
        if pending is None:
            raise UnknownTokenError(token)
        pending.decision = decision
        pending.event.set()
        logger.info("Confirmation %s resolved: %s", token, "approved" if decision else "declined")

    @property
    def pending_tokens(self) -> list[str]:
        with self._lock:
            return list(self._pending)

    def render_result(self, text: str, server: str, tool: str) -> str:
        return (
            "### Result\n\n"
            f"Ran `{server}__{tool}` for:\n\n"
            f"> {text}\n\n"
            "_Mock engine output. Configure a model in Settings for real answers._"
        )

    def join(self, timeout: Optional[float] = None):
        """Wait for running queries to finish"""
        for worker in list(self.workers):
            worker.join(timeout)
