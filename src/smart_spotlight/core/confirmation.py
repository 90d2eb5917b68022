"""Confirmation round trip: an opaque token in, one boolean decision out."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from smart_spotlight.core.backend import BackendClient
from smart_spotlight.core.runtime import InlineTaskRunner, TaskRunner

logger = logging.getLogger(__name__)


class ConfirmationProtocol:
    """Sends a token's decision back to the backend.

    Each token may be resolved at most once. The protocol keeps no record of
    tokens; callers guarantee single use by dropping their ConfirmationRequest
    before calling ``resolve`` (see ``PromptSession.take_confirmation``).

    The send is fire-and-forget: ``resolve`` returns as soon as the call is
    handed to the task runner, and a failed send is reported through
    ``on_error``.
    """

    def __init__(self, backend: BackendClient, runner: Optional[TaskRunner] = None):
        self._backend = backend
        self._runner = runner or InlineTaskRunner()

    def resolve(
        self,
        token: str,
        decision: bool,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        logger.info("Resolving confirmation %s: %s", token, "approve" if decision else "decline")

        def failed(exc: Exception) -> None:
            logger.warning("Confirmation %s could not be delivered: %s", token, exc)
            if on_error is not None:
                on_error(exc)

        self._runner.submit(
            lambda: self._backend.resolve_confirmation(token, decision),
            on_error=failed,
        )
