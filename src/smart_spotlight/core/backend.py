"""Backend access for the spotlight client.

BackendClient is the contract the controller and the registry client are
written against. HostBackend implements it over HTTP against the local
agent host; EventStreamWorker follows the host's server-sent event stream
in a background thread.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from smart_spotlight.common.models import (
    Ack,
    AppSettings,
    HistoryEntry,
    PromptEvent,
    ProviderConfig,
)
from smart_spotlight.core.errors import (
    DuplicateNameError,
    NotFoundError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST_URL = "http://127.0.0.1:17123"
DEFAULT_TIMEOUT_S = 10.0
# Outlasts the host's own call to the model API so its error reaches the user
TEST_CONNECTION_TIMEOUT_S = 20.0

INITIAL_BACKOFF_S = 1.0
MAX_BACKOFF_S = 30.0

_providers_adapter = TypeAdapter(list[ProviderConfig])
_history_adapter = TypeAdapter(list[HistoryEntry])


class BackendClient(ABC):
    """Operations the spotlight client consumes from its backend."""

    # -- Prompting ------------------------------------------------------------

    @abstractmethod
    def submit_query(self, text: str, request_id: Optional[str] = None) -> Ack:
        """Queue a query; results arrive later as PromptEvents."""

    @abstractmethod
    def resolve_confirmation(self, token: str, decision: bool) -> Ack:
        """Send the user's decision for a pending confirmation token."""

    @abstractmethod
    def fetch_history(self, prefix: str) -> list[HistoryEntry]:
        """Prior queries starting with ``prefix``, newest first."""

    # -- Provider registry ----------------------------------------------------

    @abstractmethod
    def list_providers(self) -> list[ProviderConfig]:
        pass

    @abstractmethod
    def create_stdio_provider(self, name: str, command: str, args: list[str], env: dict[str, str]) -> None:
        pass

    @abstractmethod
    def create_sse_provider(self, name: str, url: str, headers: list[str]) -> None:
        pass

    @abstractmethod
    def update_stdio_provider(self, name: str, command: str, args: list[str], env: dict[str, str]) -> None:
        pass

    @abstractmethod
    def update_sse_provider(self, name: str, url: str, headers: list[str]) -> None:
        pass

    @abstractmethod
    def delete_provider(self, name: str) -> None:
        pass

    @abstractmethod
    def enable_provider(self, name: str) -> None:
        """Mark enabled and start the provider's live connection."""

    @abstractmethod
    def disable_provider(self, name: str) -> None:
        """Stop the provider's live connection."""

    @abstractmethod
    def set_provider_enabled(self, name: str, enabled: bool) -> None:
        """Store the user's intent flag only."""

    # -- Settings -------------------------------------------------------------

    @abstractmethod
    def get_settings(self) -> AppSettings:
        pass

    @abstractmethod
    def update_settings(self, settings: AppSettings) -> None:
        pass

    @abstractmethod
    def test_connection(self) -> None:
        """Raise TransportError if the configured model API is unusable."""


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("detail"):
        detail = body["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return f"HTTP {response.status_code}"


def _provider_path(name: str, action: str = "") -> str:
    """Provider route with the name percent-encoded as a single path segment."""
    path = f"/v1/providers/{quote(name, safe='')}"
    return f"{path}/{action}" if action else path


def raise_for_response(response: httpx.Response, name: Optional[str] = None) -> None:
    """Translate a host error response into the package's error taxonomy."""
    if response.is_success:
        return
    detail = _error_detail(response)
    status = response.status_code
    if status == 409 and name is not None:
        raise DuplicateNameError(name)
    if status == 404 and name is not None:
        raise NotFoundError(name)
    if status in (400, 422):
        raise ValidationError(detail)
    raise TransportError(detail)


class HostBackend(BackendClient):
    """BackendClient over the local agent host's HTTP API."""

    def __init__(
        self,
        base_url: str = DEFAULT_HOST_URL,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, name: Optional[str] = None, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TransportError(f"backend unreachable: {exc}") from exc
        raise_for_response(response, name=name)
        return response

    # -- Prompting ------------------------------------------------------------

    def submit_query(self, text: str, request_id: Optional[str] = None) -> Ack:
        response = self._request("POST", "/v1/queries", json={"text": text, "request_id": request_id})
        return Ack.model_validate(response.json())

    def resolve_confirmation(self, token: str, decision: bool) -> Ack:
        response = self._request(
            "POST", "/v1/confirmations", json={"token": token, "decision": decision}
        )
        return Ack.model_validate(response.json())

    def fetch_history(self, prefix: str) -> list[HistoryEntry]:
        response = self._request("GET", "/v1/history", params={"prefix": prefix})
        return _history_adapter.validate_python(response.json())

    # -- Provider registry ----------------------------------------------------

    def list_providers(self) -> list[ProviderConfig]:
        response = self._request("GET", "/v1/providers")
        return _providers_adapter.validate_python(response.json())

    def create_stdio_provider(self, name, command, args, env) -> None:
        self._request(
            "POST",
            "/v1/providers/stdio",
            name=name,
            json={"name": name, "command": command, "args": list(args), "env": dict(env)},
        )

    def create_sse_provider(self, name, url, headers) -> None:
        self._request(
            "POST",
            "/v1/providers/sse",
            name=name,
            json={"name": name, "url": url, "headers": list(headers)},
        )

    def update_stdio_provider(self, name, command, args, env) -> None:
        self._request(
            "PUT",
            _provider_path(name, "stdio"),
            name=name,
            json={"name": name, "command": command, "args": list(args), "env": dict(env)},
        )

    def update_sse_provider(self, name, url, headers) -> None:
        self._request(
            "PUT",
            _provider_path(name, "sse"),
            name=name,
            json={"name": name, "url": url, "headers": list(headers)},
        )

    def delete_provider(self, name: str) -> None:
        self._request("DELETE", _provider_path(name), name=name)

    def enable_provider(self, name: str) -> None:
        self._request("POST", _provider_path(name, "enable"), name=name)

    def disable_provider(self, name: str) -> None:
        self._request("POST", _provider_path(name, "disable"), name=name)

    def set_provider_enabled(self, name: str, enabled: bool) -> None:
        self._request("PUT", _provider_path(name, "enabled"), name=name, json={"enabled": enabled})

    # -- Settings -------------------------------------------------------------

    def get_settings(self) -> AppSettings:
        response = self._request("GET", "/v1/settings")
        return AppSettings.model_validate(response.json())

    def update_settings(self, settings: AppSettings) -> None:
        self._request("PUT", "/v1/settings", json=settings.model_dump(by_alias=True))

    def test_connection(self) -> None:
        self._request("POST", "/v1/settings/test", timeout=TEST_CONNECTION_TIMEOUT_S)


def parse_sse_line(line: str) -> Optional[PromptEvent]:
    """Parse one ``data:`` line of the host's event stream; other lines yield None."""
    if not line.startswith("data:"):
        return None
    payload = line[len("data:"):].strip()
    if not payload:
        return None
    try:
        return PromptEvent.model_validate_json(payload)
    except PydanticValidationError as exc:
        logger.warning("Dropping malformed event: %s", exc.errors()[0].get("msg", exc))
        return None


class EventStreamWorker(threading.Thread):
    """Background thread that follows the host's PromptEvent stream.

    ``on_event`` is called from this thread; the UI wraps it in a Qt signal
    so that events are handled on the UI thread.
    """

    def __init__(
        self,
        base_url: str,
        on_event: Callable[[PromptEvent], None],
        transport: Optional[httpx.BaseTransport] = None,
        initial_backoff: float = INITIAL_BACKOFF_S,
        max_backoff: float = MAX_BACKOFF_S,
    ):
        super().__init__(daemon=True, name="prompt-event-stream")
        self.base_url = base_url.rstrip("/")
        self.on_event = on_event
        self._transport = transport
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._stop_event = threading.Event()

    def stop(self) -> None:
        """Request the stream to end; the thread exits at the next read or backoff."""
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run(self) -> None:
        backoff = self._initial_backoff
        while not self._stop_event.is_set():
            try:
                self._follow_stream()
                backoff = self._initial_backoff
            except httpx.HTTPError as exc:
                logger.warning("Event stream dropped: %s (retrying in %.0fs)", exc, backoff)
                if self._stop_event.wait(backoff):
                    break
                backoff = min(backoff * 2, self._max_backoff)

    def _follow_stream(self) -> None:
        timeout = httpx.Timeout(DEFAULT_TIMEOUT_S, read=None)
        with httpx.Client(base_url=self.base_url, timeout=timeout, transport=self._transport) as client:
            with client.stream("GET", "/v1/events") as response:
                response.raise_for_status()
                logger.info("Connected to event stream at %s", self.base_url)
                for line in response.iter_lines():
                    if self._stop_event.is_set():
                        return
                    event = parse_sse_line(line)
                    if event is not None:
                        self.on_event(event)
        if not self._stop_event.is_set():
            # Host closed the stream cleanly; wait briefly before reconnecting.
            self._stop_event.wait(self._initial_backoff)
