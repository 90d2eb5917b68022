"""Shared fixtures: an in-memory backend, a recording window and manual timers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from smart_spotlight.common.models import (
    Ack,
    AppSettings,
    HistoryEntry,
    ProviderConfig,
    SseTransport,
    StdioTransport,
)
from smart_spotlight.core.backend import BackendClient
from smart_spotlight.core.controller import PromptController, WindowHost
from smart_spotlight.core.errors import DuplicateNameError, NotFoundError, TransportError
from smart_spotlight.core.events import EventBus
from smart_spotlight.core.registry import ProviderRegistryClient, ProviderSettings
from smart_spotlight.core.runtime import InlineTaskRunner, ManualScheduler, TaskRunner


class FakeBackend(BackendClient):
    """In-memory backend that records every call."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.queries: list[tuple[str, Optional[str]]] = []
        self.resolutions: list[tuple[str, bool]] = []
        self.history: list[HistoryEntry] = []
        self.providers: dict[str, ProviderConfig] = {}
        self.settings = AppSettings(base_url="http://llm.local/v1", model="gpt-4")
        self.fail_submit: Optional[Exception] = None
        self.fail_resolve: Optional[Exception] = None
        self.fail_history: Optional[Exception] = None
        self.fail_list: Optional[Exception] = None
        self.fail_set_enabled: Optional[Exception] = None

    # -- Prompting ------------------------------------------------------------

    def submit_query(self, text, request_id=None):
        self.calls.append(("submit_query", text, request_id))
        if self.fail_submit is not None:
            raise self.fail_submit
        self.queries.append((text, request_id))
        return Ack(request_id=request_id)

    def resolve_confirmation(self, token, decision):
        self.calls.append(("resolve_confirmation", token, decision))
        if self.fail_resolve is not None:
            raise self.fail_resolve
        self.resolutions.append((token, decision))
        return Ack()

    def fetch_history(self, prefix):
        self.calls.append(("fetch_history", prefix))
        if self.fail_history is not None:
            raise self.fail_history
        return [entry for entry in self.history if entry.query.lower().startswith(prefix.lower())]

    def add_history(self, *queries: str):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for query in queries:
            self.history.append(
                HistoryEntry(id=len(self.history) + 1, query=query, timestamp=start + timedelta(minutes=len(self.history)))
            )

    # -- Provider registry ----------------------------------------------------

    def list_providers(self):
        self.calls.append(("list_providers",))
        if self.fail_list is not None:
            raise self.fail_list
        return [self.providers[name].model_copy(deep=True) for name in sorted(self.providers)]

    def _require(self, name):
        if name not in self.providers:
            raise NotFoundError(name)
        return self.providers[name]

    def _add(self, name, transport):
        if name in self.providers:
            raise DuplicateNameError(name)
        self.providers[name] = ProviderConfig(name=name, transport=transport)

    def create_stdio_provider(self, name, command, args, env):
        self.calls.append(("create_stdio_provider", name, command, list(args), dict(env)))
        self._add(name, StdioTransport(command=command, args=args, env=env))

    def create_sse_provider(self, name, url, headers):
        self.calls.append(("create_sse_provider", name, url, list(headers)))
        self._add(name, SseTransport(url=url, headers=headers))

    def update_stdio_provider(self, name, command, args, env):
        self.calls.append(("update_stdio_provider", name, command, list(args), dict(env)))
        provider = self._require(name)
        provider.transport = StdioTransport(command=command, args=args, env=env)

    def update_sse_provider(self, name, url, headers):
        self.calls.append(("update_sse_provider", name, url, list(headers)))
        provider = self._require(name)
        provider.transport = SseTransport(url=url, headers=headers)

    def delete_provider(self, name):
        self.calls.append(("delete_provider", name))
        self._require(name)
        del self.providers[name]

    def enable_provider(self, name):
        self.calls.append(("enable_provider", name))
        provider = self._require(name)
        provider.enabled = True
        provider.active = True

    def disable_provider(self, name):
        self.calls.append(("disable_provider", name))
        self._require(name).active = False

    def set_provider_enabled(self, name, enabled):
        self.calls.append(("set_provider_enabled", name, enabled))
        if self.fail_set_enabled is not None:
            raise self.fail_set_enabled
        provider = self._require(name)
        provider.enabled = enabled
        if not enabled:
            provider.active = False

    # -- Settings -------------------------------------------------------------

    def get_settings(self):
        return self.settings

    def update_settings(self, settings):
        self.settings = settings

    def test_connection(self):
        if not self.settings.base_url:
            raise TransportError("API returned status code 401")

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class RecordingWindow(WindowHost):
    def __init__(self):
        self.sizes: list[tuple[int, int]] = []
        self.hidden = 0

    def set_window_size(self, width, height):
        self.sizes.append((width, height))

    def hide_window(self):
        self.hidden += 1

    @property
    def size(self):
        return self.sizes[-1] if self.sizes else None


class DeferredRunner(TaskRunner):
    """Holds submitted tasks until the test runs them."""

    def __init__(self):
        self.tasks = []

    def submit(self, fn, on_success=None, on_error=None):
        self.tasks.append((fn, on_success, on_error))

    def finish(self, index=0):
        fn, on_success, on_error = self.tasks.pop(index)
        try:
            result = fn()
        except Exception as exc:
            on_error(exc)
        else:
            on_success(result)


class SequentialIds:
    """Predictable request ids: req-1, req-2, ..."""

    def __init__(self):
        self.n = 0

    def __call__(self):
        self.n += 1
        return f"req-{self.n}"


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def window():
    return RecordingWindow()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def controller(backend, bus, window, scheduler):
    ctrl = PromptController(
        backend,
        bus,
        window,
        runner=InlineTaskRunner(),
        scheduler=scheduler,
        request_ids=SequentialIds(),
    )
    ctrl.start()
    yield ctrl
    ctrl.close()


@pytest.fixture
def registry(backend):
    return ProviderRegistryClient(backend)


@pytest.fixture
def provider_settings(registry, scheduler):
    return ProviderSettings(registry, scheduler)


@pytest.fixture
def deferred_runner():
    return DeferredRunner()
