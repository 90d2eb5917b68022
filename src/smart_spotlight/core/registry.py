"""Tool-provider registry: backend client, form drafts and the settings screen state.

The backend owns the registry. Every mutation here is followed by a full
re-read; nothing is patched locally.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from smart_spotlight.common.models import ProviderConfig, SseTransport, StdioTransport
from smart_spotlight.core.backend import BackendClient
from smart_spotlight.core.errors import NotFoundError, ValidationError
from smart_spotlight.core.runtime import InlineTaskRunner, ManualScheduler, Scheduler, TaskRunner, TimerHandle

logger = logging.getLogger(__name__)

KIND_STDIO = "stdio"
KIND_SSE = "sse"

SUCCESS_DISPLAY_MS = 1500

_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
#  Draft text parsing
# ---------------------------------------------------------------------------

def parse_args(raw: str) -> list[str]:
    """Split on runs of whitespace; blank input yields no arguments."""
    raw = raw.strip()
    if not raw:
        return []
    return _WHITESPACE.split(raw)


def parse_env(raw: str) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines. Lines without ``=`` are dropped; later keys win."""
    env: dict[str, str] = {}
    for line in raw.split("\n"):
        if not line.strip():
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key:
            continue
        env[key] = value.strip()
    return env


def parse_headers(raw: str) -> list[str]:
    """One raw header line per non-blank line, trimmed, not split."""
    return [line.strip() for line in raw.split("\n") if line.strip()]


def format_env(env: dict[str, str]) -> str:
    return "\n".join(f"{key}={value}" for key, value in env.items())


# ---------------------------------------------------------------------------
#  Form draft
# ---------------------------------------------------------------------------

@dataclass
class ProviderFormDraft:
    """UI staging area for create/edit. Never sent to the backend as-is."""

    name: str = ""
    kind: str = KIND_STDIO
    enabled: bool = True
    command: str = ""
    args_text: str = ""
    env_text: str = ""
    url: str = ""
    headers_text: str = ""

    @classmethod
    def from_provider(cls, provider: ProviderConfig) -> "ProviderFormDraft":
        transport = provider.transport
        draft = cls(name=provider.name, kind=transport.type, enabled=provider.enabled)
        if isinstance(transport, StdioTransport):
            draft.command = transport.command
            draft.args_text = " ".join(transport.args)
            draft.env_text = format_env(transport.env)
        elif isinstance(transport, SseTransport):
            draft.url = transport.url
            draft.headers_text = "\n".join(transport.headers)
        else:
            raise TypeError(f"unsupported transport: {type(transport).__name__}")
        return draft

    def validation_error(self) -> Optional[str]:
        if not self.name.strip():
            return "Name is required"
        if self.kind == KIND_STDIO:
            if not self.command.strip():
                return "Command is required for stdio providers"
        elif self.kind == KIND_SSE:
            if not self.url.strip():
                return "URL is required for SSE providers"
        else:
            return f"Unknown transport type: {self.kind}"
        return None

    @property
    def can_save(self) -> bool:
        return self.validation_error() is None

    def to_transport(self):
        """Parse the raw text fields into a typed transport payload."""
        message = self.validation_error()
        if message:
            raise ValidationError(message)
        if self.kind == KIND_STDIO:
            return StdioTransport(
                command=self.command.strip(),
                args=parse_args(self.args_text),
                env=parse_env(self.env_text),
            )
        return SseTransport(url=self.url.strip(), headers=parse_headers(self.headers_text))

    def to_config(self) -> ProviderConfig:
        return ProviderConfig(
            name=self.name.strip(),
            transport=self.to_transport(),
            enabled=self.enabled,
        )


# ---------------------------------------------------------------------------
#  Registry client
# ---------------------------------------------------------------------------

class ProviderRegistryClient:
    """Registry operations, each followed by a full re-fetch on success."""

    def __init__(self, backend: BackendClient):
        self._backend = backend
        self.providers: list[ProviderConfig] = []

    def get(self, name: str) -> Optional[ProviderConfig]:
        for provider in self.providers:
            if provider.name == name:
                return provider
        return None

    def list(self) -> list[ProviderConfig]:
        self.providers = list(self._backend.list_providers())
        return self.providers

    def create(self, config: ProviderConfig) -> list[ProviderConfig]:
        transport = config.transport
        if isinstance(transport, StdioTransport):
            self._backend.create_stdio_provider(config.name, transport.command, transport.args, transport.env)
        elif isinstance(transport, SseTransport):
            self._backend.create_sse_provider(config.name, transport.url, transport.headers)
        else:
            raise TypeError(f"unsupported transport: {type(transport).__name__}")
        logger.info("Created %s provider %s", transport.type, config.name)
        return self.list()

    def update(self, config: ProviderConfig) -> list[ProviderConfig]:
        transport = config.transport
        existing = self.get(config.name)
        if existing is not None and existing.kind != transport.type:
            raise ValidationError(
                f"cannot change transport of {config.name} from {existing.kind} to {transport.type}"
            )
        if isinstance(transport, StdioTransport):
            self._backend.update_stdio_provider(config.name, transport.command, transport.args, transport.env)
        elif isinstance(transport, SseTransport):
            self._backend.update_sse_provider(config.name, transport.url, transport.headers)
        else:
            raise TypeError(f"unsupported transport: {type(transport).__name__}")
        logger.info("Updated provider %s", config.name)
        return self.list()

    def delete(self, name: str) -> list[ProviderConfig]:
        self._backend.delete_provider(name)
        logger.info("Deleted provider %s", name)
        return self.list()

    def set_enabled(self, name: str, enabled: bool) -> list[ProviderConfig]:
        self._backend.set_provider_enabled(name, enabled)
        return self.list()

    def enable(self, name: str) -> list[ProviderConfig]:
        self._backend.enable_provider(name)
        logger.info("Enabled provider %s", name)
        return self.list()

    def disable(self, name: str) -> list[ProviderConfig]:
        self._backend.disable_provider(name)
        logger.info("Disabled provider %s", name)
        return self.list()


# ---------------------------------------------------------------------------
#  Settings screen state
# ---------------------------------------------------------------------------

@dataclass
class ActionStatus:
    loading: bool = False
    success: bool = False
    error: str = ""


MODE_CREATE = "create"
MODE_EDIT = "edit"


class ProviderSettings:
    """State and actions of the provider registry screen.

    Backend work goes through the TaskRunner; outcomes come back through its
    callbacks, which the Qt runner delivers on the UI thread. The view
    re-renders from ``on_change``. While an action is in flight further
    actions are refused.
    """

    def __init__(
        self,
        registry: ProviderRegistryClient,
        scheduler: Optional[Scheduler] = None,
        success_display_ms: int = SUCCESS_DISPLAY_MS,
        runner: Optional[TaskRunner] = None,
    ):
        self.registry = registry
        self._scheduler = scheduler or ManualScheduler()
        self._runner = runner or InlineTaskRunner()
        self.success_display_ms = success_display_ms
        self.selected: Optional[ProviderConfig] = None
        self.mode: Optional[str] = None
        self.draft = ProviderFormDraft()
        self.status = ActionStatus()
        self.is_loading = True
        self.on_change: Callable[[], None] = lambda: None
        self._status_timer: Optional[TimerHandle] = None

    @property
    def providers(self) -> list[ProviderConfig]:
        return self.registry.providers

    @property
    def form_open(self) -> bool:
        return self.mode is not None

    @property
    def busy(self) -> bool:
        return self.status.loading

    # -- Loading / selection --------------------------------------------------

    def load(self) -> None:
        self.is_loading = True
        self.on_change()

        def loaded(_providers) -> None:
            self.is_loading = False
            self._refresh_selected()
            self.on_change()

        def failed(exc: Exception) -> None:
            logger.warning("Error fetching providers: %s", exc)
            self.is_loading = False
            self.on_change()

        self._runner.submit(self.registry.list, on_success=loaded, on_error=failed)

    def select(self, name: Optional[str]) -> None:
        self.selected = self.registry.get(name) if name else None
        self.on_change()

    # -- Form -----------------------------------------------------------------

    def begin_create(self) -> None:
        self.mode = MODE_CREATE
        self.draft = ProviderFormDraft()
        self.on_change()

    def begin_edit(self, provider: ProviderConfig) -> None:
        self.mode = MODE_EDIT
        self.draft = ProviderFormDraft.from_provider(provider)
        self.on_change()

    def cancel_form(self) -> None:
        self._close_form()
        self.on_change()

    def save(self) -> bool:
        """Parse the draft, then create or update and store the enabled flag.

        Returns False when nothing was sent (invalid draft or busy).
        """
        if self.busy:
            return False
        try:
            config = self.draft.to_config()
        except ValidationError as exc:
            self.status = ActionStatus(error=str(exc))
            self.on_change()
            return False

        editing = self.mode == MODE_EDIT
        created: list[str] = []

        def work() -> None:
            if editing:
                self.registry.update(config)
            else:
                self.registry.create(config)
                created.append(config.name)
            self.registry.set_enabled(config.name, config.enabled)

        def failed(exc: Exception) -> None:
            if created and self.mode == MODE_CREATE:
                # The provider exists now; a retry must update it
                self.mode = MODE_EDIT
            self._fail(f"Failed to save server: {exc}")

        self._start(work, failed, refresh=config.name, close_form=True)
        return True

    # -- List actions ---------------------------------------------------------

    def delete(self, name: str) -> bool:
        if self.busy:
            return False

        def done(_result) -> None:
            if self.selected is not None and self.selected.name == name:
                self.selected = None
            self._succeed()

        self._begin_action()
        self._runner.submit(
            lambda: self.registry.delete(name),
            on_success=done,
            on_error=lambda exc: self._fail(f"Failed to delete server: {exc}"),
        )
        return True

    def toggle_active(self, name: str) -> bool:
        """Start or stop the provider's live connection."""
        if self.busy:
            return False
        provider = self.registry.get(name)
        if provider is None:
            self._fail(f"Failed to toggle server status: {NotFoundError(name)}")
            return False
        action = self.registry.disable if provider.active else self.registry.enable
        self._start(
            lambda: action(name),
            lambda exc: self._fail(f"Failed to toggle server status: {exc}"),
            refresh=name,
        )
        return True

    def toggle_enabled(self, name: str) -> bool:
        if self.busy:
            return False
        provider = self.registry.get(name)
        if provider is None:
            self._fail(f"Failed to toggle server enabled state: {NotFoundError(name)}")
            return False
        enabled = not provider.enabled
        self._start(
            lambda: self.registry.set_enabled(name, enabled),
            lambda exc: self._fail(f"Failed to toggle server enabled state: {exc}"),
            refresh=name,
        )
        return True

    # -- Helpers --------------------------------------------------------------

    def _start(
        self,
        work: Callable[[], object],
        on_error: Callable[[Exception], None],
        refresh: str,
        close_form: bool = False,
    ) -> None:
        def done(_result) -> None:
            self._refresh_selected(refresh)
            self._succeed(close_form=close_form)

        self._begin_action()
        self._runner.submit(work, on_success=done, on_error=on_error)

    def _begin_action(self) -> None:
        self._cancel_status_timer()
        self.status = ActionStatus(loading=True)
        self.on_change()

    def _fail(self, message: str) -> None:
        logger.warning(message)
        self.status = ActionStatus(error=message)
        self.on_change()

    def _succeed(self, close_form: bool = False) -> None:
        self.status = ActionStatus(success=True)
        self.on_change()

        def clear() -> None:
            self._status_timer = None
            if close_form:
                self._close_form()
            self.status.success = False
            self.on_change()

        self._status_timer = self._scheduler.call_later(self.success_display_ms, clear)

    def _cancel_status_timer(self) -> None:
        if self._status_timer is not None:
            self._status_timer.cancel()
            self._status_timer = None

    def _refresh_selected(self, name: Optional[str] = None) -> None:
        if self.selected is not None and (name is None or self.selected.name == name):
            self.selected = self.registry.get(self.selected.name)

    def _close_form(self) -> None:
        self.mode = None
        self.draft = ProviderFormDraft()
