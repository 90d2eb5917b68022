"""FastAPI app for the local Spotlight host.

- /health: liveness check
- /v1/queries, /v1/confirmations, /v1/events: prompting and its event stream (SSE)
- /v1/history: prior queries for suggestions
- /v1/providers/...: tool-provider registry
- /v1/settings/...: model API settings
"""

from __future__ import annotations

import logging
import queue
from pathlib import Path
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

from smart_spotlight.common.models import (
    Ack,
    AppSettings,
    ConfirmationDecision,
    SetEnabledRequest,
    SseProviderRequest,
    SseTransport,
    StdioProviderRequest,
    StdioTransport,
    SubmitQueryRequest,
)
from smart_spotlight.core.config import default_config_dir
from smart_spotlight.core.errors import (
    DuplicateNameError,
    NotFoundError,
    SpotlightError,
    TransportError,
    UnknownTokenError,
    ValidationError,
)
from smart_spotlight.host.broker import EventBroker
from smart_spotlight.host.engine import CONFIRMATION_TIMEOUT_S, MockPromptEngine
from smart_spotlight.host.history_store import HISTORY_FILE_NAME, HistoryStore
from smart_spotlight.host.provider_store import ProviderStore
from smart_spotlight.host.settings_store import SETTINGS_FILE_NAME, SettingsStore

logger = logging.getLogger(__name__)

KEEPALIVE_S = 15.0

_STATUS_BY_ERROR = [
    (DuplicateNameError, 409),
    (NotFoundError, 404),
    (UnknownTokenError, 404),
    (ValidationError, 422),
    (TransportError, 502),
]


def status_for(exc: SpotlightError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def create_app(
    data_dir: Optional[Path] = None,
    step_delay: float = 0.3,
    confirmation_timeout: float = CONFIRMATION_TIMEOUT_S,
    settings_transport: Optional[httpx.BaseTransport] = None,
) -> FastAPI:
    data_dir = Path(data_dir) if data_dir is not None else default_config_dir()
    data_dir.mkdir(parents=True, exist_ok=True)

    broker = EventBroker()
    providers = ProviderStore(data_dir)
    history = HistoryStore(data_dir / HISTORY_FILE_NAME)
    settings = SettingsStore(data_dir / SETTINGS_FILE_NAME, transport=settings_transport)
    engine = MockPromptEngine(
        broker.publish,
        on_query=history.add,
        step_delay=step_delay,
        confirmation_timeout=confirmation_timeout,
    )

    app = FastAPI(title="Smart Spotlight Host", version="0.1.0")
    app.state.broker = broker
    app.state.providers = providers
    app.state.history = history
    app.state.settings = settings
    app.state.engine = engine

    @app.exception_handler(SpotlightError)
    async def spotlight_error(request: Request, exc: SpotlightError) -> JSONResponse:
        status = status_for(exc)
        logger.warning("%s %s -> %d: %s", request.method, request.url.path, status, exc)
        return JSONResponse(status_code=status, content={"detail": str(exc)})

    @app.get("/health")
    def health() -> dict:
        return {"ok": True}

    # -- Prompting ------------------------------------------------------------

    @app.post("/v1/queries")
    def submit_query(payload: SubmitQueryRequest) -> Ack:
        if not payload.text.strip():
            raise ValidationError("query is empty")
        request_id = engine.submit(payload.text, payload.request_id)
        return Ack(request_id=request_id)

    @app.post("/v1/confirmations")
    def resolve_confirmation(payload: ConfirmationDecision) -> Ack:
        engine.resolve(payload.token, payload.decision)
        return Ack()

    @app.get("/v1/events")
    def events() -> StreamingResponse:
        def stream():
            subscriber = broker.subscribe()
            try:
                yield ": connected\n\n"
                while True:
                    try:
                        event = subscriber.get(timeout=KEEPALIVE_S)
                    except queue.Empty:
                        yield ": keepalive\n\n"
                        continue
                    yield f"data: {event.model_dump_json()}\n\n"
            finally:
                broker.unsubscribe(subscriber)

        return StreamingResponse(stream(), media_type="text/event-stream")

    @app.get("/v1/history")
    def search_history(prefix: str = "") -> list[dict]:
        return [entry.model_dump(mode="json") for entry in history.search(prefix)]

    # -- Provider registry ----------------------------------------------------

    @app.get("/v1/providers")
    def list_providers() -> list[dict]:
        return [provider.model_dump() for provider in providers.list()]

    @app.post("/v1/providers/stdio", status_code=201)
    def create_stdio(payload: StdioProviderRequest) -> dict:
        transport = StdioTransport(command=payload.command, args=payload.args, env=payload.env)
        return providers.add(payload.name, transport).model_dump()

    @app.post("/v1/providers/sse", status_code=201)
    def create_sse(payload: SseProviderRequest) -> dict:
        transport = SseTransport(url=payload.url, headers=payload.headers)
        return providers.add(payload.name, transport).model_dump()

    @app.put("/v1/providers/{name:path}/stdio")
    def update_stdio(name: str, payload: StdioProviderRequest) -> dict:
        transport = StdioTransport(command=payload.command, args=payload.args, env=payload.env)
        return providers.update(name, transport).model_dump()

    @app.put("/v1/providers/{name:path}/sse")
    def update_sse(name: str, payload: SseProviderRequest) -> dict:
        transport = SseTransport(url=payload.url, headers=payload.headers)
        return providers.update(name, transport).model_dump()

    @app.delete("/v1/providers/{name:path}")
    def delete_provider(name: str) -> Ack:
        providers.delete(name)
        return Ack()

    @app.post("/v1/providers/{name:path}/enable")
    def enable_provider(name: str) -> Ack:
        providers.enable(name)
        return Ack()

    @app.post("/v1/providers/{name:path}/disable")
    def disable_provider(name: str) -> Ack:
        providers.disable(name)
        return Ack()

    @app.put("/v1/providers/{name:path}/enabled")
    def set_provider_enabled(name: str, payload: SetEnabledRequest) -> Ack:
        providers.set_enabled(name, payload.enabled)
        return Ack()

    # -- Settings -------------------------------------------------------------

    @app.get("/v1/settings")
    def get_settings() -> dict:
        return settings.get().model_dump(by_alias=True)

    @app.put("/v1/settings")
    def update_settings(payload: AppSettings) -> Ack:
        settings.update(payload)
        return Ack()

    @app.post("/v1/settings/test")
    def test_connection() -> Ack:
        settings.test_connection()
        return Ack()

    return app
