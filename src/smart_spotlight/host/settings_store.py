"""Model API settings for the host, plus the connection check."""

import json
import logging
import os
import threading
from pathlib import Path

import httpx

from smart_spotlight.common.models import AppSettings
from smart_spotlight.core.errors import TransportError

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "settings.json"
TEST_TIMEOUT_S = 10.0

DEFAULT_MODELS = [
    "google/gemini-2.5-pro-exp-03-25",
    "gpt-4",
    "gpt-3.5-turbo",
    "anthropic/claude-3-opus",
    "anthropic/claude-3-sonnet",
    "anthropic/claude-2",
]


def default_settings() -> AppSettings:
    """Settings seeded from the SPOT_AI_* environment variables"""
    return AppSettings(
        base_url=os.environ.get("SPOT_AI_API_ENDPOINT", ""),
        api_key=os.environ.get("SPOT_AI_API_KEY", ""),
        model=os.environ.get("SPOT_AI_MODEL", ""),
        available_models=list(DEFAULT_MODELS),
    )


class SettingsStore:
    """Stores AppSettings as JSON; missing or unreadable files fall back to defaults."""

    def __init__(self, path: Path, transport: httpx.BaseTransport | None = None):
        self.path = Path(path)
        self._transport = transport
        self._lock = threading.Lock()
        self.settings = self.load()

    def load(self) -> AppSettings:
        if not self.path.exists():
            settings = default_settings()
            try:
                self._write(settings)
            except OSError as e:
                logger.warning("Error saving default settings: %s", e)
            return settings
        try:
            settings = AppSettings.model_validate(json.loads(self.path.read_text(encoding="utf-8")))
        except (ValueError, OSError) as e:
            logger.warning("Error loading settings: %s. Using default settings.", e)
            return default_settings()
        if not settings.available_models:
            settings.available_models = list(DEFAULT_MODELS)
        return settings

    def _write(self, settings: AppSettings):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(settings.model_dump(by_alias=True), indent=2),
            encoding="utf-8",
        )

    def get(self) -> AppSettings:
        with self._lock:
            return self.settings.model_copy(deep=True)

    def update(self, settings: AppSettings):
        with self._lock:
            if not settings.available_models:
                settings = settings.model_copy(update={"available_models": list(DEFAULT_MODELS)})
            self._write(settings)
            self.settings = settings
        logger.info("Settings updated (model=%s)", settings.model)

    def test_connection(self):
        """Send a tiny chat completion; raise TransportError describing any failure"""
        settings = self.get()
        payload = {
            "model": settings.model,
            "messages": [{"role": "user", "content": "Hello, this is a test message."}],
            "max_tokens": 5,
            "temperature": 0.7,
        }
        headers = {"Authorization": f"Bearer {settings.api_key}"}
        url = settings.base_url.rstrip("/") + "/chat/completions"
        try:
            with httpx.Client(timeout=TEST_TIMEOUT_S, transport=self._transport) as client:
                response = client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"error connecting to API: {e}") from e

        if response.status_code != 200:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                raise TransportError(f"API error: {body['error'].get('message')}")
            raise TransportError(f"API returned status code {response.status_code}")
