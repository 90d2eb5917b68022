import httpx
import pytest

from smart_spotlight.common.models import AppSettings
from smart_spotlight.core.errors import TransportError
from smart_spotlight.host.settings_store import DEFAULT_MODELS, SettingsStore


def test_defaults_come_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("SPOT_AI_API_ENDPOINT", "http://env/v1")
    monkeypatch.setenv("SPOT_AI_API_KEY", "secret")
    monkeypatch.setenv("SPOT_AI_MODEL", "gpt-4")
    store = SettingsStore(tmp_path / "settings.json")
    settings = store.get()
    assert settings.base_url == "http://env/v1"
    assert settings.api_key == "secret"
    assert settings.available_models == DEFAULT_MODELS
    assert (tmp_path / "settings.json").exists()


def test_update_persists(tmp_path):
    path = tmp_path / "settings.json"
    SettingsStore(path).update(AppSettings(base_url="http://x", model="m", available_models=["m"]))
    assert SettingsStore(path).get().model == "m"


def test_test_connection_posts_small_completion(tmp_path):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={})

    store = SettingsStore(tmp_path / "settings.json", transport=httpx.MockTransport(handler))
    store.update(AppSettings(base_url="http://llm/v1/", api_key="k", model="gpt-4"))
    store.test_connection()
    request = seen[0]
    assert str(request.url) == "http://llm/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer k"
    assert b'"max_tokens":5' in request.content.replace(b" ", b"")


def test_test_connection_reports_status(tmp_path):
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="oops"))
    store = SettingsStore(tmp_path / "settings.json", transport=transport)
    store.update(AppSettings(base_url="http://llm/v1"))
    with pytest.raises(TransportError, match="API returned status code 500"):
        store.test_connection()
