import json
import logging

from smart_spotlight.core.config import Config, configure_logging, default_config_dir


def test_first_run_writes_defaults(tmp_path):
    config = Config(config_dir=tmp_path)
    saved = json.loads((tmp_path / "config.json").read_text())
    assert saved["hotkey"] == "Ctrl+Alt+Space"
    assert config["suggestion_debounce_ms"] == 150
    assert config.get("success_display_ms") == 1500


def test_missing_keys_are_filled_from_defaults(tmp_path):
    (tmp_path / "config.json").write_text(json.dumps({"hotkey": "Ctrl+Shift+K"}))
    config = Config(config_dir=tmp_path)
    assert config["hotkey"] == "Ctrl+Shift+K"
    assert config["request_timeout_s"] == 10.0


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    (tmp_path / "config.json").write_text("{oops")
    assert Config(config_dir=tmp_path)["host_url"] == "http://127.0.0.1:17123"


def test_set_persists(tmp_path):
    Config(config_dir=tmp_path).set("hotkey", "Ctrl+Alt+P")
    assert Config(config_dir=tmp_path)["hotkey"] == "Ctrl+Alt+P"


def test_host_url_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv("SMART_SPOTLIGHT_HOST_URL", "http://127.0.0.1:9999")
    assert Config(config_dir=tmp_path).host_url == "http://127.0.0.1:9999"


def test_home_override(tmp_path, monkeypatch):
    monkeypatch.setenv("SMART_SPOTLIGHT_HOME", str(tmp_path))
    assert default_config_dir() == tmp_path


def test_dev_mode_enables_debug(monkeypatch):
    monkeypatch.setenv("SMART_SPOTLIGHT_DEV", "true")
    configure_logging()
    assert logging.getLogger("smart_spotlight").level == logging.DEBUG
    configure_logging(debug=False)
    assert logging.getLogger("smart_spotlight").level == logging.INFO
