"""Client configuration file and logging setup"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".smart_spotlight"


def default_config_dir() -> Path:
    """Per-user directory for client config and host data."""
    override = os.environ.get("SMART_SPOTLIGHT_HOME")
    if override:
        return Path(override)
    return Path.home() / CONFIG_DIR_NAME


def is_dev_mode() -> bool:
    return os.environ.get("SMART_SPOTLIGHT_DEV", "").strip().lower() == "true"


def configure_logging(debug: Optional[bool] = None) -> None:
    """Install a single stream handler on the package logger."""
    if debug is None:
        debug = is_dev_mode()
    root = logging.getLogger("smart_spotlight")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    if debug:
        logger.info("Running in development mode")


class Config:
    """JSON-backed client settings under the per-user config directory"""

    def __init__(self, config_file: str = "config.json", config_dir: Optional[Path] = None):
        """
        Open (or create) the config file

        Args:
            config_file: Name of the config file
            config_dir: Directory holding it (defaults to ~/.smart_spotlight)
        """
        self.config_dir = Path(config_dir) if config_dir is not None else default_config_dir()
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file = self.config_dir / config_file
        self._config: Dict[str, Any] = {}
        self.load()

    def load(self):
        """Load configuration from file, filling in missing defaults"""
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Error loading config: %s", e)
                loaded = {}
            self._config = {**self._default_config(), **(loaded if isinstance(loaded, dict) else {})}
        else:
            self._config = self._default_config()
            self.save()

    def save(self):
        """Write the current values back to disk"""
        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2)
        except OSError as e:
            logger.warning("Error saving config: %s", e)

    def _default_config(self) -> Dict[str, Any]:
        """Values written on first run and used for missing keys"""
        return {
            "host_url": "http://127.0.0.1:17123",
            "hotkey": "Ctrl+Alt+Space",
            "suggestion_debounce_ms": 150,
            "success_display_ms": 1500,
            "request_timeout_s": 10.0,
        }

    @property
    def host_url(self) -> str:
        return os.environ.get("SMART_SPOTLIGHT_HOST_URL") or self.get("host_url")

    def get(self, key: str, default: Any = None) -> Any:
        """Value for key, or default"""
        return self._config.get(key, default)

    def set(self, key: str, value: Any):
        """Store a value and persist immediately"""
        self._config[key] = value
        self.save()

    def __getitem__(self, key: str) -> Any:
        return self._config.get(key)

    def __setitem__(self, key: str, value: Any):
        self.set(key, value)
