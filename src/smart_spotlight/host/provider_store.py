"""Provider registry persistence for the host.

Two JSON files in the host's data directory:
- mcp-servers.json: {"mcpServers": {name: {<transport fields>, "enabled": bool}}}
- active-mcp-servers.json: {"activeServers": [name, ...]}

A server entry with a "url" key is an SSE provider; anything else is stdio.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from smart_spotlight.common.models import ProviderConfig, SseTransport, StdioTransport
from smart_spotlight.core.errors import DuplicateNameError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SERVERS_FILE_NAME = "mcp-servers.json"
ACTIVE_FILE_NAME = "active-mcp-servers.json"


def _entry_to_transport(entry: dict):
    if "url" in entry:
        return SseTransport(url=entry.get("url") or "", headers=list(entry.get("headers") or []))
    return StdioTransport(
        command=entry.get("command") or "",
        args=list(entry.get("args") or []),
        env=dict(entry.get("env") or {}),
    )


def _transport_to_entry(transport, enabled: bool) -> dict:
    if isinstance(transport, SseTransport):
        entry = {"url": transport.url}
        if transport.headers:
            entry["headers"] = list(transport.headers)
    else:
        entry = {"command": transport.command, "args": list(transport.args)}
        if transport.env:
            entry["env"] = dict(transport.env)
    entry["enabled"] = enabled
    return entry


def _read_json(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Error reading %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


class ProviderStore:
    """Durable provider registry. All methods are thread-safe."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.servers_file = self.data_dir / SERVERS_FILE_NAME
        self.active_file = self.data_dir / ACTIVE_FILE_NAME
        self._lock = threading.RLock()
        self._servers: dict[str, dict] = {}
        self._active: list[str] = []
        self.load()

    def load(self):
        """Load both files from disk, treating missing files as empty"""
        with self._lock:
            servers = _read_json(self.servers_file).get("mcpServers") or {}
            self._servers = {name: dict(entry) for name, entry in servers.items() if isinstance(entry, dict)}
            active = _read_json(self.active_file).get("activeServers") or []
            self._active = [name for name in active if name in self._servers]

    def _save_servers(self):
        self.servers_file.write_text(
            json.dumps({"mcpServers": self._servers}, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )

    def _save_active(self):
        self.active_file.write_text(
            json.dumps({"activeServers": self._active}, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )

    def _require(self, name: str) -> dict:
        entry = self._servers.get(name)
        if entry is None:
            raise NotFoundError(name)
        return entry

    def _to_config(self, name: str, entry: dict) -> ProviderConfig:
        return ProviderConfig(
            name=name,
            transport=_entry_to_transport(entry),
            enabled=bool(entry.get("enabled", True)),
            active=name in self._active,
        )

    # -- Queries --------------------------------------------------------------

    def list(self) -> list[ProviderConfig]:
        with self._lock:
            return [self._to_config(name, self._servers[name]) for name in sorted(self._servers)]

    def get(self, name: str) -> Optional[ProviderConfig]:
        with self._lock:
            entry = self._servers.get(name)
            return None if entry is None else self._to_config(name, entry)

    def active_names(self) -> list[str]:
        with self._lock:
            return list(self._active)

    # -- Mutations ------------------------------------------------------------

    def add(self, name: str, transport) -> ProviderConfig:
        """Register a new provider; new providers start enabled and inactive."""
        if not name.strip():
            raise ValidationError("Name is required")
        with self._lock:
            if name in self._servers:
                raise DuplicateNameError(name)
            self._servers[name] = _transport_to_entry(transport, enabled=True)
            self._save_servers()
            logger.info("Added %s provider %s", transport.type, name)
            return self._to_config(name, self._servers[name])

    def update(self, name: str, transport) -> ProviderConfig:
        """Replace the transport payload; the enabled flag is kept."""
        with self._lock:
            entry = self._require(name)
            current = _entry_to_transport(entry)
            if current.type != transport.type:
                raise ValidationError(
                    f"cannot change transport of {name} from {current.type} to {transport.type}"
                )
            self._servers[name] = _transport_to_entry(transport, enabled=bool(entry.get("enabled", True)))
            self._save_servers()
            logger.info("Updated provider %s", name)
            return self._to_config(name, self._servers[name])

    def delete(self, name: str):
        with self._lock:
            self._require(name)
            del self._servers[name]
            if name in self._active:
                self._active.remove(name)
                self._save_active()
            self._save_servers()
            logger.info("Deleted provider %s", name)

    def set_enabled(self, name: str, enabled: bool):
        """Store the intent flag. Turning it off also stops the provider."""
        with self._lock:
            entry = self._require(name)
            entry["enabled"] = enabled
            self._save_servers()
            if not enabled and name in self._active:
                self._active.remove(name)
                self._save_active()

    def enable(self, name: str):
        """Mark the provider enabled and add it to the active set"""
        with self._lock:
            entry = self._require(name)
            if not entry.get("enabled", True):
                entry["enabled"] = True
                self._save_servers()
            if name not in self._active:
                self._active.append(name)
                self._save_active()
            logger.info("Activated provider %s", name)

    def disable(self, name: str):
        """Remove the provider from the active set; a no-op when already inactive"""
        with self._lock:
            self._require(name)
            if name in self._active:
                self._active.remove(name)
                self._save_active()
                logger.info("Deactivated provider %s", name)
