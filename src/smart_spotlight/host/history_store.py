"""Query history persistence. Isolates file I/O from the API layer."""

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path

from smart_spotlight.common.models import HistoryEntry

logger = logging.getLogger(__name__)

HISTORY_FILE_NAME = "history.json"
HISTORY_LIMIT = 10


class HistoryStore:
    """Prior queries, deduplicated case-insensitively, newest first on lookup."""

    def __init__(self, path: Path, limit: int = HISTORY_LIMIT):
        self.path = Path(path)
        self.limit = limit
        self._lock = threading.Lock()

    def _load(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if isinstance(data, dict) and isinstance(data.get("history"), list):
                return data["history"]
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Error reading history: %s", e)
        return []

    def _save(self, entries: list[dict]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"history": entries}, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )

    def add(self, query: str, now: datetime | None = None) -> HistoryEntry:
        """Record a query; a query already present only gets a fresh timestamp."""
        stamp = (now or datetime.now(timezone.utc)).isoformat()
        with self._lock:
            entries = self._load()
            for entry in entries:
                if entry.get("query", "").lower() == query.lower():
                    entry["timestamp"] = stamp
                    self._save(entries)
                    return HistoryEntry.model_validate(entry)

            next_id = max((entry.get("id", 0) for entry in entries), default=0) + 1
            entry = {"id": next_id, "query": query, "timestamp": stamp}
            entries.append(entry)
            self._save(entries)
            return HistoryEntry.model_validate(entry)

    def search(self, prefix: str = "") -> list[HistoryEntry]:
        """Case-insensitive prefix match, newest first, at most ``limit`` entries."""
        needle = prefix.lower()
        with self._lock:
            entries = self._load()
        matches = [
            HistoryEntry.model_validate(entry)
            for entry in entries
            if entry.get("query", "").lower().startswith(needle)
        ]
        matches.sort(key=lambda entry: entry.timestamp, reverse=True)
        return matches[: self.limit]
