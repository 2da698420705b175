"""Query history: the most recent batches of checked references.

Each history entry is the ordered list of cleaned reference strings from one
batch run. Entries are kept newest first, deduplicated by exact sequence
equality, and bounded to ``limit`` entries.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10


class HistoryStore(ABC):
    """Base class for history repositories."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self.limit = max(limit, 1)

    @abstractmethod
    def load(self) -> list[list[str]]:
        """Return stored entries, newest first."""

    @abstractmethod
    def _write(self, entries: list[list[str]]) -> None:
        """Replace all stored entries."""

    def append(self, entry: Sequence[str]) -> None:
        """Add an entry as the newest one.

        An identical existing entry is moved to the front instead of being
        duplicated. The oldest entries are dropped beyond ``limit``.
        """
        new_entry = list(entry)
        if not new_entry:
            return
        entries = [e for e in self.load() if e != new_entry]
        entries.insert(0, new_entry)
        self._write(entries[: self.limit])

    def clear(self) -> None:
        """Remove all entries."""
        self._write([])


class InMemoryHistoryStore(HistoryStore):
    """History kept in process memory only."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        super().__init__(limit)
        self._entries: list[list[str]] = []

    def load(self) -> list[list[str]]:
        return [list(e) for e in self._entries]

    def _write(self, entries: list[list[str]]) -> None:
        self._entries = [list(e) for e in entries]


class JsonHistoryStore(HistoryStore):
    """Thread-safe history persisted to a JSON file.

    A missing or unreadable file is treated as an empty history.
    """

    def __init__(self, path: str, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        """Initialize the history store.

        Args:
            path: Path to the JSON history file
            limit: Maximum number of entries to keep
        """
        super().__init__(limit)
        self.path = os.path.expanduser(path)
        self.lock = threading.Lock()

    def load(self) -> list[list[str]]:
        with self.lock:
            if not os.path.exists(self.path):
                return []
            try:
                with open(self.path, encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Ignoring unreadable history file %s: %s", self.path, e)
                return []
        if not isinstance(data, list):
            return []
        return [[str(ref) for ref in entry] for entry in data if isinstance(entry, list)][: self.limit]

    def _write(self, entries: list[list[str]]) -> None:
        """Save entries to disk atomically."""
        with self.lock:
            directory = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(directory, exist_ok=True)
            tmp = tempfile.NamedTemporaryFile(
                "w", delete=False, encoding="utf-8", suffix=".json", prefix=".tmp_history_", dir=directory
            )
            try:
                with tmp:
                    json.dump(entries, tmp, indent=2, ensure_ascii=False)
                    tmp.flush()
                    os.fsync(tmp.fileno())
                os.replace(tmp.name, self.path)
            except Exception:
                os.unlink(tmp.name)
                raise
