"""Persistent set of ``<zone>_<layer>`` keys that are available offline.

The registry is append-only: keys are checked and added, never removed.
Storage problems are logged and tolerated so offline operation continues
with whatever is held in memory.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Set

from logger import LogCategory, LoggableMixin


class InMemoryCacheRegistry:
    """Registry without persistence, for hosts that have no writable storage."""

    def __init__(self, keys: Iterable[str] = ()):
        self._keys: Set[str] = set(keys)
        self._lock = threading.Lock()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._keys)

    def add(self, key: str) -> None:
        with self._lock:
            self._keys.add(key)


class CacheRegistry(LoggableMixin, InMemoryCacheRegistry):
    """JSON-backed registry, by default at ``~/GridNav/cached_zones.json``."""

    def __init__(self, path: Optional[Path] = None):
        LoggableMixin.__init__(self)
        InMemoryCacheRegistry.__init__(self)
        self.path = Path(path) if path else Path.home() / "GridNav" / "cached_zones.json"
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            self.log_warning("Failed to read cache registry; starting empty",
                             exception=exc, category=LogCategory.DATA, path=str(self.path))
            return
        if not isinstance(data, list):
            self.log_warning("Ignoring malformed cache registry", category=LogCategory.DATA,
                             path=str(self.path))
            return
        self._keys.update(str(key) for key in data)

    def add(self, key: str) -> None:
        with self._lock:
            if key in self._keys:
                return
            self._keys.add(key)
            snapshot = sorted(self._keys)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
        except OSError as exc:
            self.log_error("Failed to persist cache registry", exception=exc,
                           category=LogCategory.DATA, path=str(self.path), key=key)


__all__ = ["CacheRegistry", "InMemoryCacheRegistry"]
