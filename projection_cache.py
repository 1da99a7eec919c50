# projection_cache.py
#
# TTL cache for fetched projections, keyed by "season:week". The owner
# creates one and passes it to whoever fetches; there is no module-level
# instance.

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

# key -> (fetched_at, payload)
Entries = Dict[str, Tuple[float, Any]]


def cache_key(season: Any, week: Any) -> str:
    return f"{season}:{week}"


class ProjectionCache:
    """
    Writers build a new entries dict and swap it in under a lock, so a
    reader always sees either the old mapping or the new one.
    """

    def __init__(
        self,
        ttl_seconds: float = 30 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Entries = {}

    def _fresh(self, entry: Optional[Tuple[float, Any]]) -> bool:
        return entry is not None and self._clock() - entry[0] < self.ttl_seconds

    def get(self, season: Any, week: Any) -> Optional[Any]:
        entry = self._entries.get(cache_key(season, week))
        return entry[1] if self._fresh(entry) else None

    def put(self, season: Any, week: Any, payload: Any) -> None:
        with self._lock:
            entries = dict(self._entries)
            entries[cache_key(season, week)] = (self._clock(), payload)
            self._entries = entries

    def peek(self, season: Any, week: Any) -> Optional[Any]:
        """Last stored payload, even when expired."""
        entry = self._entries.get(cache_key(season, week))
        return entry[1] if entry is not None else None

    def timestamp(self, season: Any, week: Any) -> Optional[float]:
        entry = self._entries.get(cache_key(season, week))
        return entry[0] if entry is not None else None

    def get_or_fetch(self, season: Any, week: Any, fetch: Callable[[], Any]) -> Any:
        cached = self.get(season, week)
        if cached is not None:
            age = self._clock() - (self.timestamp(season, week) or 0.0)
            print(f"[Projections] Using cached projections for {cache_key(season, week)} ({age:.0f}s old)")
            return cached
        payload = fetch()
        self.put(season, week, payload)
        return payload

    def clear(self, season: Any = None, week: Any = None) -> None:
        with self._lock:
            if season is not None and week is not None:
                entries = dict(self._entries)
                entries.pop(cache_key(season, week), None)
                self._entries = entries
            else:
                self._entries = {}
