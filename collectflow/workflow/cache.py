"""Short-lived snapshot cache for derived views."""

from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from functools import lru_cache
from threading import Lock
from typing import Any

from collectflow.core.config import get_config

WORKFLOWS_VIEW = "workflows"
PROMISES_VIEW = "promises"


class SnapshotCache:
    """Caches computed views per ``(view, *key)`` for ``ttl_seconds``.

    Writers call ``invalidate`` with the views they affect so the next read
    recomputes from the ledger.
    """

    def __init__(
        self,
        ttl_seconds: float,
        view_ttls: dict[str, float] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.view_ttls = dict(view_ttls or {})
        self._clock = clock
        self._entries: dict[tuple[Hashable, ...], tuple[float, Any]] = {}
        self._lock = Lock()

    def get(self, view: str, *key: Hashable) -> Any | None:
        with self._lock:
            entry = self._entries.get((view, *key))
            if entry is None:
                return None
            stored_at, value = entry
            if self._expired(view, stored_at, self._clock()):
                del self._entries[(view, *key)]
                return None
            return value

    def put(self, view: str, *key: Hashable, value: Any) -> None:
        with self._lock:
            now = self._clock()
            stale = [k for k, (stored_at, _) in self._entries.items() if self._expired(k[0], stored_at, now)]
            for entry_key in stale:
                del self._entries[entry_key]
            self._entries[(view, *key)] = (now, value)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, view: str, stored_at: float, now: float) -> bool:
        return now - stored_at >= self.view_ttls.get(view, self.ttl_seconds)

    def get_or_compute(self, view: str, *key: Hashable, compute: Callable[[], Any]) -> Any:
        cached = self.get(view, *key)
        if cached is not None:
            return cached
        value = compute()
        self.put(view, *key, value=value)
        return value

    def invalidate(self, *views: str) -> None:
        """Drop every entry of the given views, or everything when none are named."""
        with self._lock:
            if not views:
                self._entries.clear()
                return
            for entry_key in [k for k in self._entries if k[0] in views]:
                del self._entries[entry_key]


@lru_cache(maxsize=1)
def get_snapshot_cache() -> SnapshotCache:
    """Process-wide cache shared by readers and writers."""
    config = get_config()
    return SnapshotCache(
        ttl_seconds=config.WORKFLOW_CACHE_TTL_SECONDS,
        view_ttls={PROMISES_VIEW: config.PROMISE_CACHE_TTL_SECONDS},
    )
