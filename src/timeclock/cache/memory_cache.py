from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional

from cachetools import TLRUCache

from ..core.constants import CACHE_TTL_MEDIUM


@dataclass(frozen=True)
class _Item:
    value: Any
    ttl: float


@dataclass(frozen=True)
class MemoryCacheStats:
    hits: int
    misses: int
    size: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return round(self.hits / total * 100, 2) if total else 0.0

    def to_dict(self) -> dict:
        return {"hits": self.hits, "misses": self.misses, "hit_rate": self.hit_rate, "size": self.size}


class MemoryCache:
    """Small per-process read-through cache with per-key TTL and hit/miss accounting.

    Shared by unrelated read paths (system settings, per-day punch views).
    Keys are plain strings namespaced with ``prefix:`` so groups can be dropped
    with :meth:`invalidate_prefix`.
    """

    def __init__(self, *, maxsize: int = 1024, timer: Callable[[], float] = time.monotonic):
        self._items: TLRUCache = TLRUCache(maxsize=maxsize, ttu=self._expires_at, timer=timer)
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _expires_at(_key: Hashable, item: _Item, now: float) -> float:
        return now + item.ttl

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                self._misses += 1
                return None
            self._hits += 1
            return item.value

    def set(self, key: str, value: Any, ttl_seconds: float = CACHE_TTL_MEDIUM) -> None:
        with self._lock:
            self._items[key] = _Item(value=value, ttl=float(ttl_seconds))

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [k for k in list(self._items.keys()) if str(k).startswith(prefix)]
            for k in doomed:
                self._items.pop(k, None)
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def get_or_fetch(self, key: str, fetch: Callable[[], Any], ttl_seconds: float = CACHE_TTL_MEDIUM) -> Any:
        """Return the cached value or call ``fetch`` and cache its result.

        ``None`` results are not cached, so absence is re-checked on the next call.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        value = fetch()
        if value is not None:
            self.set(key, value, ttl_seconds)
        return value

    def stats(self) -> MemoryCacheStats:
        with self._lock:
            self._items.expire()
            return MemoryCacheStats(hits=self._hits, misses=self._misses, size=len(self._items))


class CacheKeys:
    SETTINGS = "system:settings"

    @staticmethod
    def setting(name: str) -> str:
        return f"{CacheKeys.SETTINGS}:{name}"

    @staticmethod
    def today_punches(employee_id: int, work_date) -> str:
        return f"punches:today:{int(employee_id)}:{work_date.isoformat()}"
