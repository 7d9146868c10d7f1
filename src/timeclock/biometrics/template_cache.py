from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Tuple

import redis
from redis.exceptions import RedisError, WatchError

from ..core.constants import DEFAULT_CACHE_SOCKET_TIMEOUT_SECONDS, DEFAULT_TEMPLATE_CACHE_TTL_SECONDS
from .codec import TemplateDecodeError, decode_entry, encode_entry
from .model import CacheStats, TemplateEntry, check_template

logger = logging.getLogger(__name__)


class TemplateCache(Protocol):
    """Derived, best-effort view of the enrolled templates.

    Every operation swallows backend failures: reads report a miss (None) and
    writes report False. Callers fall back to the template store.
    """

    def connect(self) -> bool:
        raise NotImplementedError

    def is_available(self) -> bool:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def get_all(self) -> Optional[List[TemplateEntry]]:
        """Full enrolled set, or None when the cache is empty, incomplete or down."""

        raise NotImplementedError

    def populate(self, entries: Iterable[TemplateEntry]) -> bool:
        raise NotImplementedError

    def upsert_one(self, entry: TemplateEntry) -> bool:
        raise NotImplementedError

    def remove_one(self, employee_id: int) -> bool:
        raise NotImplementedError

    def invalidate_all(self) -> bool:
        raise NotImplementedError

    def stats(self) -> CacheStats:
        raise NotImplementedError


def _cacheable(entries: Iterable[TemplateEntry]) -> List[TemplateEntry]:
    out: List[TemplateEntry] = []
    for e in entries:
        problem = check_template(e.template)
        if problem:
            logger.warning("Not caching template of employee %s: %s", e.employee_id, problem)
            continue
        out.append(e)
    return out


class RedisTemplateCache(TemplateCache):
    """Redis/Dragonfly backed template cache.

    Layout:
    - ``face:employee:{id}``  JSON entry with TTL
    - ``face:all_ids``        membership set
    - ``face:last_sync``      epoch millis of the last full sync, with TTL

    The set is only trusted while ``face:last_sync`` exists: single-entry writes
    never create an index on their own.
    """

    KEY_ENTRY = "face:employee:"
    KEY_ALL_IDS = "face:all_ids"
    KEY_LAST_SYNC = "face:last_sync"

    def __init__(
        self,
        url: str,
        *,
        ttl_seconds: int = DEFAULT_TEMPLATE_CACHE_TTL_SECONDS,
        socket_timeout: float = DEFAULT_CACHE_SOCKET_TIMEOUT_SECONDS,
        reconnect_interval: float = 30.0,
        client: Optional[redis.Redis] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._url = url
        self._ttl = int(ttl_seconds)
        self._socket_timeout = float(socket_timeout)
        self._reconnect_interval = float(reconnect_interval)
        self._client = client
        self._clock = clock
        self._available = False
        self._last_attempt: Optional[float] = None

    def _key(self, employee_id: int) -> str:
        return f"{self.KEY_ENTRY}{int(employee_id)}"

    def connect(self) -> bool:
        self._last_attempt = self._clock()
        try:
            if self._client is None:
                self._client = redis.Redis.from_url(
                    self._url,
                    socket_timeout=self._socket_timeout,
                    socket_connect_timeout=self._socket_timeout,
                    decode_responses=True,
                )
            self._client.ping()
            if not self._available:
                logger.info("Template cache connected")
            self._available = True
        except RedisError as e:
            logger.warning("Template cache unavailable: %s", e)
            self._available = False
        return self._available

    def is_available(self) -> bool:
        return self._client is not None and self._available

    def close(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
            except RedisError as e:
                logger.warning("Error closing template cache connection: %s", e)
        self._available = False
        logger.info("Template cache connection closed")

    def _ready(self) -> bool:
        if self.is_available():
            return True
        # At most one reconnect attempt per interval.
        if self._last_attempt is not None and self._clock() - self._last_attempt < self._reconnect_interval:
            return False
        return self.connect()

    def _failed(self, action: str, error: Exception) -> None:
        logger.warning("Template cache %s failed: %s", action, error)
        if isinstance(error, (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError)):
            self._available = False

    def get_all(self) -> Optional[List[TemplateEntry]]:
        if not self._ready():
            return None
        try:
            if not self._client.exists(self.KEY_LAST_SYNC):
                logger.debug("Template cache not populated")
                return None
            ids = self._client.smembers(self.KEY_ALL_IDS)
            if not ids:
                logger.debug("Template cache is empty")
                return None
            keys = [self._key(i) for i in sorted(ids, key=int)]
            values = self._client.mget(keys)
        except RedisError as e:
            self._failed("read", e)
            return None

        entries: List[TemplateEntry] = []
        for key, raw in zip(keys, values):
            if raw is None:
                logger.info("Template cache incomplete (%s expired); treating as miss", key)
                return None
            try:
                entries.append(decode_entry(raw))
            except TemplateDecodeError as e:
                logger.warning("Corrupt cache value at %s (%s); treating as miss", key, e)
                return None
        return entries

    def populate(self, entries: Iterable[TemplateEntry]) -> bool:
        if not self._ready():
            return False
        fresh = _cacheable(entries)
        fresh_ids = {str(e.employee_id) for e in fresh}
        try:
            previous = self._client.smembers(self.KEY_ALL_IDS) or set()
            pipe = self._client.pipeline(transaction=True)
            stale = [self._key(i) for i in previous if i not in fresh_ids]
            if stale:
                pipe.delete(*stale)
            pipe.delete(self.KEY_ALL_IDS)
            for e in fresh:
                pipe.set(self._key(e.employee_id), encode_entry(e), ex=self._ttl)
                pipe.sadd(self.KEY_ALL_IDS, str(e.employee_id))
            pipe.set(self.KEY_LAST_SYNC, str(int(time.time() * 1000)), ex=self._ttl)
            pipe.execute()
        except RedisError as e:
            self._failed("populate", e)
            return False

        logger.info("Template cache populated with %d entries (%d stale pruned)", len(fresh), len(stale))
        return True

    def upsert_one(self, entry: TemplateEntry) -> bool:
        if not _cacheable([entry]) or not self._ready():
            return False
        pipe = self._client.pipeline(transaction=True)
        try:
            pipe.watch(self.KEY_LAST_SYNC)
            if not pipe.exists(self.KEY_LAST_SYNC):
                logger.debug("Template cache not populated; skipping upsert of employee %s", entry.employee_id)
                return False
            pipe.multi()
            pipe.set(self._key(entry.employee_id), encode_entry(entry), ex=self._ttl)
            pipe.sadd(self.KEY_ALL_IDS, str(entry.employee_id))
            pipe.execute()
        except WatchError:
            logger.info("Template cache changed during upsert of employee %s; skipping", entry.employee_id)
            return False
        except RedisError as e:
            self._failed("upsert", e)
            return False
        finally:
            pipe.reset()
        logger.debug("Template of employee %s cached", entry.employee_id)
        return True

    def remove_one(self, employee_id: int) -> bool:
        if not self._ready():
            return False
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.delete(self._key(employee_id))
            pipe.srem(self.KEY_ALL_IDS, str(int(employee_id)))
            pipe.execute()
        except RedisError as e:
            self._failed("remove", e)
            return False
        logger.debug("Template of employee %s removed from cache", employee_id)
        return True

    def invalidate_all(self) -> bool:
        if not self._ready():
            return False
        try:
            ids = self._client.smembers(self.KEY_ALL_IDS) or set()
            keys = [self._key(i) for i in ids]
            self._client.delete(*keys, self.KEY_ALL_IDS, self.KEY_LAST_SYNC)
        except RedisError as e:
            self._failed("invalidate", e)
            return False
        logger.info("Template cache invalidated (%d entries)", len(ids))
        return True

    def stats(self) -> CacheStats:
        if not self._ready():
            return CacheStats(available=False)
        try:
            count = self._client.scard(self.KEY_ALL_IDS)
            last_sync = self._client.get(self.KEY_LAST_SYNC)
        except RedisError as e:
            self._failed("stats", e)
            return CacheStats(available=False)
        return CacheStats(
            available=True,
            enrolled_count=int(count or 0),
            last_sync=datetime.fromtimestamp(int(last_sync) / 1000) if last_sync else None,
        )


class InMemoryTemplateCache(TemplateCache):
    """Per-process template cache with the same contract as the Redis one.

    Used when no external cache is configured (single worker deployments).
    """

    def __init__(self, *, ttl_seconds: int = DEFAULT_TEMPLATE_CACHE_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[int, Tuple[TemplateEntry, float]] = {}
        self._last_sync: Optional[Tuple[float, float]] = None
        self._open = False

    def connect(self) -> bool:
        self._open = True
        return True

    def is_available(self) -> bool:
        return self._open

    def close(self) -> None:
        with self._lock:
            self._entries.clear()
            self._last_sync = None
        self._open = False

    def get_all(self) -> Optional[List[TemplateEntry]]:
        if not self._open:
            return None
        now = self._clock()
        with self._lock:
            if self._last_sync is None or self._last_sync[1] <= now or not self._entries:
                return None
            if any(expires <= now for _, expires in self._entries.values()):
                logger.info("Template cache incomplete (expired entries); treating as miss")
                return None
            return [entry for entry, _ in sorted(self._entries.values(), key=lambda item: item[0].employee_id)]

    def populate(self, entries: Iterable[TemplateEntry]) -> bool:
        if not self._open:
            return False
        now = self._clock()
        fresh = _cacheable(entries)
        with self._lock:
            self._entries = {e.employee_id: (e, now + self._ttl) for e in fresh}
            self._last_sync = (now, now + self._ttl)
        logger.info("Template cache populated with %d entries", len(fresh))
        return True

    def upsert_one(self, entry: TemplateEntry) -> bool:
        if not self._open or not _cacheable([entry]):
            return False
        with self._lock:
            if self._last_sync is None or self._last_sync[1] <= self._clock():
                return False
            self._entries[entry.employee_id] = (entry, self._clock() + self._ttl)
        return True

    def remove_one(self, employee_id: int) -> bool:
        if not self._open:
            return False
        with self._lock:
            self._entries.pop(int(employee_id), None)
        return True

    def invalidate_all(self) -> bool:
        if not self._open:
            return False
        with self._lock:
            self._entries.clear()
            self._last_sync = None
        logger.info("Template cache invalidated")
        return True

    def stats(self) -> CacheStats:
        if not self._open:
            return CacheStats(available=False)
        now = self._clock()
        with self._lock:
            count = sum(1 for _, expires in self._entries.values() if expires > now)
            last_sync = None
            if self._last_sync and self._last_sync[1] > now:
                last_sync = datetime.fromtimestamp(self._last_sync[0])
        return CacheStats(available=True, enrolled_count=count, last_sync=last_sync)


def build_template_cache(
    redis_url: Optional[str],
    *,
    ttl_seconds: int = DEFAULT_TEMPLATE_CACHE_TTL_SECONDS,
    socket_timeout: float = DEFAULT_CACHE_SOCKET_TIMEOUT_SECONDS,
) -> TemplateCache:
    if redis_url:
        return RedisTemplateCache(redis_url, ttl_seconds=ttl_seconds, socket_timeout=socket_timeout)
    return InMemoryTemplateCache(ttl_seconds=ttl_seconds)
