from __future__ import annotations

import logging
from typing import Optional

from ..cache.memory_cache import CacheKeys, MemoryCache
from ..core.constants import CACHE_TTL_SETTINGS, DEFAULT_TOLERANCE_MINUTES, TOLERANCE_SETTING_KEY
from .repository import SettingsRepository

logger = logging.getLogger(__name__)


class SystemSettingsService:
    """Settings lookups through the shared read-through cache.

    Deployment settings give the defaults; a ``system_settings`` row overrides them.
    """

    def __init__(
        self,
        settings: SettingsRepository,
        cache: MemoryCache,
        *,
        default_tolerance_minutes: int = DEFAULT_TOLERANCE_MINUTES,
        ttl_seconds: float = CACHE_TTL_SETTINGS,
    ):
        self._settings = settings
        self._cache = cache
        self._default_tolerance = int(default_tolerance_minutes)
        self._ttl = ttl_seconds

    def get(self, key: str) -> Optional[str]:
        return self._cache.get_or_fetch(CacheKeys.setting(key), lambda: self._settings.get_value(key), self._ttl)

    def get_int(self, key: str, default: int) -> int:
        raw = self.get(key)
        if raw is None or not str(raw).strip():
            return default
        try:
            return int(str(raw).strip())
        except ValueError:
            logger.warning("Setting %s has non-integer value %r; using %s", key, raw, default)
            return default

    def tolerance_minutes(self) -> int:
        value = self.get_int(TOLERANCE_SETTING_KEY, self._default_tolerance)
        if value < 0:
            logger.warning("Setting %s is negative (%s); using %s", TOLERANCE_SETTING_KEY, value, self._default_tolerance)
            return self._default_tolerance
        return value

    def invalidate(self) -> int:
        return self._cache.invalidate_prefix(CacheKeys.SETTINGS)
