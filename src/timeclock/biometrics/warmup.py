from __future__ import annotations

import logging
import threading

from ..core.exceptions import StoreUnavailableError
from .service import BiometricService

logger = logging.getLogger(__name__)


class PeriodicCacheWarmer(threading.Thread):
    """Background thread re-syncing the template cache from the store."""

    def __init__(self, service: BiometricService, *, interval_seconds: float):
        super().__init__(name="template-cache-warmer", daemon=True)
        self._service = service
        self._interval = float(interval_seconds)
        self._stop_event = threading.Event()

    def run(self) -> None:
        logger.info("Template cache warmer started (every %.0fs)", self._interval)
        while not self._stop_event.is_set():
            self.warm_once()
            self._stop_event.wait(self._interval)
        logger.info("Template cache warmer stopped")

    def warm_once(self) -> int:
        try:
            count = self._service.sync_cache()
        except StoreUnavailableError as e:
            logger.warning("Template cache warm-up skipped: %s", e)
            return 0
        logger.debug("Template cache warmed with %d entries", count)
        return count

    def stop(self) -> None:
        self._stop_event.set()
