from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Optional, Sequence

from ..common.validators import require_positive_id
from ..core.constants import DEFAULT_MATCH_THRESHOLD, DEFAULT_VERIFY_THRESHOLD
from ..core.exceptions import EmployeeNotFoundError, StoreUnavailableError
from ..employees.model import EmployeeIdentity
from ..employees.repository import EmployeeRepository
from .matcher import find_best_match, verify_template
from .model import CacheStats, EnrollmentResult, MatchResult, TemplateReadResult, as_template
from .repository import TemplateRepository
from .template_cache import TemplateCache

logger = logging.getLogger(__name__)


class BiometricService:
    """Identity resolution over enrolled face templates (cache-aside).

    Reads go to the template cache first and fall back to the template store.
    After a fallback read the cache is repopulated on a background worker so the
    scan that triggered it does not wait for the write-back.
    """

    def __init__(
        self,
        templates: TemplateRepository,
        cache: TemplateCache,
        employees: EmployeeRepository,
        *,
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        verify_threshold: float = DEFAULT_VERIFY_THRESHOLD,
        executor: Optional[Executor] = None,
    ):
        self._templates = templates
        self._cache = cache
        self._employees = employees
        self._match_threshold = float(match_threshold)
        self._verify_threshold = float(verify_threshold)
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="template-cache")
        self._owns_executor = executor is None
        self._refresh_lock = threading.Lock()
        self._refresh_in_flight = False

    @property
    def match_threshold(self) -> float:
        return self._match_threshold

    # -- read path -------------------------------------------------------

    def read_through(self) -> TemplateReadResult:
        cached = self._cache.get_all()
        if cached is not None:
            return TemplateReadResult(entries=cached, source="cache", refresh_needed=False)

        logger.info("Template cache miss; reading enrolled templates from the store")
        entries = self._templates.list_enrolled()
        return TemplateReadResult(entries=entries, source="store", refresh_needed=True)

    def schedule_async_refresh(self) -> Optional[Future]:
        """Queue a cache repopulation and return immediately.

        The worker reads the store itself, so enrollments or removals made after
        the triggering read are not overwritten. Returns None when a refresh is
        already queued or running.
        """
        with self._refresh_lock:
            if self._refresh_in_flight:
                return None
            self._refresh_in_flight = True

        try:
            future = self._executor.submit(self._refresh)
        except RuntimeError as e:
            # Executor already shut down.
            logger.warning("Could not schedule template cache refresh: %s", e)
            self._refresh_done(None)
            return None
        future.add_done_callback(self._refresh_done)
        return future

    def _refresh_done(self, _future) -> None:
        with self._refresh_lock:
            self._refresh_in_flight = False

    def _refresh(self) -> bool:
        try:
            ok = self._cache.populate(self._templates.list_enrolled())
        except StoreUnavailableError as e:
            logger.warning("Template cache refresh skipped, store unavailable: %s", e)
            return False
        if not ok:
            logger.warning("Template cache refresh failed; next read will retry")
        return ok

    def identify(self, probe) -> MatchResult:
        probe = as_template(probe)
        read = self.read_through()
        result = find_best_match(probe, read.entries, threshold=self._match_threshold)
        if read.refresh_needed:
            self.schedule_async_refresh()
        return result

    def verify(self, employee_id: int, probe) -> Optional[MatchResult]:
        """1:1 verification. Returns None when the employee has no enrolled template."""
        probe = as_template(probe)
        entry = self._templates.get_entry(employee_id)
        if entry is None or entry.template is None:
            return None
        return verify_template(probe, entry, threshold=self._verify_threshold)

    def forget(self, employee_id: int) -> None:
        """Drop a cache entry the store no longer backs."""
        self._cache.remove_one(employee_id)

    # -- enrollment ------------------------------------------------------

    def register_face_template(self, employee_id: int, template) -> EnrollmentResult:
        template = as_template(template)
        employee_id = require_positive_id(employee_id, "employee_id")

        entry = self._templates.save_template(employee_id, template)
        if entry is None:
            raise EmployeeNotFoundError(f"Employee {employee_id} not found")

        if not self._cache.upsert_one(entry):
            logger.warning("Could not refresh cached template of employee %s; invalidating cache", employee_id)
            self._cache.invalidate_all()

        logger.info("Face template registered for employee %s", employee_id)
        return EnrollmentResult(employee_id=entry.employee_id, name=entry.name, national_id=entry.national_id)

    def remove_face_template(self, employee_id: int) -> bool:
        employee_id = require_positive_id(employee_id, "employee_id")
        removed = self._templates.clear_template(employee_id)
        if not self._cache.remove_one(employee_id):
            self._cache.invalidate_all()
        if removed:
            logger.info("Face template removed for employee %s", employee_id)
        return removed

    def pending_enrollment(self) -> Sequence[EmployeeIdentity]:
        return [e for e in self._employees.list_active() if not e.has_face_template]

    # -- cache maintenance -----------------------------------------------

    def sync_cache(self) -> int:
        """Synchronous full repopulation from the store. Returns the entry count."""
        entries = self._templates.list_enrolled()
        if not self._cache.populate(entries):
            return 0
        return len(entries)

    def invalidate_cache(self) -> bool:
        return self._cache.invalidate_all()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def shutdown(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)
