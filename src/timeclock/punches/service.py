from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional

from ..biometrics.model import as_template
from ..biometrics.service import BiometricService
from ..cache.memory_cache import CacheKeys, MemoryCache
from ..common.datetime_utils import now_local
from ..common.validators import normalize_national_id, require_non_empty, require_positive_id
from ..core.constants import CACHE_TTL_SHORT, DEFAULT_OFFLINE_SYNC_MAX_AGE_DAYS
from ..core.enums import PunchSource, RecordStatus
from ..core.exceptions import EmployeeNotFoundError, InvalidTemplateError, ValidationError
from ..employees.model import EmployeeIdentity
from ..employees.repository import EmployeeRepository
from ..schedules.resolver import ScheduleResolver
from ..system_settings.service import SystemSettingsService
from .model import (
    Accepted,
    AlreadyRecorded,
    DayComplete,
    Duplicate,
    InactiveEmployee,
    NoMatch,
    NotEnrolled,
    OfflinePunch,
    OfflineSyncItem,
    OfflineSyncReport,
    PunchOutcome,
    TodayView,
)
from .recorder import PunchRecorder
from .repository import PunchRepository
from .sequencer import PunchSequencer
from .summary import build_daily_summary
from .validator import PunchValidator

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Punch already registered moments ago. Please wait before trying again."
ALREADY_RECORDED_MESSAGE = "This punch was already registered today."


class PunchService:
    """Orchestrates a punch: identity -> schedule -> sequence -> timing -> record."""

    def __init__(
        self,
        biometrics: BiometricService,
        employees: EmployeeRepository,
        resolver: ScheduleResolver,
        punches: PunchRepository,
        recorder: PunchRecorder,
        settings: SystemSettingsService,
        cache: MemoryCache,
        *,
        sequencer: PunchSequencer | None = None,
        validator: PunchValidator | None = None,
        offline_max_age_days: int = DEFAULT_OFFLINE_SYNC_MAX_AGE_DAYS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._biometrics = biometrics
        self._employees = employees
        self._resolver = resolver
        self._punches = punches
        self._recorder = recorder
        self._settings = settings
        self._cache = cache
        self._sequencer = sequencer or PunchSequencer()
        self._validator = validator or PunchValidator()
        self._offline_max_age = timedelta(days=int(offline_max_age_days))
        self._clock = clock

    # -- entry points ----------------------------------------------------

    def identify_and_punch(
        self,
        probe,
        *,
        now: datetime | None = None,
        department_id: int | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> PunchOutcome:
        now = now or self._clock()
        result = self._biometrics.identify(probe)
        if not result.matched:
            logger.info("Face not recognized (best distance %s, %d compared)", result.best_distance, result.compared)
            return NoMatch(best_distance=result.best_distance, threshold=result.threshold)

        employee = self._employees.get_by_id(result.entry.employee_id)
        if employee is None:
            # Cached entry outlived the employee record.
            logger.warning("Matched employee %s no longer exists; dropping cache entry", result.entry.employee_id)
            self._biometrics.forget(result.entry.employee_id)
            return NoMatch(best_distance=result.best_distance, threshold=result.threshold)

        return self._punch(
            employee,
            when=now,
            department_id=department_id,
            source=PunchSource.FACE,
            latitude=latitude,
            longitude=longitude,
        )

    def punch_by_credential(
        self,
        identifier: str,
        *,
        now: datetime | None = None,
        department_id: int | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> PunchOutcome:
        """Scanned badge path; the credential carries the national id."""
        digits = normalize_national_id(require_non_empty(identifier, "identifier"))
        if not digits:
            raise ValidationError("identifier must contain digits")

        now = now or self._clock()
        employee = self._employees.get_by_national_id(digits)
        if employee is None:
            logger.info("No employee for scanned credential")
            return NoMatch()

        return self._punch(
            employee,
            when=now,
            department_id=department_id,
            source=PunchSource.CREDENTIAL,
            latitude=latitude,
            longitude=longitude,
        )

    def verify_and_punch(
        self,
        employee_id: int,
        probe,
        *,
        now: datetime | None = None,
        department_id: int | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> PunchOutcome:
        """Self-service path: the caller's identity is known, the face only confirms it."""
        employee_id = require_positive_id(employee_id, "employee_id")
        probe = as_template(probe)
        now = now or self._clock()

        employee = self._require_employee(employee_id)
        return self._verified_punch(
            employee,
            probe,
            when=now,
            department_id=department_id,
            source=PunchSource.SELF_SERVICE,
            latitude=latitude,
            longitude=longitude,
        )

    def sync_offline_punches(self, employee_id: int, items: Iterable[OfflinePunch]) -> OfflineSyncReport:
        """Replay punches queued on a device, oldest first, each verified 1:1."""
        employee_id = require_positive_id(employee_id, "employee_id")
        queued = sorted(items, key=lambda i: i.timestamp)
        if not queued:
            raise ValidationError("No punches to sync")

        employee = self._require_employee(employee_id)
        now = self._clock()
        results = []
        for item in queued:
            age = now - item.timestamp
            if age > self._offline_max_age:
                results.append(
                    OfflineSyncItem(item.client_id, error=f"Punch too old (max {self._offline_max_age.days} days)")
                )
                continue
            if age < timedelta(0):
                results.append(OfflineSyncItem(item.client_id, error="Punch timestamp is in the future"))
                continue
            try:
                probe = as_template(item.template)
            except InvalidTemplateError as e:
                results.append(OfflineSyncItem(item.client_id, error=str(e)))
                continue

            outcome = self._verified_punch(
                employee,
                probe,
                when=item.timestamp,
                department_id=item.department_id,
                source=PunchSource.OFFLINE_SYNC,
                latitude=item.latitude,
                longitude=item.longitude,
            )
            results.append(OfflineSyncItem(item.client_id, outcome=outcome))

        report = OfflineSyncReport(employee_id=employee_id, items=results)
        logger.info("Offline sync for employee %s: %d synced, %d failed", employee_id, report.synced_count, report.failed_count)
        return report

    def today(self, employee_id: int, work_date: date | None = None) -> TodayView:
        employee_id = require_positive_id(employee_id, "employee_id")
        work_date = work_date or self._clock().date()
        return self._cache.get_or_fetch(
            CacheKeys.today_punches(employee_id, work_date),
            lambda: self._build_today(employee_id, work_date),
            CACHE_TTL_SHORT,
        )

    # -- internals -------------------------------------------------------

    def _require_employee(self, employee_id: int) -> EmployeeIdentity:
        employee = self._employees.get_by_id(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(f"Employee {employee_id} not found")
        return employee

    def _build_today(self, employee_id: int, work_date: date) -> TodayView:
        self._require_employee(employee_id)
        punches = list(self._punches.list_for_day(employee_id, work_date))
        schedule = self._resolver.resolve(employee_id)
        return TodayView(
            employee_id=employee_id,
            work_date=work_date,
            punches=punches,
            summary=build_daily_summary(work_date, punches),
            next_step=self._sequencer.next_step([p.punch_type for p in punches], schedule),
        )

    def _verified_punch(self, employee: EmployeeIdentity, probe, *, when: datetime, **punch_kwargs) -> PunchOutcome:
        if not employee.is_active:
            return InactiveEmployee(employee_id=employee.employee_id, employee_name=employee.name)

        result = self._biometrics.verify(employee.employee_id, probe)
        if result is None:
            return NotEnrolled(employee_id=employee.employee_id, employee_name=employee.name)
        if not result.matched:
            logger.info("Face did not confirm employee %s (distance %s)", employee.employee_id, result.best_distance)
            return NoMatch(best_distance=result.best_distance, threshold=result.threshold)

        return self._punch(employee, when=when, **punch_kwargs)

    def _punch(
        self,
        employee: EmployeeIdentity,
        *,
        when: datetime,
        department_id: int | None,
        source: PunchSource,
        latitude: float | None,
        longitude: float | None,
    ) -> PunchOutcome:
        if not employee.is_active:
            logger.info("Inactive employee %s attempted to punch", employee.employee_id)
            return InactiveEmployee(employee_id=employee.employee_id, employee_name=employee.name)

        work_date = when.date()
        today = list(self._punches.list_for_day(employee.employee_id, work_date))
        schedule = self._resolver.resolve(employee.employee_id, department_id)

        step = self._sequencer.next_step([p.punch_type for p in today], schedule)
        if step.day_complete:
            return DayComplete(employee_id=employee.employee_id, employee_name=employee.name, message=step.message or "")

        validation = self._validator.validate(step.punch_type, when, schedule, self._settings.tolerance_minutes())
        result = self._recorder.record(
            employee.employee_id,
            work_date,
            step.punch_type,
            when,
            schedule_id=schedule.schedule_id if schedule else None,
            source=source,
            latitude=latitude,
            longitude=longitude,
            recorded_today=today,
        )

        if result.status == RecordStatus.DUPLICATE:
            return Duplicate(employee_id=employee.employee_id, employee_name=employee.name, message=DUPLICATE_MESSAGE)
        if result.status == RecordStatus.ALREADY_RECORDED:
            return AlreadyRecorded(
                employee_id=employee.employee_id,
                employee_name=employee.name,
                punch_type=step.punch_type,
                message=ALREADY_RECORDED_MESSAGE,
            )

        return Accepted(
            employee_id=employee.employee_id,
            employee_name=employee.name,
            punch=result.punch,
            label=step.label or "",
            next_expected=step.next_label,
            validation=validation,
            daily_summary=result.summary,
        )
