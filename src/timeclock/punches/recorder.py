from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..cache.memory_cache import CacheKeys, MemoryCache
from ..core.constants import DEFAULT_DUPLICATE_COOLDOWN_SECONDS
from ..core.enums import PunchSource, PunchType, RecordStatus
from ..core.exceptions import DuplicatePunchError
from .model import PunchRecord, RecordResult
from .repository import PunchRepository
from .summary import build_daily_summary

logger = logging.getLogger(__name__)


class PunchRecorder:
    """Appends punches; the storage unique key decides races, never a prior read.

    A conflicting attempt is reclassified instead of surfaced:
    - the conflicting punch is within the cooldown window -> DUPLICATE (double tap)
    - otherwise -> ALREADY_RECORDED (the day's slot for that type is used)
    """

    def __init__(
        self,
        punches: PunchRepository,
        *,
        cache: MemoryCache | None = None,
        cooldown_seconds: int = DEFAULT_DUPLICATE_COOLDOWN_SECONDS,
    ):
        self._punches = punches
        self._cache = cache
        self._cooldown_seconds = int(cooldown_seconds)

    @property
    def cooldown_seconds(self) -> int:
        return self._cooldown_seconds

    def _within_cooldown(self, punch: PunchRecord, timestamp: datetime) -> bool:
        return abs((timestamp - punch.punch_time).total_seconds()) < self._cooldown_seconds

    def record(
        self,
        employee_id: int,
        work_date: date,
        punch_type: PunchType,
        timestamp: datetime,
        *,
        schedule_id: Optional[int] = None,
        source: PunchSource = PunchSource.FACE,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        recorded_today: Optional[Sequence[PunchRecord]] = None,
    ) -> RecordResult:
        punch_type = PunchType(punch_type)
        today = list(recorded_today) if recorded_today is not None else list(self._punches.list_for_day(employee_id, work_date))

        # Any punch moments ago means the employee tapped twice, whatever type the
        # sequencer now expects.
        if today:
            latest = max(today, key=lambda p: p.punch_time)
            if self._within_cooldown(latest, timestamp):
                logger.info("Duplicate punch for employee %s within %ss cooldown", employee_id, self._cooldown_seconds)
                return RecordResult(status=RecordStatus.DUPLICATE, existing=latest)

        try:
            punch = self._punches.insert(
                employee_id=employee_id,
                work_date=work_date,
                punch_type=punch_type,
                punch_time=timestamp,
                schedule_id=schedule_id,
                source=source,
                latitude=latitude,
                longitude=longitude,
            )
        except DuplicatePunchError:
            existing = self._punches.get_for_type(employee_id, work_date, punch_type)
            if existing is not None and self._within_cooldown(existing, timestamp):
                status = RecordStatus.DUPLICATE
            else:
                status = RecordStatus.ALREADY_RECORDED
            logger.info(
                "Punch %s for employee %s on %s lost to an existing row: %s",
                punch_type.value, employee_id, work_date, status.value,
            )
            return RecordResult(status=status, existing=existing)

        if self._cache is not None:
            self._cache.invalidate(CacheKeys.today_punches(employee_id, work_date))

        summary = build_daily_summary(work_date, [*today, punch])
        logger.info("Punch %s recorded for employee %s at %s", punch_type.value, employee_id, timestamp.isoformat())
        return RecordResult(status=RecordStatus.RECORDED, punch=punch, summary=summary)
