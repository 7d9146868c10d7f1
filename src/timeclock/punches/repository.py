from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import PunchSource, PunchType
from .model import PunchRecord


class PunchRepository(Protocol):
    def list_for_day(self, employee_id: int, work_date: date) -> Sequence[PunchRecord]:
        """Punches of the day ordered by punch time."""

        raise NotImplementedError

    def get_for_type(self, employee_id: int, work_date: date, punch_type: PunchType) -> Optional[PunchRecord]:
        raise NotImplementedError

    def insert(
        self,
        *,
        employee_id: int,
        work_date: date,
        punch_type: PunchType,
        punch_time: datetime,
        schedule_id: Optional[int] = None,
        source: PunchSource = PunchSource.FACE,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> PunchRecord:
        """Atomic insert. Raises DuplicatePunchError when the day's slot for the type is taken."""

        raise NotImplementedError
