from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from ..core.enums import PunchType
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class WorkSchedule:
    """Domain entity: working hours, optionally with a break window."""

    schedule_id: int
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    name: str = ""

    def __post_init__(self):
        if (self.break_start is None) != (self.break_end is None):
            raise ValidationError("break_start and break_end must be both set or both empty")

    @property
    def has_break(self) -> bool:
        return self.break_start is not None and self.break_end is not None

    def expected_time(self, punch_type: PunchType) -> Optional[time]:
        return {
            PunchType.ENTRY: self.start_time,
            PunchType.BREAK_START: self.break_start,
            PunchType.BREAK_END: self.break_end,
            PunchType.EXIT: self.end_time,
        }[PunchType(punch_type)]
