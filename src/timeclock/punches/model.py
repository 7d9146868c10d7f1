from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import ClassVar, Optional, Sequence

from ..common.datetime_utils import format_hhmm
from ..core.enums import PunchSource, PunchType, RecordStatus, SequenceState, TimingClassification


@dataclass(frozen=True)
class PunchRecord:
    """Domain entity: one timestamped attendance event."""

    punch_id: int
    employee_id: int
    work_date: date
    punch_type: PunchType
    punch_time: datetime
    schedule_id: Optional[int] = None
    source: PunchSource = PunchSource.FACE
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "punch_id": self.punch_id,
            "punch_type": self.punch_type.value,
            "punch_time": self.punch_time.isoformat(),
            "source": self.source.value,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass(frozen=True)
class DailySummary:
    """Running view of one employee's day; derived, never persisted."""

    work_date: date
    entry: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    exit: Optional[datetime] = None
    worked_minutes: int = 0

    @property
    def hours_worked(self) -> float:
        return round(self.worked_minutes / 60, 2)

    @property
    def complete(self) -> bool:
        return self.exit is not None

    def to_dict(self) -> dict:
        return {
            "work_date": self.work_date.isoformat(),
            "entry": format_hhmm(self.entry),
            "break_start": format_hhmm(self.break_start),
            "break_end": format_hhmm(self.break_end),
            "exit": format_hhmm(self.exit),
            "worked_minutes": self.worked_minutes,
            "hours_worked": self.hours_worked,
            "complete": self.complete,
        }


@dataclass(frozen=True)
class SequenceStep:
    state: SequenceState
    punch_type: Optional[PunchType]
    label: Optional[str] = None
    next_label: Optional[str] = None
    message: Optional[str] = None

    @property
    def day_complete(self) -> bool:
        return self.state == SequenceState.DAY_COMPLETE


@dataclass(frozen=True)
class TimingValidation:
    on_time: bool
    delta_minutes: Optional[int]
    classification: Optional[TimingClassification]
    message: str
    expected_time: Optional[time] = None

    def to_dict(self) -> dict:
        return {
            "on_time": self.on_time,
            "delta_minutes": self.delta_minutes,
            "classification": self.classification.value if self.classification else None,
            "message": self.message,
            "expected_time": format_hhmm(self.expected_time),
        }


@dataclass(frozen=True)
class RecordResult:
    status: RecordStatus
    punch: Optional[PunchRecord] = None
    summary: Optional[DailySummary] = None
    existing: Optional[PunchRecord] = None

    @property
    def recorded(self) -> bool:
        return self.status == RecordStatus.RECORDED


@dataclass(frozen=True)
class TodayView:
    employee_id: int
    work_date: date
    punches: Sequence[PunchRecord]
    summary: DailySummary
    next_step: SequenceStep

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "work_date": self.work_date.isoformat(),
            "punches": [p.to_dict() for p in self.punches],
            "summary": self.summary.to_dict(),
            "next_expected": self.next_step.punch_type.value if self.next_step.punch_type else None,
            "day_complete": self.next_step.day_complete,
        }


# -- punch outcomes ------------------------------------------------------
#
# Every path through the orchestrator ends in exactly one of these; rejected
# and degraded paths are outcomes, not exceptions.


@dataclass(frozen=True)
class PunchOutcome:
    kind: ClassVar[str] = "outcome"

    @property
    def accepted(self) -> bool:
        return False

    def to_dict(self) -> dict:
        return {"outcome": self.kind}


@dataclass(frozen=True)
class Accepted(PunchOutcome):
    kind: ClassVar[str] = "accepted"

    employee_id: int = 0
    employee_name: str = ""
    punch: Optional[PunchRecord] = None
    label: str = ""
    next_expected: Optional[str] = None
    validation: Optional[TimingValidation] = None
    daily_summary: Optional[DailySummary] = None

    @property
    def accepted(self) -> bool:
        return True

    @property
    def punch_type(self) -> Optional[PunchType]:
        return self.punch.punch_type if self.punch else None

    def to_dict(self) -> dict:
        return {
            "outcome": self.kind,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "punch_type": self.punch_type.value if self.punch_type else None,
            "time": self.punch.punch_time.isoformat() if self.punch else None,
            "label": self.label,
            "next_expected": self.next_expected,
            "validation": self.validation.to_dict() if self.validation else None,
            "daily_summary": self.daily_summary.to_dict() if self.daily_summary else None,
        }


@dataclass(frozen=True)
class DayComplete(PunchOutcome):
    kind: ClassVar[str] = "day_complete"

    employee_id: int = 0
    employee_name: str = ""
    message: str = ""

    def to_dict(self) -> dict:
        return {"outcome": self.kind, "employee_id": self.employee_id, "employee_name": self.employee_name, "message": self.message}


@dataclass(frozen=True)
class Duplicate(PunchOutcome):
    kind: ClassVar[str] = "duplicate"

    employee_id: int = 0
    employee_name: str = ""
    message: str = ""

    def to_dict(self) -> dict:
        return {"outcome": self.kind, "employee_id": self.employee_id, "employee_name": self.employee_name, "message": self.message}


@dataclass(frozen=True)
class AlreadyRecorded(PunchOutcome):
    kind: ClassVar[str] = "already_recorded"

    employee_id: int = 0
    employee_name: str = ""
    punch_type: Optional[PunchType] = None
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "outcome": self.kind,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "punch_type": self.punch_type.value if self.punch_type else None,
            "message": self.message,
        }


@dataclass(frozen=True)
class NoMatch(PunchOutcome):
    """Nobody recognized. ``best_distance`` is None when nothing was compared."""

    kind: ClassVar[str] = "no_match"

    best_distance: Optional[float] = None
    threshold: Optional[float] = None

    def to_dict(self) -> dict:
        return {"outcome": self.kind, "best_distance": self.best_distance, "threshold": self.threshold}


@dataclass(frozen=True)
class InactiveEmployee(PunchOutcome):
    kind: ClassVar[str] = "inactive_employee"

    employee_id: int = 0
    employee_name: str = ""

    def to_dict(self) -> dict:
        return {"outcome": self.kind, "employee_id": self.employee_id, "employee_name": self.employee_name}


@dataclass(frozen=True)
class NotEnrolled(PunchOutcome):
    kind: ClassVar[str] = "not_enrolled"

    employee_id: int = 0
    employee_name: str = ""

    def to_dict(self) -> dict:
        return {"outcome": self.kind, "employee_id": self.employee_id, "employee_name": self.employee_name}


# -- offline sync --------------------------------------------------------


@dataclass(frozen=True)
class OfflinePunch:
    """A self-service punch queued on a device while offline."""

    timestamp: datetime
    template: object = field(repr=False, default=None)
    client_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    department_id: Optional[int] = None


@dataclass(frozen=True)
class OfflineSyncItem:
    client_id: Optional[str]
    outcome: Optional[PunchOutcome] = None
    error: Optional[str] = None

    @property
    def synced(self) -> bool:
        return self.outcome is not None and self.outcome.accepted

    def to_dict(self) -> dict:
        return {
            "id": self.client_id,
            "synced": self.synced,
            "outcome": self.outcome.to_dict() if self.outcome else None,
            "error": self.error,
        }


@dataclass(frozen=True)
class OfflineSyncReport:
    employee_id: int
    items: Sequence[OfflineSyncItem]

    @property
    def synced_count(self) -> int:
        return sum(1 for i in self.items if i.synced)

    @property
    def failed_count(self) -> int:
        return len(self.items) - self.synced_count

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "synced": self.synced_count,
            "failed": self.failed_count,
            "items": [i.to_dict() for i in self.items],
        }
