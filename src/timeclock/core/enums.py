from __future__ import annotations

from enum import Enum


class PunchType(str, Enum):
    """Punch kinds; declaration order is the order of the working day."""

    ENTRY = "entry"
    BREAK_START = "break_start"
    BREAK_END = "break_end"
    EXIT = "exit"


class PunchSource(str, Enum):
    FACE = "face"
    CREDENTIAL = "credential"
    SELF_SERVICE = "self_service"
    OFFLINE_SYNC = "offline_sync"


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class SequenceState(str, Enum):
    """States of the daily punch state machine."""

    AWAITING_ENTRY = "AWAITING_ENTRY"
    AWAITING_BREAK_START = "AWAITING_BREAK_START"
    AWAITING_BREAK_END = "AWAITING_BREAK_END"
    AWAITING_EXIT = "AWAITING_EXIT"
    DAY_COMPLETE = "DAY_COMPLETE"


class TimingClassification(str, Enum):
    ON_TIME = "on_time"
    EARLY = "early"
    LATE = "late"


class RecordStatus(str, Enum):
    RECORDED = "RECORDED"
    DUPLICATE = "DUPLICATE"
    ALREADY_RECORDED = "ALREADY_RECORDED"
