from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from ..core.enums import PunchType
from .model import DailySummary, PunchRecord


def _minutes_between(start: Optional[datetime], end: Optional[datetime]) -> int:
    if start is None or end is None or end <= start:
        return 0
    return int((end - start).total_seconds() // 60)


def build_daily_summary(work_date: date, punches: Iterable[PunchRecord]) -> DailySummary:
    """Worked time of the closed segments so far.

    Segments are [entry, break_start or exit] and [break_end, exit]; an open
    segment (e.g. entry without exit yet) counts zero.
    """
    by_type = {}
    for p in punches:
        # First punch of a type wins; storage never holds two anyway.
        by_type.setdefault(PunchType(p.punch_type), p.punch_time)

    entry = by_type.get(PunchType.ENTRY)
    break_start = by_type.get(PunchType.BREAK_START)
    break_end = by_type.get(PunchType.BREAK_END)
    exit_ = by_type.get(PunchType.EXIT)

    worked = _minutes_between(entry, break_start if break_start else exit_)
    if break_start:
        worked += _minutes_between(break_end, exit_)

    return DailySummary(
        work_date=work_date,
        entry=entry,
        break_start=break_start,
        break_end=break_end,
        exit=exit_,
        worked_minutes=worked,
    )
