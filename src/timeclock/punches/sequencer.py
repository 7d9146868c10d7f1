from __future__ import annotations

from typing import Iterable, Optional, Tuple

from ..core.enums import PunchType, SequenceState
from ..schedules.model import WorkSchedule
from .model import SequenceStep

FULL_SEQUENCE: Tuple[PunchType, ...] = (
    PunchType.ENTRY,
    PunchType.BREAK_START,
    PunchType.BREAK_END,
    PunchType.EXIT,
)
NO_BREAK_SEQUENCE: Tuple[PunchType, ...] = (PunchType.ENTRY, PunchType.EXIT)

DAY_COMPLETE_MESSAGE = "All punches for today are already recorded. Great work, see you tomorrow!"

# Shown to the employee once the punch is accepted.
ACCEPTED_LABELS = {
    PunchType.ENTRY: "Entry recorded",
    PunchType.BREAK_START: "Break started",
    PunchType.BREAK_END: "Back from break",
    PunchType.EXIT: "Exit recorded",
}

PREVIEW_LABELS = {
    PunchType.ENTRY: "Entry",
    PunchType.BREAK_START: "Break start",
    PunchType.BREAK_END: "Break end",
    PunchType.EXIT: "Exit",
}

_AWAITING = {
    PunchType.ENTRY: SequenceState.AWAITING_ENTRY,
    PunchType.BREAK_START: SequenceState.AWAITING_BREAK_START,
    PunchType.BREAK_END: SequenceState.AWAITING_BREAK_END,
    PunchType.EXIT: SequenceState.AWAITING_EXIT,
}


def effective_sequence(schedule: Optional[WorkSchedule]) -> Tuple[PunchType, ...]:
    """Break steps only apply when a schedule defines a break window."""
    if schedule is not None and schedule.has_break:
        return FULL_SEQUENCE
    return NO_BREAK_SEQUENCE


class PunchSequencer:
    """State machine picking the next punch type of the day."""

    def next_step(self, recorded_types: Iterable[PunchType], schedule: Optional[WorkSchedule]) -> SequenceStep:
        recorded = {PunchType(t) for t in recorded_types}
        sequence = effective_sequence(schedule)

        pending = [t for t in sequence if t not in recorded]
        if not pending:
            return SequenceStep(state=SequenceState.DAY_COMPLETE, punch_type=None, message=DAY_COMPLETE_MESSAGE)

        current = pending[0]
        following = pending[1] if len(pending) > 1 else None
        return SequenceStep(
            state=_AWAITING[current],
            punch_type=current,
            label=ACCEPTED_LABELS[current],
            next_label=PREVIEW_LABELS[following] if following else None,
        )
