from __future__ import annotations

from ...core.enums import PunchType, TimingClassification
from .base import PUNCH_WORDING, TimingDecision, TimingStrategy


class LateStrategy(TimingStrategy):
    """Punch after the expected time plus tolerance."""

    def decide(self, *, punch_type: PunchType, delta_minutes: int) -> TimingDecision:
        return TimingDecision(
            classification=TimingClassification.LATE,
            on_time=False,
            message=f"{abs(delta_minutes)} minutes late for {PUNCH_WORDING[punch_type]}",
        )
