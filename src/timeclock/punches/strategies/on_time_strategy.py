from __future__ import annotations

from ...core.enums import PunchType, TimingClassification
from .base import PUNCH_WORDING, TimingDecision, TimingStrategy


class OnTimeStrategy(TimingStrategy):
    """Punch inside the tolerance window."""

    def decide(self, *, punch_type: PunchType, delta_minutes: int) -> TimingDecision:
        return TimingDecision(
            classification=TimingClassification.ON_TIME,
            on_time=True,
            message=f"On time ({PUNCH_WORDING[punch_type]})",
        )
