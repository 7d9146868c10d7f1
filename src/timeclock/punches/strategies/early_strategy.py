from __future__ import annotations

from ...core.enums import PunchType, TimingClassification
from .base import PUNCH_WORDING, TimingDecision, TimingStrategy


class EarlyStrategy(TimingStrategy):
    """Punch before the expected time minus tolerance."""

    def decide(self, *, punch_type: PunchType, delta_minutes: int) -> TimingDecision:
        return TimingDecision(
            classification=TimingClassification.EARLY,
            on_time=False,
            message=f"{abs(delta_minutes)} minutes early for {PUNCH_WORDING[punch_type]}",
        )
