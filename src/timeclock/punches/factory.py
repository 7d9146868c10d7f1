from __future__ import annotations

from dataclasses import dataclass

from .strategies.base import TimingStrategy
from .strategies.early_strategy import EarlyStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class TimingStrategyFactory:
    """Factory Pattern: choose the timing strategy from the signed minute delta."""

    def for_delta(self, *, delta_minutes: int, tolerance_minutes: int) -> TimingStrategy:
        if delta_minutes > tolerance_minutes:
            return LateStrategy()
        if delta_minutes < -tolerance_minutes:
            return EarlyStrategy()
        return OnTimeStrategy()
