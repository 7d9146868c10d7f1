from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import PunchType, TimingClassification

# Human wording of each punch kind inside validation messages.
PUNCH_WORDING = {
    PunchType.ENTRY: "entry",
    PunchType.BREAK_START: "break start",
    PunchType.BREAK_END: "return from break",
    PunchType.EXIT: "exit",
}


@dataclass(frozen=True)
class TimingDecision:
    classification: TimingClassification
    on_time: bool
    message: Optional[str] = None


class TimingStrategy(ABC):
    """Strategy Pattern: encapsulate how a punch's timing is classified."""

    @abstractmethod
    def decide(self, *, punch_type: PunchType, delta_minutes: int) -> TimingDecision:
        raise NotImplementedError
