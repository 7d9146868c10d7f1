from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.datetime_utils import minute_of_day
from ..core.constants import DEFAULT_TOLERANCE_MINUTES
from ..core.enums import PunchType
from ..core.exceptions import ValidationError
from ..schedules.model import WorkSchedule
from .factory import TimingStrategyFactory
from .model import TimingValidation

NO_SCHEDULE_MESSAGE = "No schedule assigned; timing not checked"
NO_EXPECTED_TIME_MESSAGE = "Schedule has no time for this punch; timing not checked"


class PunchValidator:
    """Classifies a punch against the schedule. Pure; never touches storage."""

    def __init__(self, strategy_factory: TimingStrategyFactory | None = None):
        self._factory = strategy_factory or TimingStrategyFactory()

    def validate(
        self,
        punch_type: PunchType,
        attempt_time: datetime,
        schedule: Optional[WorkSchedule],
        tolerance_minutes: int = DEFAULT_TOLERANCE_MINUTES,
    ) -> TimingValidation:
        punch_type = PunchType(punch_type)
        if tolerance_minutes < 0:
            raise ValidationError("tolerance_minutes must not be negative")

        if schedule is None:
            return TimingValidation(on_time=True, delta_minutes=None, classification=None, message=NO_SCHEDULE_MESSAGE)

        expected = schedule.expected_time(punch_type)
        if expected is None:
            return TimingValidation(on_time=True, delta_minutes=None, classification=None, message=NO_EXPECTED_TIME_MESSAGE)

        # Minute granularity: seconds are ignored on both sides.
        delta = minute_of_day(attempt_time.time()) - minute_of_day(expected)
        strategy = self._factory.for_delta(delta_minutes=delta, tolerance_minutes=int(tolerance_minutes))
        decision = strategy.decide(punch_type=punch_type, delta_minutes=delta)

        return TimingValidation(
            on_time=decision.on_time,
            delta_minutes=delta,
            classification=decision.classification,
            message=decision.message or "",
            expected_time=expected,
        )
