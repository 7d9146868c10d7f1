from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from .model import WorkSchedule
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)

ResolveFn = Callable[[int, Optional[int]], Optional[WorkSchedule]]


@dataclass(frozen=True)
class ResolverStrategy:
    name: str
    resolve: ResolveFn


def department_context(schedules: ScheduleRepository) -> ResolverStrategy:
    def resolve(employee_id: int, department_id: Optional[int]) -> Optional[WorkSchedule]:
        if department_id is None:
            return None
        return schedules.get_for_department(employee_id=employee_id, department_id=department_id)

    return ResolverStrategy("department_context", resolve)


def primary_department(schedules: ScheduleRepository) -> ResolverStrategy:
    return ResolverStrategy(
        "primary_department",
        lambda employee_id, _department_id: schedules.get_for_primary_department(employee_id=employee_id),
    )


def legacy_direct(schedules: ScheduleRepository) -> ResolverStrategy:
    return ResolverStrategy(
        "legacy_direct",
        lambda employee_id, _department_id: schedules.get_legacy(employee_id=employee_id),
    )


def default_strategies(schedules: ScheduleRepository) -> Tuple[ResolverStrategy, ...]:
    """Precedence: explicit department > primary department > legacy reference."""
    return (department_context(schedules), primary_department(schedules), legacy_direct(schedules))


class ScheduleResolver:
    """Chain of Responsibility over schedule sources; first non-null schedule wins."""

    def __init__(self, strategies: Sequence[ResolverStrategy]):
        self._strategies = tuple(strategies)

    @classmethod
    def for_repository(cls, schedules: ScheduleRepository) -> "ScheduleResolver":
        return cls(default_strategies(schedules))

    @property
    def strategy_names(self) -> Tuple[str, ...]:
        return tuple(s.name for s in self._strategies)

    def resolve(self, employee_id: int, department_id: Optional[int] = None) -> Optional[WorkSchedule]:
        for strategy in self._strategies:
            schedule = strategy.resolve(int(employee_id), department_id)
            if schedule is not None:
                logger.debug("Employee %s schedule %s via %s", employee_id, schedule.schedule_id, strategy.name)
                return schedule
        return None
