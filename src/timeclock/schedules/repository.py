from __future__ import annotations

from typing import Optional, Protocol

from .model import WorkSchedule


class ScheduleRepository(Protocol):
    """Read interface onto the Organization module's schedule assignments."""

    def get_for_department(self, *, employee_id: int, department_id: int) -> Optional[WorkSchedule]:
        """Schedule of the employee's assignment to ``department_id``."""

        raise NotImplementedError

    def get_for_primary_department(self, *, employee_id: int) -> Optional[WorkSchedule]:
        raise NotImplementedError

    def get_legacy(self, *, employee_id: int) -> Optional[WorkSchedule]:
        """Schedule referenced directly on the employee record (pre multi-department data)."""

        raise NotImplementedError
