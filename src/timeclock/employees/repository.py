from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import EmployeeIdentity


class EmployeeRepository(Protocol):
    """Read interface onto the Employee module.

    Note (DIP): punch services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, employee_id: int) -> Optional[EmployeeIdentity]:
        raise NotImplementedError

    def get_by_national_id(self, national_id: str) -> Optional[EmployeeIdentity]:
        """Lookup by normalized (digits-only) national identifier."""

        raise NotImplementedError

    def list_active(self) -> Sequence[EmployeeIdentity]:
        raise NotImplementedError
