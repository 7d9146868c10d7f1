from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import EmployeeStatus


@dataclass(frozen=True)
class EmployeeIdentity:
    """Domain entity: the identity attributes the punch engine needs.

    Note: plain data object (no DB access). Full employee CRUD lives elsewhere.
    """

    employee_id: int
    name: str
    national_id: str
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    department_id: Optional[int] = None
    photo_url: Optional[str] = None
    has_face_template: bool = False

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE
