from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..common.validators import normalize_national_id
from ..core.enums import EmployeeStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import EmployeeIdentity
from .repository import EmployeeRepository

_COLUMNS = """
    employee_id, name, national_id, status, department_id, photo_url,
    (face_template IS NOT NULL AND face_template <> '') AS has_face_template
"""


def _to_identity(row: Dict[str, Any]) -> EmployeeIdentity:
    return EmployeeIdentity(
        employee_id=int(row["employee_id"]),
        name=row["name"],
        national_id=normalize_national_id(row["national_id"]),
        status=EmployeeStatus(row["status"]),
        department_id=row.get("department_id"),
        photo_url=row.get("photo_url"),
        has_face_template=bool(row.get("has_face_template")),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[EmployeeIdentity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (int(employee_id),))
            row = fetchone(cur)
            return _to_identity(row) if row else None

    def get_by_national_id(self, national_id: str) -> Optional[EmployeeIdentity]:
        digits = normalize_national_id(national_id)
        if not digits:
            return None
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                WHERE REPLACE(REPLACE(REPLACE(REPLACE(national_id, '.', ''), '-', ''), '/', ''), ' ', '')=%s
                """,
                (digits,),
            )
            row = fetchone(cur)
            return _to_identity(row) if row else None

    def list_active(self) -> Sequence[EmployeeIdentity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE status='active' ORDER BY employee_id")
            return [_to_identity(r) for r in fetchall(cur)]
