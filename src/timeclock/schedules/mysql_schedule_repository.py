from __future__ import annotations

from typing import Any, Dict, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import WorkSchedule
from .repository import ScheduleRepository

_SCHEDULE_COLUMNS = "s.schedule_id, s.name, s.start_time, s.end_time, s.break_start, s.break_end"


def _to_schedule(row: Optional[Dict[str, Any]]) -> Optional[WorkSchedule]:
    if not row or row.get("schedule_id") is None:
        return None
    return WorkSchedule(
        schedule_id=int(row["schedule_id"]),
        name=row.get("name") or "",
        start_time=normalize_mysql_time(row["start_time"]),
        end_time=normalize_mysql_time(row["end_time"]),
        break_start=normalize_mysql_time(row.get("break_start")),
        break_end=normalize_mysql_time(row.get("break_end")),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_department(self, *, employee_id: int, department_id: int) -> Optional[WorkSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SCHEDULE_COLUMNS}
                FROM employee_departments ed
                JOIN schedules s ON s.schedule_id = ed.schedule_id
                WHERE ed.employee_id=%s AND ed.department_id=%s
                """,
                (int(employee_id), int(department_id)),
            )
            return _to_schedule(fetchone(cur))

    def get_for_primary_department(self, *, employee_id: int) -> Optional[WorkSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SCHEDULE_COLUMNS}
                FROM employee_departments ed
                JOIN schedules s ON s.schedule_id = ed.schedule_id
                WHERE ed.employee_id=%s AND ed.is_primary=1
                LIMIT 1
                """,
                (int(employee_id),),
            )
            return _to_schedule(fetchone(cur))

    def get_legacy(self, *, employee_id: int) -> Optional[WorkSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SCHEDULE_COLUMNS}
                FROM employees e
                JOIN schedules s ON s.schedule_id = e.schedule_id
                WHERE e.employee_id=%s
                """,
                (int(employee_id),),
            )
            return _to_schedule(fetchone(cur))
