from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import PunchSource, PunchType
from ..core.exceptions import DuplicatePunchError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import PunchRecord
from .repository import PunchRepository

_COLUMNS = "punch_id, employee_id, work_date, punch_type, punch_time, schedule_id, source, latitude, longitude"


def _optional_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _to_record(row: Dict[str, Any]) -> PunchRecord:
    return PunchRecord(
        punch_id=int(row["punch_id"]),
        employee_id=int(row["employee_id"]),
        work_date=row["work_date"],
        punch_type=PunchType(row["punch_type"]),
        punch_time=row["punch_time"],
        schedule_id=row.get("schedule_id"),
        source=PunchSource(row.get("source") or PunchSource.FACE.value),
        latitude=_optional_float(row.get("latitude")),
        longitude=_optional_float(row.get("longitude")),
    )


class MySQLPunchRepository(PunchRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_day(self, employee_id: int, work_date: date) -> Sequence[PunchRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_punches
                WHERE employee_id=%s AND work_date=%s
                ORDER BY punch_time ASC
                """,
                (int(employee_id), work_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def get_for_type(self, employee_id: int, work_date: date, punch_type: PunchType) -> Optional[PunchRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_punches
                WHERE employee_id=%s AND work_date=%s AND punch_type=%s
                """,
                (int(employee_id), work_date, PunchType(punch_type).value),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

    def insert(
        self,
        *,
        employee_id: int,
        work_date: date,
        punch_type: PunchType,
        punch_time: datetime,
        schedule_id: Optional[int] = None,
        source: PunchSource = PunchSource.FACE,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> PunchRecord:
        punch_type = PunchType(punch_type)
        source = PunchSource(source)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_punches
                        (employee_id, work_date, punch_type, punch_time, schedule_id, source, latitude, longitude)
                    VALUES (%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (int(employee_id), work_date, punch_type.value, punch_time, schedule_id, source.value, latitude, longitude),
                )
                punch_id = int(cur.lastrowid)
        except mysql.connector.errors.IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicatePunchError(
                    f"Punch {punch_type.value} already exists for employee {employee_id} on {work_date}"
                ) from e
            raise

        return PunchRecord(
            punch_id=punch_id,
            employee_id=int(employee_id),
            work_date=work_date,
            punch_type=punch_type,
            punch_time=punch_time,
            schedule_id=schedule_id,
            source=source,
            latitude=latitude,
            longitude=longitude,
        )
