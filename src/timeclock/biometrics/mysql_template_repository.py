from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from ..common.validators import normalize_national_id
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .codec import TemplateDecodeError, decode_template, encode_template
from .model import Template, TemplateEntry
from .repository import TemplateRepository

logger = logging.getLogger(__name__)


def _to_entry(row: Dict[str, Any]) -> TemplateEntry:
    return TemplateEntry(
        employee_id=int(row["employee_id"]),
        name=row["name"],
        national_id=normalize_national_id(row["national_id"]),
        template=decode_template(row["face_template"]),
    )


class MySQLTemplateRepository(TemplateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_enrolled(self) -> Sequence[TemplateEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, name, national_id, face_template
                FROM employees
                WHERE face_template IS NOT NULL AND face_template <> ''
                ORDER BY employee_id
                """
            )
            rows = fetchall(cur)

        out: list[TemplateEntry] = []
        for r in rows:
            try:
                out.append(_to_entry(r))
            except TemplateDecodeError as e:
                logger.warning("Unparsable template for employee %s: %s", r.get("employee_id"), e)
        return out

    def get_entry(self, employee_id: int) -> Optional[TemplateEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT employee_id, name, national_id, face_template FROM employees WHERE employee_id=%s",
                (int(employee_id),),
            )
            row = fetchone(cur)
        if not row:
            return None
        try:
            return _to_entry(row)
        except TemplateDecodeError as e:
            logger.warning("Unparsable template for employee %s: %s", employee_id, e)
            return TemplateEntry(
                employee_id=int(row["employee_id"]),
                name=row["name"],
                national_id=normalize_national_id(row["national_id"]),
            )

    def save_template(self, employee_id: int, template: Template) -> Optional[TemplateEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET face_template=%s WHERE employee_id=%s",
                (encode_template(template), int(employee_id)),
            )
            cur.execute(
                "SELECT employee_id, name, national_id FROM employees WHERE employee_id=%s",
                (int(employee_id),),
            )
            row = fetchone(cur)
        if not row:
            return None
        return TemplateEntry(
            employee_id=int(row["employee_id"]),
            name=row["name"],
            national_id=normalize_national_id(row["national_id"]),
            template=template,
        )

    def clear_template(self, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE employees SET face_template=NULL WHERE employee_id=%s", (int(employee_id),))
            return cur.rowcount > 0
