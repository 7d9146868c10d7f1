from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.exceptions import StoreUnavailableError
from .connection import DatabaseConnection

# MySQL server error code for unique key violations.
ER_DUP_ENTRY = 1062

_UNREACHABLE = (mysql.connector.errors.InterfaceError, mysql.connector.errors.OperationalError)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)`` on a fresh connection; commit on success, roll back on error.

    Lost or refused connections surface as :class:`StoreUnavailableError`.
    """
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except _UNREACHABLE as e:
        conn.rollback()
        raise StoreUnavailableError(f"Database error: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def is_duplicate_key(error: mysql.connector.Error) -> bool:
    return getattr(error, "errno", None) == ER_DUP_ENTRY


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Coerce a schedule TIME column to ``datetime.time``.

    The pure-Python connector hands TIME back as ``timedelta``; the C extension
    and some proxies return ``time`` or an ``HH:MM[:SS]`` string.
    """
    if value is None or isinstance(value, time):
        return value

    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % 86400
        return (datetime.min + timedelta(seconds=seconds)).time()

    if isinstance(value, (bytes, bytearray)):
        value = value.decode("ascii")

    if isinstance(value, str):
        text = value.strip()
        for fmt in ("%H:%M:%S", "%H:%M"):
            try:
                return datetime.strptime(text, fmt).time()
            except ValueError:
                continue
        raise ValueError(f"Invalid time string: {value!r}")

    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
