from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import mysql.connector

from ..core.exceptions import StoreUnavailableError


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connection_timeout: int = 5


class DatabaseConnection:
    """DB connection factory.

    Note: We create short-lived connections per operation (safe for request-per-call usage).
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def from_settings(cls, db_config: dict) -> "DatabaseConnection":
        return cls(
            DBConfig(
                host=str(db_config["host"]),
                port=int(db_config.get("port", 3306)),
                user=str(db_config["user"]),
                password=str(db_config["password"]),
                database=str(db_config["database"]),
                connection_timeout=int(db_config.get("connection_timeout", 5)),
            )
        )

    def connect(self):
        try:
            return mysql.connector.connect(
                host=self._config.host,
                port=int(self._config.port),
                user=self._config.user,
                password=self._config.password,
                database=self._config.database,
                connection_timeout=int(self._config.connection_timeout),
            )
        except (mysql.connector.errors.InterfaceError, mysql.connector.errors.OperationalError) as e:
            raise StoreUnavailableError(f"Database unreachable: {e}") from e

    def describe(self, *, hide_password: bool = True) -> str:
        password: Optional[str] = "***" if hide_password else self._config.password
        return f"{self._config.user}:{password}@{self._config.host}:{self._config.port}/{self._config.database}"
