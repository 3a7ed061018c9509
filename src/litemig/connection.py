"""Executable connection handed to migration up()/down() functions."""

from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol, Union, runtime_checkable

from litemig.exceptions import ConfigError, DatabaseError

__all__ = [
    "RunResult",
    "Statement",
    "ExecutableConnection",
    "SqliteStatement",
    "SqliteConnection",
    "PRAGMA_PROFILES",
    "format_pragma",
    "open_database",
]

logger = logging.getLogger(__name__)

PragmaValue = Union[str, int, bool]

PRAGMA_PROFILES: dict[str, list[tuple[str, PragmaValue]]] = {
    "default": [
        ("journal_mode", "WAL"),
        ("busy_timeout", 10000),
        ("synchronous", "NORMAL"),
        ("cache_size", 2000),
        ("temp_store", "MEMORY"),
        ("foreign_keys", "on"),
        ("threads", 2),
    ],
    "minimal": [
        ("journal_mode", "MEMORY"),
        ("synchronous", "OFF"),
        ("foreign_keys", "off"),
    ],
    "development": [
        ("journal_mode", "WAL"),
        ("busy_timeout", 5000),
        ("synchronous", "NORMAL"),
        ("cache_size", 1000),
        ("temp_store", "MEMORY"),
        ("foreign_keys", "on"),
    ],
    "production": [
        ("journal_mode", "WAL"),
        ("busy_timeout", 10000),
        ("synchronous", "NORMAL"),
        ("cache_size", 5000),
        ("temp_store", "MEMORY"),
        ("foreign_keys", "on"),
        ("threads", 4),
    ],
}


@dataclass(frozen=True)
class RunResult:
    changes: int
    last_insert_rowid: Optional[int] = None


@runtime_checkable
class Statement(Protocol):
    """Prepared statement bound with positional ``?`` or a single mapping for ``:name``."""

    def run(self, *params: Any) -> RunResult: ...

    def get(self, *params: Any) -> Optional[dict[str, Any]]: ...

    def all(self, *params: Any) -> list[dict[str, Any]]: ...


@runtime_checkable
class ExecutableConnection(Protocol):
    """What a migration's up()/down() receives."""

    def prepare(self, sql: str) -> Statement: ...

    def exec(self, sql: str) -> None: ...

    def close(self) -> None: ...


def _bind(params: tuple[Any, ...]) -> Union[Mapping[str, Any], tuple[Any, ...]]:
    if len(params) == 1 and isinstance(params[0], Mapping):
        return params[0]
    return params


class SqliteStatement:
    def __init__(self, connection: sqlite3.Connection, sql: str) -> None:
        self._connection = connection
        self.sql = sql

    def _execute(self, params: tuple[Any, ...]) -> sqlite3.Cursor:
        return self._connection.execute(self.sql, _bind(params))

    def run(self, *params: Any) -> RunResult:
        cursor = self._execute(params)
        return RunResult(changes=cursor.rowcount, last_insert_rowid=cursor.lastrowid)

    def get(self, *params: Any) -> Optional[dict[str, Any]]:
        row = self._execute(params).fetchone()
        return dict(row) if row is not None else None

    def all(self, *params: Any) -> list[dict[str, Any]]:
        return [dict(row) for row in self._execute(params).fetchall()]


class SqliteConnection:
    """Autocommit sqlite3 connection exposing prepare/exec."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        connection.isolation_level = None
        connection.row_factory = sqlite3.Row
        self._connection = connection

    @classmethod
    def connect(cls, path: str | os.PathLike[str]) -> "SqliteConnection":
        return cls(sqlite3.connect(os.fspath(path)))

    @property
    def raw(self) -> sqlite3.Connection:
        return self._connection

    def prepare(self, sql: str) -> SqliteStatement:
        return SqliteStatement(self._connection, sql)

    def exec(self, sql: str) -> None:
        self._connection.executescript(sql)

    def apply_pragmas(self, pragmas: list[tuple[str, PragmaValue]]) -> None:
        """Apply PRAGMA settings; ones the SQLite build rejects are logged and skipped."""
        for key, value in pragmas:
            statement = format_pragma(key, value)
            try:
                self._connection.execute(statement)
            except sqlite3.Error as exc:
                logger.warning(f"Ignoring {statement}: {exc}")

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> "SqliteConnection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def format_pragma(key: str, value: PragmaValue) -> str:
    if isinstance(value, bool):
        rendered = "ON" if value else "OFF"
    elif isinstance(value, str):
        rendered = "'" + value.replace("'", "''") + "'"
    else:
        rendered = str(value)
    return f"PRAGMA {key} = {rendered}"


def open_database(
    path: str | os.PathLike[str], profile: str = "default"
) -> SqliteConnection:
    """Open the target SQLite database and apply a pragma profile.

    Raises:
        ConfigError: If ``profile`` is unknown.
        DatabaseError: If the database cannot be opened.
    """
    if profile not in PRAGMA_PROFILES:
        raise ConfigError(
            f"Unknown pragma profile '{profile}'. "
            f"Available profiles: {', '.join(sorted(PRAGMA_PROFILES))}"
        )

    path = os.fspath(path)
    try:
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        connection = SqliteConnection.connect(path)
    except (OSError, sqlite3.Error) as exc:
        raise DatabaseError(f"Failed to open database {path}: {exc}") from exc

    connection.apply_pragmas(PRAGMA_PROFILES[profile])
    return connection
