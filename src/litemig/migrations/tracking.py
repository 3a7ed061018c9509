"""Applied-migration ledger kept in its own SQLite database."""

from __future__ import annotations

import logging
import os
import sqlite3
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Callable, Optional

from litemig.exceptions import (
    MigrationStateConflictError,
    TrackingStoreError,
    TrackingStoreNotInitializedError,
)
from litemig.migrations.models import AppliedRecord, MigrationStatus
from litemig.types import Result, Version, returns_result

__all__ = ["DEFAULT_MIGRATIONS_DB_PATH", "TrackingStore"]

logger = logging.getLogger(__name__)

DEFAULT_MIGRATIONS_DB_PATH = "./.migrations.db"

_NOT_INITIALIZED = "Migrations database not initialized. Call initialize() first."


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


class TrackingStore:
    """Stores which migration versions have been applied.

    The ledger lives in a database separate from the one being migrated.
    Records are ordered by ``applied_at`` and then by insertion, which is the
    order the runner applied them in.

    Pass ``connection`` to reuse an already-open ``sqlite3.Connection``; the
    store then never closes it.
    """

    TABLE = "_migrations_applied"

    _CREATE_TABLE_SQL = f"""
        CREATE TABLE IF NOT EXISTS {TABLE} (
            version TEXT PRIMARY KEY,
            description TEXT NOT NULL,
            applied_at INTEGER NOT NULL,
            checksum TEXT
        )
    """

    _SELECT_SQL = (
        f"SELECT version, description, applied_at, checksum FROM {TABLE} "
        "ORDER BY applied_at ASC, rowid ASC"
    )

    def __init__(
        self,
        path: str | os.PathLike[str] = DEFAULT_MIGRATIONS_DB_PATH,
        *,
        connection: Optional[sqlite3.Connection] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.path = os.fspath(path)
        self._connection = connection
        self._owns_connection = connection is None
        self._clock = clock or _now_millis
        self._initialized = False

    def __enter__(self) -> "TrackingStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @returns_result(TrackingStoreError, "Failed to initialize migrations database")
    def initialize(self) -> None:
        """Create the ledger file and table if needed. Safe to call repeatedly."""
        if self._initialized:
            return

        if self._connection is None:
            self._connection = self._open()

        self._connection.execute(self._CREATE_TABLE_SQL)
        self._connection.commit()
        self._initialized = True

    def _open(self) -> sqlite3.Connection:
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        logger.debug(f"Opening migrations database {self.path}")
        connection = sqlite3.connect(self.path)
        connection.execute("PRAGMA journal_mode = WAL")
        return connection

    def _require_connection(self) -> sqlite3.Connection:
        if not self._initialized or self._connection is None:
            raise TrackingStoreNotInitializedError(_NOT_INITIALIZED)
        return self._connection

    @returns_result(TrackingStoreError, "Failed to record applied migration")
    def record_applied(self, version: Version, description: str) -> None:
        """Insert an applied record stamped with the current time.

        Recording a version twice fails with MigrationStateConflictError.
        """
        connection = self._require_connection()
        try:
            with connection:
                connection.execute(
                    f"INSERT INTO {self.TABLE} (version, description, applied_at, checksum) "
                    "VALUES (?, ?, ?, ?)",
                    (version, description, self._clock(), None),
                )
        except sqlite3.IntegrityError as exc:
            raise MigrationStateConflictError(
                f"Migration {version} is already recorded as applied: {exc}"
            ) from exc

    @returns_result(TrackingStoreError, "Failed to remove applied migration")
    def remove_applied(self, version: Version) -> None:
        """Delete the applied record for ``version``; absent versions are ignored."""
        connection = self._require_connection()
        with connection:
            connection.execute(
                f"DELETE FROM {self.TABLE} WHERE version = ?", (version,)
            )

    @returns_result(TrackingStoreError, "Failed to get applied migrations")
    def get_applied_records(self) -> list[AppliedRecord]:
        connection = self._require_connection()
        rows = connection.execute(self._SELECT_SQL).fetchall()
        return [
            AppliedRecord(
                version=row[0],
                description=row[1],
                applied_at=row[2],
                checksum=row[3],
            )
            for row in rows
        ]

    def get_applied(self) -> Result[list[Version]]:
        """Return applied versions in application order."""
        records = self.get_applied_records()
        if records.is_error:
            return Result.fail(records.error)
        return Result.ok([record.version for record in records.unwrap()])

    def get_last_applied(self) -> Result[Optional[AppliedRecord]]:
        """Return the most recently applied record, or None when nothing is applied."""
        records = self.get_applied_records()
        if records.is_error:
            return Result.fail(records.error)
        applied = records.unwrap()
        return Result.ok(applied[-1] if applied else None)

    def is_applied(self, version: Version) -> Result[bool]:
        applied = self.get_applied()
        if applied.is_error:
            return Result.fail(applied.error)
        return Result.ok(version in applied.unwrap())

    def get_status(self, all_versions: Sequence[Version]) -> Result[MigrationStatus]:
        """Split ``all_versions`` into applied and pending.

        ``pending`` keeps the order of ``all_versions``; ``applied`` is in
        application order.
        """
        applied = self.get_applied()
        if applied.is_error:
            return Result.fail(applied.error)

        applied_versions = applied.unwrap()
        applied_set = set(applied_versions)
        pending = [v for v in all_versions if v not in applied_set]
        return Result.ok(MigrationStatus(applied=applied_versions, pending=pending))

    def close(self) -> None:
        """Release the ledger connection. Safe to call more than once."""
        if self._connection is not None and self._owns_connection:
            logger.debug(f"Closing migrations database {self.path}")
            self._connection.close()
        if self._owns_connection:
            self._connection = None
        self._initialized = False
