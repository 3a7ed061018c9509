"""Migration runner: plan, apply and roll back migrations."""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from litemig.connection import ExecutableConnection
from litemig.exceptions import (
    MigrationExecutionError,
    MigrationNotAppliedError,
    MigrationNotFoundError,
    RollbackUnavailableError,
)
from litemig.migrations.models import (
    MigrationOperation,
    MigrationSet,
    MigrationStatus,
    MigrationUnit,
)
from litemig.migrations.tracking import DEFAULT_MIGRATIONS_DB_PATH, TrackingStore
from litemig.types import Result, Version

__all__ = ["plan", "MigrationRunner"]

logger = logging.getLogger(__name__)


def plan(versions: Iterable[Version], applied: Iterable[Version]) -> list[Version]:
    """
    Pure function: determine which versions are pending.

    Args:
        versions: Every version in the migration set.
        applied: Versions recorded in the tracking store.

    Returns:
        Pending versions sorted ascending.
    """
    applied_set = set(applied)
    return sorted(v for v in versions if v not in applied_set)


async def _await(awaitable: Any) -> Any:
    return await awaitable


def _invoke(operation: MigrationOperation, connection: Any) -> None:
    """Call an up/down function, driving it to completion if it is a coroutine."""
    outcome = operation(connection)
    if not inspect.isawaitable(outcome):
        return

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        asyncio.run(_await(outcome))
        return

    if inspect.iscoroutine(outcome):
        outcome.close()
    raise RuntimeError(
        "async migration operations cannot be run from inside a running event loop"
    )


class MigrationRunner:
    """
    Applies migrations in ascending version order against ``connection`` and
    records each success in a separate tracking store.

    Applied state is re-read from the tracking store on every call. A failing
    ``up`` stops the run; migrations applied before it stay applied.
    """

    def __init__(
        self,
        connection: ExecutableConnection,
        migrations: Mapping[Version, MigrationUnit],
        *,
        tracking_store: Optional[TrackingStore] = None,
        migrations_db_path: str | os.PathLike[str] = DEFAULT_MIGRATIONS_DB_PATH,
    ) -> None:
        self._connection = connection
        self._migrations = migrations
        self._tracking = tracking_store or TrackingStore(migrations_db_path)
        self._cancel_requested = False

    def __enter__(self) -> "MigrationRunner":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def tracking_store(self) -> TrackingStore:
        return self._tracking

    @property
    def versions(self) -> list[Version]:
        return sorted(self._migrations)

    def _description_of(self, version: Version) -> str:
        if isinstance(self._migrations, MigrationSet):
            return self._migrations.description_of(version)
        return version

    def _label(self, version: Version) -> str:
        description = self._description_of(version)
        if description == version:
            return version
        return f"{version}_{description}"

    def initialize(self) -> Result[None]:
        return self._tracking.initialize()

    def cancel(self) -> None:
        """Stop migrate() before its next pending version; the current one finishes."""
        self._cancel_requested = True

    def migrate(self, dry_run: bool = False) -> Result[int]:
        """
        Apply every pending migration in ascending version order.

        Args:
            dry_run: If True, log what would be applied but execute nothing.

        Returns:
            Result with the number of migrations applied (or that would be
            applied, for a dry run), or the first failure.
        """
        self._cancel_requested = False

        initialized = self.initialize()
        if initialized.is_error:
            return Result.fail(initialized.error)

        applied = self._tracking.get_applied()
        if applied.is_error:
            return Result.fail(applied.error)

        pending = plan(self._migrations, applied.unwrap())

        if not pending:
            logger.info("Schema is up to date. No pending migrations.")
            return Result.ok(0)

        if dry_run:
            for version in pending:
                logger.info(f"[DRY RUN] Would apply {self._label(version)}")
            return Result.ok(len(pending))

        count = 0
        for version in pending:
            if self._cancel_requested:
                logger.info(f"Migration cancelled after {count} migration(s)")
                break

            result = self._apply(version)
            if result.is_error:
                return Result.fail(result.error)
            count += 1

        return Result.ok(count)

    def _apply(self, version: Version) -> Result[None]:
        label = self._label(version)
        unit = self._migrations.get(version)
        if unit is None:
            return Result.fail(MigrationNotFoundError(f"Migration not found: {version}"))

        logger.info(f"Applying {label}...")
        try:
            _invoke(unit.up, self._connection)
        except Exception as exc:
            logger.error(f"Migration {label} failed: {exc}")
            error = MigrationExecutionError(
                version, f"Failed to run migration {version}: {exc}"
            )
            error.__cause__ = exc
            return Result.fail(error)

        recorded = self._tracking.record_applied(version, self._description_of(version))
        if recorded.is_error:
            return recorded

        logger.info(f"Applied {label}")
        return Result.ok()

    def rollback_last(self) -> Result[int]:
        """
        Roll back the most recently applied migration (by application order).

        Returns:
            Result with 1 if a migration was rolled back, 0 if none was applied.
        """
        initialized = self.initialize()
        if initialized.is_error:
            return Result.fail(initialized.error)

        last = self._tracking.get_last_applied()
        if last.is_error:
            return Result.fail(last.error)

        record = last.unwrap()
        if record is None:
            logger.info("No applied migrations to roll back.")
            return Result.ok(0)

        return self._revert(record.version)

    def rollback(self, version: Version) -> Result[int]:
        """
        Roll back one applied migration by version.

        Later migrations are not checked; rolling back out of order is allowed.
        """
        initialized = self.initialize()
        if initialized.is_error:
            return Result.fail(initialized.error)

        applied = self._tracking.is_applied(version)
        if applied.is_error:
            return Result.fail(applied.error)
        if not applied.unwrap():
            return Result.fail(
                MigrationNotAppliedError(f"Migration {version} is not applied")
            )

        return self._revert(version)

    def _revert(self, version: Version) -> Result[int]:
        unit = self._migrations.get(version)
        if unit is None:
            return Result.fail(
                MigrationNotFoundError(
                    f"Migration not found: {version}. It is recorded as applied "
                    "but missing from the migrations directory."
                )
            )

        if unit.down is None:
            return Result.fail(
                RollbackUnavailableError(
                    f"Migration {version} has no down() function; "
                    "no rollback available"
                )
            )

        label = self._label(version)
        logger.info(f"Rolling back {label}...")
        try:
            _invoke(unit.down, self._connection)
        except Exception as exc:
            logger.error(f"Rollback of {label} failed: {exc}")
            error = MigrationExecutionError(
                version, f"Failed to roll back migration {version}: {exc}"
            )
            error.__cause__ = exc
            return Result.fail(error)

        removed = self._tracking.remove_applied(version)
        if removed.is_error:
            return Result.fail(removed.error)

        logger.info(f"Rolled back {label}")
        return Result.ok(1)

    def status(self) -> Result[MigrationStatus]:
        """Report applied versions (application order) and pending versions (ascending)."""
        initialized = self.initialize()
        if initialized.is_error:
            return Result.fail(initialized.error)

        return self._tracking.get_status(self.versions)

    def close(self) -> None:
        """Release the tracking store. The target connection is left open."""
        self._tracking.close()
