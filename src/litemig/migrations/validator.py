"""Validate the shape of a loaded migration module."""

from collections.abc import Mapping
from typing import Any

from litemig.exceptions import MigrationValidationError
from litemig.migrations.models import MigrationUnit
from litemig.types import Result

__all__ = ["validate_migration_module"]

_MISSING = object()


def _member(candidate: Any, name: str) -> Any:
    if isinstance(candidate, Mapping):
        return candidate.get(name, _MISSING)
    return getattr(candidate, name, _MISSING)


def validate_migration_module(candidate: Any) -> Result[MigrationUnit]:
    """Check that ``candidate`` exposes a callable ``up`` and optional ``down``.

    ``candidate`` may be a module, any object with attributes, or a mapping.
    Members other than ``up`` and ``down`` are ignored, so migration authors
    can attach metadata freely.
    """
    if candidate is None or not (
        isinstance(candidate, Mapping) or hasattr(candidate, "__dict__")
    ):
        return Result.fail(
            MigrationValidationError(
                "Migration module must be a module or object with attributes, "
                f"got: {type(candidate).__name__}"
            )
        )

    up = _member(candidate, "up")
    if up is _MISSING:
        return Result.fail(
            MigrationValidationError("Migration module must define an 'up' function")
        )
    if not callable(up):
        return Result.fail(
            MigrationValidationError(
                f"Migration 'up' must be a function, got: {type(up).__name__}"
            )
        )

    down = _member(candidate, "down")
    if down is _MISSING or down is None:
        return Result.ok(MigrationUnit(up=up))
    if not callable(down):
        return Result.fail(
            MigrationValidationError(
                f"Migration 'down' must be a function, got: {type(down).__name__}"
            )
        )

    return Result.ok(MigrationUnit(up=up, down=down))
