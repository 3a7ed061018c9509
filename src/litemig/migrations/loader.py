"""Discover, validate and import migration modules from a directory."""

from __future__ import annotations

import importlib.util
import logging
import os
import sys
from pathlib import Path
from types import ModuleType

from litemig.exceptions import (
    MigrationLoadError,
    MigrationValidationError,
)
from litemig.migrations.collisions import detect_collisions
from litemig.migrations.descriptor import (
    MIGRATION_EXTENSION,
    MigrationDescriptor,
    parse_descriptor,
)
from litemig.migrations.models import MigrationSet, MigrationUnit
from litemig.migrations.validator import validate_migration_module
from litemig.types import Result, Version

__all__ = ["MigrationLoader", "load_migrations"]

logger = logging.getLogger(__name__)

_MODULE_PREFIX = "_litemig_migration"


class MigrationLoader:
    """Build an ordered MigrationSet from ``YYYYMMDDTHHMMSS_name.py`` files.

    Loading is all-or-nothing: a version collision, an unimportable file or a
    module without a valid ``up`` aborts the whole load. Files with the right
    extension but a malformed name are skipped and kept in ``skipped``.
    """

    def __init__(self, extension: str = MIGRATION_EXTENSION) -> None:
        self.extension = extension
        self.skipped: list[str] = []

    def load(self, directory: str | os.PathLike[str]) -> Result[MigrationSet]:
        self.skipped = []
        try:
            return self._load(directory)
        except (Exception, SystemExit) as exc:
            return Result.fail(
                MigrationLoadError(f"Failed to load migrations from {directory}: {exc}")
            )

    def _load(self, directory: str | os.PathLike[str]) -> Result[MigrationSet]:
        descriptors = self._scan(directory)

        collision = detect_collisions(descriptors)
        if collision.is_error:
            return Result.fail(collision.error)

        descriptors.sort(key=lambda d: d.version)

        units: dict[Version, MigrationUnit] = {}
        descriptions: dict[Version, str] = {}
        for descriptor in descriptors:
            try:
                module = self._import(descriptor)
            except (Exception, SystemExit) as exc:
                reason = str(exc)
                if isinstance(exc, SystemExit):
                    reason = f"exit({exc.code!r}) called during import"
                return Result.fail(
                    MigrationLoadError(
                        f"Failed to load migration {descriptor.source_location}: {reason}"
                    )
                )

            validated = validate_migration_module(module)
            if validated.is_error:
                return Result.fail(
                    MigrationValidationError(
                        f"Invalid migration module {descriptor.source_location}: "
                        f"{validated.message}"
                    )
                )

            units[descriptor.version] = validated.unwrap()
            descriptions[descriptor.version] = descriptor.description

        logger.debug(f"Loaded {len(units)} migration(s) from {directory}")
        return Result.ok(MigrationSet(units, descriptions))

    def _scan(self, directory: str | os.PathLike[str]) -> list[MigrationDescriptor]:
        descriptors: list[MigrationDescriptor] = []
        for file_name in sorted(os.listdir(directory)):
            if not file_name.endswith(self.extension):
                continue

            parsed = parse_descriptor(file_name, directory)
            if parsed.is_error:
                logger.warning(f"Skipping {file_name}: {parsed.message}")
                self.skipped.append(f"{file_name}: {parsed.message}")
                continue

            descriptors.append(parsed.unwrap())
        return descriptors

    def _import(self, descriptor: MigrationDescriptor) -> ModuleType:
        path = Path(descriptor.source_location).resolve()
        module_name = f"{_MODULE_PREFIX}_{descriptor.version}_{descriptor.description}"

        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"cannot create import spec for {path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        # keep __pycache__ out of the migrations directory
        dont_write_bytecode = sys.dont_write_bytecode
        sys.dont_write_bytecode = True
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        finally:
            sys.dont_write_bytecode = dont_write_bytecode
        return module


def load_migrations(directory: str | os.PathLike[str]) -> Result[MigrationSet]:
    """Load every migration in ``directory`` into an ordered MigrationSet."""
    return MigrationLoader().load(directory)
