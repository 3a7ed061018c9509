"""Migration filename parser for YYYYMMDDTHHMMSS_description.py files."""

from __future__ import annotations

import calendar
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from litemig.exceptions import MigrationParseError
from litemig.types import Result, Version

__all__ = [
    "MIGRATION_EXTENSION",
    "MIGRATION_FILENAME_PATTERN",
    "MigrationDescriptor",
    "parse_descriptor",
    "validate_timestamp",
]

MIGRATION_EXTENSION = ".py"

MIGRATION_FILENAME_PATTERN = re.compile(r"([0-9]{8}T[0-9]{6})_([a-z0-9_]+)\.py")

EXPECTED_FORMAT = "YYYYMMDDTHHMMSS_description.py"
EXAMPLE_FILENAME = "20251022T143045_create_users.py"

_DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def _days_in_month(year: int, month: int) -> int:
    if month == 2 and calendar.isleap(year):
        return 29
    return _DAYS_IN_MONTH[month - 1]


def validate_timestamp(timestamp: str) -> None:
    """Validate a YYYYMMDDTHHMMSS timestamp as a real calendar date and time.

    Raises:
        MigrationParseError: naming the first out-of-range field.
    """
    if len(timestamp) != 15 or timestamp[8] != "T":
        raise MigrationParseError("Timestamp must be in format YYYYMMDDTHHMMSS")

    try:
        year = int(timestamp[0:4])
        month = int(timestamp[4:6])
        day = int(timestamp[6:8])
        hour = int(timestamp[9:11])
        minute = int(timestamp[11:13])
        second = int(timestamp[13:15])
    except ValueError as exc:
        raise MigrationParseError(
            "Timestamp must be in format YYYYMMDDTHHMMSS"
        ) from exc

    if not 1 <= month <= 12:
        raise MigrationParseError(
            f"Invalid month: {month}. Must be between 01 and 12."
        )

    max_day = _days_in_month(year, month)
    if not 1 <= day <= max_day:
        raise MigrationParseError(
            f"Invalid day: {day}. Month {month} has maximum {max_day} days."
        )

    if not 0 <= hour <= 23:
        raise MigrationParseError(f"Invalid hour: {hour}. Must be between 00 and 23.")

    if not 0 <= minute <= 59:
        raise MigrationParseError(
            f"Invalid minute: {minute}. Must be between 00 and 59."
        )

    if not 0 <= second <= 59:
        raise MigrationParseError(
            f"Invalid second: {second}. Must be between 00 and 59."
        )


@dataclass(frozen=True, eq=False)
class MigrationDescriptor:
    """Validated metadata for one migration file.

    Build instances with ``parse_descriptor`` or ``MigrationDescriptor.parse``.
    Two descriptors are equal when both version and file name match; sharing a
    description alone does not make them the same migration.
    """

    version: Version
    description: str
    file_name: str
    source_location: str = field(repr=False)

    @classmethod
    def parse(cls, file_name: str, directory: str | os.PathLike[str]) -> MigrationDescriptor:
        """Parse ``file_name`` found in ``directory``.

        Raises:
            MigrationParseError: If the name or its timestamp is invalid.
        """
        match = MIGRATION_FILENAME_PATTERN.fullmatch(file_name)
        if not match:
            raise MigrationParseError(
                f'Invalid migration filename: "{file_name}"\n'
                f"Expected format: {EXPECTED_FORMAT}\n"
                f"Example: {EXAMPLE_FILENAME}"
            )

        version, description = match.groups()

        try:
            validate_timestamp(version)
        except MigrationParseError as exc:
            raise MigrationParseError(
                f'Invalid timestamp in migration filename: "{file_name}"\n{exc}'
            ) from exc

        return cls(
            version=version,
            description=description,
            file_name=file_name,
            source_location=os.path.join(os.fspath(directory), file_name),
        )

    @property
    def path(self) -> Path:
        return Path(self.source_location)

    @property
    def timestamp(self) -> datetime:
        return datetime.strptime(self.version, "%Y%m%dT%H%M%S")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MigrationDescriptor):
            return NotImplemented
        return self.version == other.version and self.file_name == other.file_name

    def __hash__(self) -> int:
        return hash((self.version, self.file_name))

    def __str__(self) -> str:
        return (
            f"MigrationDescriptor(version={self.version}, "
            f"description={self.description}, file={self.file_name})"
        )


def parse_descriptor(
    file_name: str, directory: str | os.PathLike[str]
) -> Result[MigrationDescriptor]:
    """Parse a migration filename into a descriptor.

    Args:
        file_name: Bare filename, e.g. ``20251022T143045_create_users.py``
        directory: Directory the file lives in, with or without trailing separator

    Returns:
        Result carrying the descriptor, or a MigrationParseError naming the
        expected format or the invalid timestamp field.
    """
    try:
        return Result.ok(MigrationDescriptor.parse(file_name, directory))
    except MigrationParseError as exc:
        return Result.fail(exc)
