"""Value types shared by the loader, tracking store and runner."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Union

from litemig.types import Version

__all__ = [
    "MigrationOperation",
    "MigrationUnit",
    "MigrationSet",
    "AppliedRecord",
    "MigrationStatus",
]

# Receives the executable connection; may be a coroutine function.
MigrationOperation = Callable[[Any], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class MigrationUnit:
    """Forward operation and optional reverse operation for one schema change."""

    up: MigrationOperation
    down: Optional[MigrationOperation] = None

    @property
    def reversible(self) -> bool:
        return self.down is not None


class MigrationSet(Mapping[Version, MigrationUnit]):
    """Read-only mapping of version -> unit, iterated in ascending version order."""

    def __init__(
        self,
        units: Mapping[Version, MigrationUnit],
        descriptions: Optional[Mapping[Version, str]] = None,
    ) -> None:
        self._units = {version: units[version] for version in sorted(units)}
        self._descriptions = dict(descriptions or {})

    def __getitem__(self, version: Version) -> MigrationUnit:
        return self._units[version]

    def __iter__(self) -> Iterator[Version]:
        return iter(self._units)

    def __len__(self) -> int:
        return len(self._units)

    def __repr__(self) -> str:
        return f"MigrationSet({list(self._units)!r})"

    @property
    def versions(self) -> list[Version]:
        return list(self._units)

    def description_of(self, version: Version) -> str:
        return self._descriptions.get(version, version)


@dataclass(frozen=True)
class AppliedRecord:
    """One row of the applied-migrations ledger."""

    version: Version
    description: str
    applied_at: int
    checksum: Optional[str] = None

    @property
    def applied_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.applied_at / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class MigrationStatus:
    applied: list[Version] = field(default_factory=list)
    pending: list[Version] = field(default_factory=list)
