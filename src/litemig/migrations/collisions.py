"""Detect migration files that share a version."""

from collections import defaultdict
from collections.abc import Iterable

from litemig.exceptions import MigrationCollisionError
from litemig.migrations.descriptor import MigrationDescriptor
from litemig.types import Result, Version

__all__ = ["find_collisions", "detect_collisions"]


def find_collisions(
    descriptors: Iterable[MigrationDescriptor],
) -> dict[Version, list[MigrationDescriptor]]:
    """Group descriptors by version, keeping only groups with more than one file.

    Groups are keyed in ascending version order and each group is sorted by
    source location, so the result does not depend on input order.
    """
    by_version: dict[Version, list[MigrationDescriptor]] = defaultdict(list)
    for descriptor in descriptors:
        by_version[descriptor.version].append(descriptor)

    return {
        version: sorted(group, key=lambda d: d.source_location)
        for version, group in sorted(by_version.items())
        if len(group) > 1
    }


def _format_collision(version: Version, group: list[MigrationDescriptor]) -> str:
    file_list = "\n".join(f"  - {d.source_location}" for d in group)
    return (
        f"Migration version collision detected: {version}\n\n"
        f"Conflicting files:\n{file_list}"
    )


def detect_collisions(descriptors: Iterable[MigrationDescriptor]) -> Result[None]:
    """Verify that every descriptor has a unique version.

    Returns:
        Successful Result, or a MigrationCollisionError whose message lists
        every colliding version and every conflicting file path.
    """
    collisions = find_collisions(descriptors)
    if not collisions:
        return Result.ok()

    message = "\n\n".join(
        _format_collision(version, group) for version, group in collisions.items()
    )
    return Result.fail(MigrationCollisionError(message))
