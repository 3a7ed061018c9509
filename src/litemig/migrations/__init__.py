"""Migration discovery, tracking and runner modules."""

from litemig.migrations.collisions import detect_collisions, find_collisions
from litemig.migrations.descriptor import MigrationDescriptor, parse_descriptor
from litemig.migrations.loader import MigrationLoader, load_migrations
from litemig.migrations.models import (
    AppliedRecord,
    MigrationSet,
    MigrationStatus,
    MigrationUnit,
)
from litemig.migrations.runner import MigrationRunner, plan
from litemig.migrations.scaffold import generate_migration
from litemig.migrations.tracking import DEFAULT_MIGRATIONS_DB_PATH, TrackingStore
from litemig.migrations.validator import validate_migration_module

__all__ = [
    "MigrationDescriptor",
    "parse_descriptor",
    "detect_collisions",
    "find_collisions",
    "validate_migration_module",
    "MigrationLoader",
    "load_migrations",
    "AppliedRecord",
    "MigrationSet",
    "MigrationStatus",
    "MigrationUnit",
    "DEFAULT_MIGRATIONS_DB_PATH",
    "TrackingStore",
    "MigrationRunner",
    "plan",
    "generate_migration",
]
