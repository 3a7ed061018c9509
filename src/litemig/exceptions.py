"""Exception classes for litemig."""

__all__ = [
    "LitemigError",
    "ConfigError",
    "DatabaseError",
    "CodegenError",
    "MigrationError",
    "MigrationParseError",
    "MigrationCollisionError",
    "MigrationValidationError",
    "MigrationLoadError",
    "TrackingStoreError",
    "TrackingStoreNotInitializedError",
    "MigrationStateConflictError",
    "MigrationExecutionError",
    "MigrationNotFoundError",
    "MigrationNotAppliedError",
    "RollbackUnavailableError",
]


class LitemigError(Exception):
    """Base exception for litemig."""


class ConfigError(LitemigError):
    """Error in configuration."""


class DatabaseError(LitemigError):
    """Error opening or using the target database."""


class CodegenError(LitemigError):
    """Error generating a migration file."""


class MigrationError(LitemigError):
    """Base error during migration discovery, execution or tracking."""


class MigrationParseError(MigrationError):
    """Migration filename or timestamp is malformed."""


class MigrationCollisionError(MigrationError):
    """Two or more migration files share the same version."""


class MigrationValidationError(MigrationError):
    """Migration module does not expose a valid up/down surface."""


class MigrationLoadError(MigrationError):
    """Migration directory or module could not be loaded."""


class TrackingStoreError(MigrationError):
    """Error reading or writing the applied-migrations ledger."""


class TrackingStoreNotInitializedError(TrackingStoreError):
    """Tracking store used before initialize()."""


class MigrationStateConflictError(MigrationError):
    """Version is already recorded as applied."""


class MigrationExecutionError(MigrationError):
    """A migration's up() or down() raised."""

    def __init__(self, version: str, message: str):
        self.version = version
        super().__init__(message)


class MigrationNotFoundError(MigrationError):
    """Version is not part of the loaded migration set."""


class MigrationNotAppliedError(MigrationError):
    """Rollback requested for a version that is not applied."""


class RollbackUnavailableError(MigrationError):
    """Migration defines no down() and cannot be rolled back."""
