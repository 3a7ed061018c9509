"""Command-line interface for litemig."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from litemig.config import Config
from litemig.connection import open_database
from litemig.exceptions import CodegenError, ConfigError
from litemig.migrations.loader import load_migrations
from litemig.migrations.runner import MigrationRunner
from litemig.migrations.scaffold import generate_migration
from litemig.migrations.tracking import TrackingStore


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="litemig",
        description="Timestamped schema migrations for SQLite",
    )
    parser.add_argument("--config", type=Path, help="YAML config file")
    parser.add_argument("--database-url", help="Application database (DATABASE_URL)")
    parser.add_argument(
        "--migrations-dir", help="Migrations directory (MIGRATIONS_DIR)"
    )
    parser.add_argument(
        "--migrations-db-path",
        help="Migrations tracking database (MIGRATIONS_DB_PATH)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")

    migrate_parser = subparsers.add_parser("migrate", help="Run pending migrations")
    migrate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show pending migrations without executing",
    )

    subparsers.add_parser("status", help="Show migration status")

    down_parser = subparsers.add_parser(
        "down", help="Roll back the last applied migration, or a specific version"
    )
    down_parser.add_argument("version", nargs="?", help="Version to roll back")

    generate_parser = subparsers.add_parser("generate", help="Generate migration file")
    generate_parser.add_argument("name", help="Migration name, e.g. create_users")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    if args.command is None:
        args.command = "migrate"
        args.dry_run = False

    if args.command == "generate":
        return cmd_generate(args)
    elif args.command == "migrate":
        return cmd_migrate(args)
    elif args.command == "status":
        return cmd_status(args)
    return cmd_down(args)


def load_config(args: argparse.Namespace) -> Config:
    config = Config.from_env(
        database_url=getattr(args, "database_url", None),
        migrations_dir=getattr(args, "migrations_dir", None),
        migrations_db_path=getattr(args, "migrations_db_path", None),
        config_file=getattr(args, "config", None),
    )
    config.validate()
    return config


def open_target(config: Config) -> Any:
    """Open the database being migrated, as selected by config.database_url."""
    if config.target == "databricks":
        from litemig.databricks.utils import open_databricks

        return open_databricks(config)
    return open_database(config.database_url, config.pragma_profile)


def _run_with_runner(args: argparse.Namespace, action: str, handler) -> int:
    """Load config and migrations, build a runner, call handler(runner), clean up."""
    try:
        config = load_config(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    loaded = load_migrations(config.migrations_dir)
    if loaded.is_error:
        print(f"Failed to load migrations: {loaded.message}", file=sys.stderr)
        return 1

    try:
        connection = open_target(config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"Failed to open database: {e}", file=sys.stderr)
        return 1

    try:
        with MigrationRunner(
            connection,
            loaded.unwrap(),
            tracking_store=TrackingStore(config.migrations_db_path),
        ) as runner:
            return handler(runner)
    except Exception as e:
        print(f"{action} error: {e}", file=sys.stderr)
        return 1
    finally:
        connection.close()


def cmd_migrate(args: argparse.Namespace) -> int:
    """Run pending migrations."""
    dry_run = getattr(args, "dry_run", False)

    def handler(runner: MigrationRunner) -> int:
        print("Running migrations...")
        result = runner.migrate(dry_run=dry_run)
        if result.is_error:
            print(f"Migration failed: {result.message}", file=sys.stderr)
            return 1

        count = result.unwrap()
        if count == 0:
            print("No pending migrations")
        elif dry_run:
            print(f"Dry run - {count} migration{_plural(count)} would be applied")
        else:
            print(f"Successfully applied {count} migration{_plural(count)}")
        return 0

    return _run_with_runner(args, "Run", handler)


def cmd_status(args: argparse.Namespace) -> int:
    """Show migration status."""

    def handler(runner: MigrationRunner) -> int:
        result = runner.status()
        if result.is_error:
            print(f"Failed to get status: {result.message}", file=sys.stderr)
            return 1

        status = result.unwrap()
        print("Migration Status")
        print("-" * 40)
        print(f"Applied:   {len(status.applied)} migration{_plural(len(status.applied))}")
        for version in status.applied:
            print(f"  ✓ {version}")
        print(f"Pending:   {len(status.pending)} migration{_plural(len(status.pending))}")
        for version in status.pending:
            print(f"  ○ {version}")
        print("-" * 40)
        return 0

    return _run_with_runner(args, "Status", handler)


def cmd_down(args: argparse.Namespace) -> int:
    """Roll back the last applied migration, or the given version."""
    version = getattr(args, "version", None)

    def handler(runner: MigrationRunner) -> int:
        if version:
            print(f"Rolling back migration: {version}")
            result = runner.rollback(version)
        else:
            print("Rolling back the last applied migration...")
            result = runner.rollback_last()

        if result.is_error:
            print(f"Rollback failed: {result.message}", file=sys.stderr)
            return 1

        if result.unwrap() == 0:
            print("No applied migrations to roll back", file=sys.stderr)
            return 1

        print(f"Successfully rolled back {version or '1 migration'}")
        return 0

    return _run_with_runner(args, "Rollback", handler)


def cmd_generate(args: argparse.Namespace) -> int:
    """Generate a new, empty migration file."""
    try:
        config = load_config(args)
        path = generate_migration(args.name, config.migrations_dir)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except (CodegenError, OSError) as e:
        print(f"Generation error: {e}", file=sys.stderr)
        return 1

    print(f"Migration created: {path.name}")
    print(f"  Path: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
