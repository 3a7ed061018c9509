"""Configuration management for litemig."""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from litemig.connection import PRAGMA_PROFILES
from litemig.exceptions import ConfigError

DEFAULT_CONFIG_FILE = "litemig.yaml"

DATABRICKS_SCHEME = "databricks://"

ENV_VARS = {
    "database_url": "DATABASE_URL",
    "migrations_dir": "MIGRATIONS_DIR",
    "migrations_db_path": "MIGRATIONS_DB_PATH",
    "pragma_profile": "DATABASE_PRAGMA_PROFILE",
    "databricks_host": "DATABRICKS_HOST",
    "databricks_token": "DATABRICKS_TOKEN",
}


def load_config_file(path: Optional[Path] = None) -> dict[str, Any]:
    """Load settings from a YAML config file.

    Args:
        path: File to read. Defaults to $LITEMIG_CONFIG, then ./litemig.yaml.
              A missing default file yields an empty dict; a missing explicit
              file is an error.

    Raises:
        ConfigError: If the file is unreadable, not a mapping, or has unknown keys.
    """
    explicit = path is not None or "LITEMIG_CONFIG" in os.environ
    if path is None:
        path = Path(os.environ.get("LITEMIG_CONFIG", DEFAULT_CONFIG_FILE))

    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    unknown = sorted(set(data) - set(ENV_VARS))
    if unknown:
        raise ConfigError(
            f"Unknown keys in {path}: {', '.join(unknown)}. "
            f"Valid keys: {', '.join(ENV_VARS)}"
        )

    return {key: str(value) for key, value in data.items() if value is not None}


@dataclass
class Config:
    """Configuration for litemig."""

    database_url: str = "./data.db"
    migrations_dir: str = "./migrations"
    migrations_db_path: str = "./.migrations.db"
    pragma_profile: str = "default"
    databricks_host: Optional[str] = None
    databricks_token: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        *,
        database_url: Optional[str] = None,
        migrations_dir: Optional[str] = None,
        migrations_db_path: Optional[str] = None,
        pragma_profile: Optional[str] = None,
        databricks_host: Optional[str] = None,
        databricks_token: Optional[str] = None,
        config_file: Optional[Path] = None,
    ) -> "Config":
        """Load configuration from a YAML file and env vars, with CLI overrides.

        Priority (highest to lowest):
        1. Explicit parameters (CLI args)
        2. Environment variables
        3. YAML config file
        4. Defaults
        """
        file_cfg = load_config_file(config_file)
        explicit = {
            "database_url": database_url,
            "migrations_dir": migrations_dir,
            "migrations_db_path": migrations_db_path,
            "pragma_profile": pragma_profile,
            "databricks_host": databricks_host,
            "databricks_token": databricks_token,
        }

        def resolve(key: str) -> Optional[str]:
            if explicit[key] is not None:
                return explicit[key]
            env_val = os.environ.get(ENV_VARS[key])
            if env_val is not None:
                return env_val
            return file_cfg.get(key)

        resolved = {key: resolve(key) for key in explicit}
        defaults = {f.name: f.default for f in fields(cls)}
        return cls(
            **{
                key: value if value is not None else defaults[key]
                for key, value in resolved.items()
            }
        )

    @property
    def target(self) -> str:
        if self.database_url.startswith(DATABRICKS_SCHEME):
            return "databricks"
        return "sqlite"

    def validate(self) -> None:
        """Validate that all required fields are usable.

        Raises:
            ConfigError: If a path is empty or the pragma profile is unknown.
        """
        problems = []
        if not self.database_url:
            problems.append("database_url (use --database-url or DATABASE_URL)")
        if not self.migrations_dir:
            problems.append("migrations_dir (use --migrations-dir or MIGRATIONS_DIR)")
        if not self.migrations_db_path:
            problems.append(
                "migrations_db_path (use --migrations-db-path or MIGRATIONS_DB_PATH)"
            )
        if self.pragma_profile not in PRAGMA_PROFILES:
            problems.append(
                f"pragma_profile '{self.pragma_profile}' is unknown "
                f"(choose from {', '.join(sorted(PRAGMA_PROFILES))})"
            )

        if problems:
            raise ConfigError("Invalid configuration:\n  - " + "\n  - ".join(problems))
