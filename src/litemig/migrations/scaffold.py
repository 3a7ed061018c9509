"""Generate empty, correctly named migration files."""

import os
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from litemig.exceptions import CodegenError
from litemig.migrations.descriptor import MIGRATION_EXTENSION

__all__ = ["MIGRATION_NAME_PATTERN", "render_migration", "generate_migration"]

MIGRATION_NAME_PATTERN = re.compile(r"[a-z0-9_]+")

MIGRATION_TEMPLATE = '''"""Migration: {name}

Generated: {generated}
"""


def up(db):
    # Add your migration logic here
    # Example: db.exec("CREATE TABLE ...")
    pass


def down(db):
    # Add your rollback logic here
    # Example: db.exec("DROP TABLE ...")
    pass
'''


def render_migration(name: str, generated: datetime) -> str:
    return MIGRATION_TEMPLATE.format(name=name, generated=generated.isoformat())


def generate_migration(
    name: str,
    directory: str | os.PathLike[str],
    now: Optional[datetime] = None,
) -> Path:
    """Write ``<YYYYMMDDTHHMMSS>_<name>.py`` with empty up/down functions.

    Creates ``directory`` if it does not exist.

    Raises:
        CodegenError: If the name is invalid or the file already exists.
    """
    if not MIGRATION_NAME_PATTERN.fullmatch(name):
        raise CodegenError(
            f"Invalid migration name '{name}'. Migration names must contain only "
            "lowercase letters, numbers, and underscores "
            "(e.g. create_users, add_posts_table)."
        )

    now = now or datetime.now()
    file_name = f"{now.strftime('%Y%m%dT%H%M%S')}_{name}{MIGRATION_EXTENSION}"

    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / file_name

    if path.exists():
        raise CodegenError(f"Migration file already exists: {path}")

    path.write_text(render_migration(name, now), encoding="utf-8")
    return path
