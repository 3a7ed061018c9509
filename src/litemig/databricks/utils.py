"""Executable-connection adapter for running migrations on Databricks."""

from collections.abc import Mapping, Sequence
from typing import Any, Optional

from litemig.config import Config
from litemig.connection import RunResult
from litemig.databricks.client import DatabricksClient
from litemig.exceptions import ConfigError


def split_sql_statements(sql: str) -> list[str]:
    """Split SQL text into individual statements.

    Handles:
    - Semicolon-separated statements
    - Comment-only segments starting with -- (skipped)
    - Empty statements (skipped)

    Limitations:
    - Does NOT handle semicolons inside string literals
    - Drops segments that START with -- (including multi-line segments
      where the first line is a comment but later lines have SQL)

    Args:
        sql: SQL text potentially containing multiple statements.

    Returns:
        List of non-empty SQL statements (without trailing semicolons).
    """
    statements = []
    for part in sql.split(";"):
        stmt = part.strip()
        if stmt and not stmt.startswith("--"):
            statements.append(stmt)
    return statements


def _spark_args(params: tuple[Any, ...]) -> Optional[Any]:
    """Map prepare()-style params onto Spark SQL ``args`` (dict for :name, list for ?)."""
    if not params:
        return None
    if len(params) == 1 and isinstance(params[0], Mapping):
        return dict(params[0])
    if len(params) == 1 and isinstance(params[0], Sequence) and not isinstance(
        params[0], (str, bytes)
    ):
        return list(params[0])
    return list(params)


class DatabricksStatement:
    def __init__(self, client: DatabricksClient, sql: str) -> None:
        self._client = client
        self.sql = sql

    def run(self, *params: Any) -> RunResult:
        rows = self._client.fetchall(self.sql, args=_spark_args(params))
        changes = 0
        if rows and "num_affected_rows" in rows[0]:
            changes = int(rows[0]["num_affected_rows"])
        return RunResult(changes=changes)

    def get(self, *params: Any) -> Optional[dict[str, Any]]:
        rows = self._client.fetchall(self.sql, args=_spark_args(params))
        return rows[0] if rows else None

    def all(self, *params: Any) -> list[dict[str, Any]]:
        return self._client.fetchall(self.sql, args=_spark_args(params))


class DatabricksConnection:
    """prepare/exec surface over a DatabricksClient, for migration up()/down()."""

    def __init__(self, client: DatabricksClient) -> None:
        self._client = client

    def prepare(self, sql: str) -> DatabricksStatement:
        return DatabricksStatement(self._client, sql)

    def exec(self, sql: str) -> None:
        for stmt in split_sql_statements(sql):
            self._client.execute(stmt)

    def close(self) -> None:
        self._client.close()


def open_databricks(config: Config) -> DatabricksConnection:
    """Connect to Databricks using host/token from config (or SDK defaults).

    Raises:
        ConfigError: If the config does not select the Databricks target.
    """
    if config.target != "databricks":
        raise ConfigError(
            f"database_url '{config.database_url}' is not a databricks:// URL"
        )

    client = DatabricksClient(
        host=config.databricks_host,
        token=config.databricks_token,
    )
    client.connect()
    return DatabricksConnection(client)
