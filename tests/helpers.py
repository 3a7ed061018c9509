"""Shared test helpers for litemig tests."""

from pathlib import Path
from typing import Any, Optional

from litemig.connection import RunResult
from litemig.migrations.models import MigrationUnit

CREATE_USERS_BODY = '''
def up(db):
    db.exec("CREATE TABLE users (id TEXT PRIMARY KEY, name TEXT NOT NULL)")


def down(db):
    db.exec("DROP TABLE IF EXISTS users")
'''

ADD_POSTS_BODY = '''
def up(db):
    db.exec(
        "CREATE TABLE posts ("
        "id TEXT PRIMARY KEY, user_id TEXT NOT NULL REFERENCES users(id), title TEXT)"
    )


def down(db):
    db.exec("DROP TABLE IF EXISTS posts")
'''

FORWARD_ONLY_BODY = '''
def up(db):
    db.exec("CREATE TABLE audit_log (id INTEGER PRIMARY KEY, message TEXT)")
'''


def write_migration(directory: Path, file_name: str, body: str = CREATE_USERS_BODY) -> Path:
    """Write a migration file into ``directory`` and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / file_name
    path.write_text(body)
    return path


class FakeStatement:
    def __init__(self, connection: "RecordingConnection", sql: str) -> None:
        self._connection = connection
        self.sql = sql

    def run(self, *params: Any) -> RunResult:
        self._connection.calls.append(("run", self.sql, params))
        return RunResult(changes=1)

    def get(self, *params: Any) -> Optional[dict[str, Any]]:
        self._connection.calls.append(("get", self.sql, params))
        return None

    def all(self, *params: Any) -> list[dict[str, Any]]:
        self._connection.calls.append(("all", self.sql, params))
        return []


class RecordingConnection:
    """ExecutableConnection that records every statement instead of running it."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.closed = False

    @property
    def executed(self) -> list[str]:
        return [call[1] for call in self.calls if call[0] == "exec"]

    def prepare(self, sql: str) -> FakeStatement:
        return FakeStatement(self, sql)

    def exec(self, sql: str) -> None:
        self.calls.append(("exec", sql, ()))

    def close(self) -> None:
        self.closed = True


def make_unit(
    log: list[str], version: str, reversible: bool = True, fail: bool = False
) -> MigrationUnit:
    """Build a unit whose up/down append ``up:<version>``/``down:<version>`` to log."""

    def up(db: Any) -> None:
        if fail:
            raise RuntimeError(f"boom in {version}")
        log.append(f"up:{version}")

    def down(db: Any) -> None:
        log.append(f"down:{version}")

    return MigrationUnit(up=up, down=down if reversible else None)


class FakeClock:
    """Millisecond clock that advances only when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int = 1) -> None:
        self.now += millis
