"""Tests for the applied-migrations tracking store."""

import sqlite3
from pathlib import Path

import pytest

from litemig.exceptions import (
    MigrationStateConflictError,
    TrackingStoreNotInitializedError,
)
from litemig.migrations.models import AppliedRecord, MigrationStatus
from litemig.migrations.tracking import TrackingStore
from tests.helpers import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(tmp_path: Path, clock: FakeClock):
    store = TrackingStore(tmp_path / ".migrations.db", clock=clock)
    assert store.initialize().is_ok
    yield store
    store.close()


class TestInitialize:
    def test_creates_parent_directories_and_file(self, tmp_path: Path):
        db_path = tmp_path / "nested" / "dir" / ".migrations.db"
        store = TrackingStore(db_path)

        result = store.initialize()

        assert result.is_ok
        assert db_path.exists()
        store.close()

    def test_creates_applied_table(self, tmp_path: Path):
        db_path = tmp_path / ".migrations.db"
        with TrackingStore(db_path) as store:
            store.initialize()

        conn = sqlite3.connect(db_path)
        try:
            columns = [row[1] for row in conn.execute("PRAGMA table_info(_migrations_applied)")]
        finally:
            conn.close()
        assert columns == ["version", "description", "applied_at", "checksum"]

    def test_is_idempotent(self, store: TrackingStore):
        store.record_applied("20240101T000000", "create_users")

        assert store.initialize().is_ok
        assert store.initialize().is_ok
        assert store.get_applied().unwrap() == ["20240101T000000"]

    def test_ledger_survives_reopen(self, tmp_path: Path):
        db_path = tmp_path / ".migrations.db"
        with TrackingStore(db_path) as store:
            store.initialize()
            store.record_applied("20240101T000000", "create_users")

        with TrackingStore(db_path) as reopened:
            reopened.initialize()
            assert reopened.get_applied().unwrap() == ["20240101T000000"]

    def test_unwritable_location_returns_error(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        result = TrackingStore(blocker / ".migrations.db").initialize()

        assert result.is_error
        assert "Failed to initialize migrations database" in result.message


class TestNotInitialized:
    @pytest.mark.parametrize(
        "operation",
        [
            lambda s: s.record_applied("20240101T000000", "x"),
            lambda s: s.remove_applied("20240101T000000"),
            lambda s: s.get_applied(),
            lambda s: s.get_applied_records(),
            lambda s: s.get_status(["20240101T000000"]),
        ],
    )
    def test_operations_fail_before_initialize(self, tmp_path: Path, operation):
        store = TrackingStore(tmp_path / ".migrations.db")

        result = operation(store)

        assert result.is_error
        assert isinstance(result.error, TrackingStoreNotInitializedError)
        assert "Call initialize() first" in result.message

    def test_operations_fail_after_close(self, store: TrackingStore):
        store.close()

        result = store.get_applied()

        assert isinstance(result.error, TrackingStoreNotInitializedError)


class TestRecordApplied:
    def test_records_version_description_and_time(self, store: TrackingStore, clock: FakeClock):
        store.record_applied("20240101T000000", "create_users")

        records = store.get_applied_records().unwrap()

        assert records == [
            AppliedRecord(
                version="20240101T000000",
                description="create_users",
                applied_at=clock.now,
                checksum=None,
            )
        ]

    def test_duplicate_version_is_a_conflict(self, store: TrackingStore):
        store.record_applied("20240101T000000", "create_users")

        result = store.record_applied("20240101T000000", "create_users")

        assert result.is_error
        assert isinstance(result.error, MigrationStateConflictError)
        assert store.get_applied().unwrap() == ["20240101T000000"]


class TestRemoveApplied:
    def test_removes_only_that_version(self, store: TrackingStore):
        store.record_applied("20240101T000000", "a")
        store.record_applied("20240102T000000", "b")

        assert store.remove_applied("20240101T000000").is_ok
        assert store.get_applied().unwrap() == ["20240102T000000"]

    def test_absent_version_is_noop(self, store: TrackingStore):
        assert store.remove_applied("20240101T000000").is_ok


class TestGetApplied:
    def test_ordered_by_application_time_not_version(self, store: TrackingStore, clock: FakeClock):
        store.record_applied("20240301T000000", "third")
        clock.advance()
        store.record_applied("20240101T000000", "first")
        clock.advance()
        store.record_applied("20240201T000000", "second")

        assert store.get_applied().unwrap() == [
            "20240301T000000",
            "20240101T000000",
            "20240201T000000",
        ]

    def test_same_millisecond_keeps_insertion_order(self, store: TrackingStore):
        store.record_applied("20240201T000000", "b")
        store.record_applied("20240101T000000", "a")

        assert store.get_applied().unwrap() == ["20240201T000000", "20240101T000000"]

    def test_get_last_applied(self, store: TrackingStore, clock: FakeClock):
        assert store.get_last_applied().unwrap() is None

        store.record_applied("20240201T000000", "b")
        clock.advance()
        store.record_applied("20240101T000000", "a")

        assert store.get_last_applied().unwrap().version == "20240101T000000"

    def test_is_applied(self, store: TrackingStore):
        store.record_applied("20240101T000000", "a")

        assert store.is_applied("20240101T000000").unwrap() is True
        assert store.is_applied("20240102T000000").unwrap() is False


class TestGetStatus:
    def test_partitions_versions(self, store: TrackingStore):
        store.record_applied("20240101T000000", "a")

        status = store.get_status(
            ["20240101T000000", "20240102T000000", "20240103T000000"]
        ).unwrap()

        assert status == MigrationStatus(
            applied=["20240101T000000"],
            pending=["20240102T000000", "20240103T000000"],
        )

    def test_pending_keeps_input_order(self, store: TrackingStore):
        status = store.get_status(["20240103T000000", "20240101T000000"]).unwrap()

        assert status.pending == ["20240103T000000", "20240101T000000"]


class TestInjectedConnection:
    def test_uses_and_does_not_close_injected_connection(self):
        conn = sqlite3.connect(":memory:")
        store = TrackingStore(connection=conn)

        store.initialize()
        store.record_applied("20240101T000000", "a")
        store.close()

        rows = conn.execute("SELECT version FROM _migrations_applied").fetchall()
        assert rows == [("20240101T000000",)]
        conn.close()


class TestClose:
    def test_close_is_safe_to_repeat(self, tmp_path: Path):
        store = TrackingStore(tmp_path / ".migrations.db")
        store.close()
        store.initialize()
        store.close()
        store.close()
