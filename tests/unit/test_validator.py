"""Tests for migration module validation."""

import types

import pytest

from litemig.exceptions import MigrationValidationError
from litemig.migrations.models import MigrationUnit
from litemig.migrations.validator import validate_migration_module


def up(db):
    pass


def down(db):
    pass


def make_module(**members) -> types.ModuleType:
    module = types.ModuleType("fake_migration")
    for name, value in members.items():
        setattr(module, name, value)
    return module


class TestValidModules:
    def test_module_with_up_and_down(self):
        result = validate_migration_module(make_module(up=up, down=down))

        assert result.is_ok
        assert result.unwrap() == MigrationUnit(up=up, down=down)

    def test_module_with_only_up_is_forward_only(self):
        unit = validate_migration_module(make_module(up=up)).unwrap()

        assert unit.up is up
        assert unit.down is None
        assert unit.reversible is False

    def test_down_none_is_treated_as_absent(self):
        unit = validate_migration_module(make_module(up=up, down=None)).unwrap()

        assert unit.down is None

    def test_async_functions_accepted(self):
        async def async_up(db):
            pass

        async def async_down(db):
            pass

        unit = validate_migration_module(make_module(up=async_up, down=async_down)).unwrap()

        assert unit.up is async_up
        assert unit.down is async_down

    def test_extra_members_ignored(self):
        module = make_module(up=up, down=down, description="create users", version=1)

        unit = validate_migration_module(module).unwrap()

        assert unit == MigrationUnit(up=up, down=down)

    def test_mapping_candidate(self):
        unit = validate_migration_module({"up": up, "down": down}).unwrap()

        assert unit.up is up
        assert unit.down is down

    def test_object_with_methods(self):
        class Migration:
            def up(self, db):
                pass

        assert validate_migration_module(Migration()).is_ok


class TestInvalidModules:
    @pytest.mark.parametrize("candidate", [None, 42, "module", 3.5, True])
    def test_rejects_non_objects(self, candidate):
        result = validate_migration_module(candidate)

        assert result.is_error
        assert isinstance(result.error, MigrationValidationError)

    def test_missing_up(self):
        result = validate_migration_module(make_module(down=down))

        assert result.is_error
        assert "must define an 'up' function" in result.message

    def test_up_not_callable(self):
        result = validate_migration_module(make_module(up="CREATE TABLE users"))

        assert result.is_error
        assert "'up' must be a function, got: str" in result.message

    def test_down_not_callable(self):
        result = validate_migration_module(make_module(up=up, down=123))

        assert result.is_error
        assert "'down' must be a function, got: int" in result.message
