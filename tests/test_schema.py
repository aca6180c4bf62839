"""Tests that the appointments table and its migration agree."""
import importlib.util
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

from app.models.appointment import Appointment

MIGRATION = Path(__file__).resolve().parent.parent / "migrations" / "versions" / "001_initial_schema.py"


def _load_migration():
    found = importlib.util.spec_from_file_location("initial_schema", MIGRATION)
    module = importlib.util.module_from_spec(found)
    found.loader.exec_module(module)
    return module


@pytest.fixture
def migrated():
    engine = sa.create_engine("sqlite://")
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            _load_migration().upgrade()
        yield sa.inspect(conn)
    engine.dispose()


@pytest.mark.parametrize("column", ["starts_at", "created_at"])
def test_model_timestamps_are_plain_naive_utc_columns(column):
    col_type = Appointment.__table__.c[column].type
    assert type(col_type) is sa.DateTime
    assert col_type.timezone is False


def test_owner_key_has_no_cascading_delete():
    (fk,) = Appointment.__table__.c.owner_id.foreign_keys
    assert fk.ondelete is None


def test_migration_owner_key_matches_model(migrated):
    (fk,) = migrated.get_foreign_keys("appointments")
    assert fk["referred_table"] == "users"
    assert fk["constrained_columns"] == ["owner_id"]
    assert fk["options"].get("ondelete") is None


def test_migration_keeps_one_booking_per_start(migrated):
    indexes = {ix["name"]: ix for ix in migrated.get_indexes("appointments")}
    assert indexes["ix_appointments_starts_at"]["column_names"] == ["starts_at"]
    assert indexes["ix_appointments_starts_at"]["unique"]
