"""
Startup column patches against databases created before the columns existed.
"""
import pytest
from sqlalchemy import text
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from matchplanner.db_schema_patch import (
    _get_existing_columns_sqlite,
    ensure_schedule_columns,
    ensure_tournament_columns,
)


@pytest.fixture
def legacy_engine():
    engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE tournament (id INTEGER PRIMARY KEY, name VARCHAR NOT NULL, "
                "start_time VARCHAR NOT NULL, end_time VARCHAR NOT NULL)"
            )
        )
        conn.execute(
            text(
                "CREATE TABLE generatedschedule (id INTEGER PRIMARY KEY, tournament_id INTEGER NOT NULL, "
                "tours_json TEXT NOT NULL, state VARCHAR NOT NULL)"
            )
        )
        conn.execute(text("INSERT INTO tournament (id, name, start_time, end_time) VALUES (1, 'Old', '18:00', '20:00')"))
    yield engine
    engine.dispose()


def test_adds_missing_tournament_columns(legacy_engine):
    ensure_tournament_columns(legacy_engine)

    columns = _get_existing_columns_sqlite(legacy_engine, "tournament")
    assert "balance_by_level" in columns
    assert "selected_group_id" in columns
    with legacy_engine.connect() as conn:
        row = conn.execute(text("SELECT balance_by_level, selected_group_id FROM tournament WHERE id = 1")).one()
    assert row == (0, None)


def test_adds_missing_schedule_columns(legacy_engine):
    ensure_schedule_columns(legacy_engine)
    assert "clock_json" in _get_existing_columns_sqlite(legacy_engine, "generatedschedule")


def test_patch_is_idempotent(legacy_engine):
    ensure_tournament_columns(legacy_engine)
    ensure_schedule_columns(legacy_engine)
    before = _get_existing_columns_sqlite(legacy_engine, "tournament")

    ensure_tournament_columns(legacy_engine)
    ensure_schedule_columns(legacy_engine)
    assert _get_existing_columns_sqlite(legacy_engine, "tournament") == before


def test_missing_tables_are_left_to_create_all():
    engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    ensure_tournament_columns(engine)
    ensure_schedule_columns(engine)
    assert _get_existing_columns_sqlite(engine, "tournament") == {}
