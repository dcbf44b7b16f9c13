from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Columns added after the first release; older databases get them on startup.
# (name, sqlite_type, postgres_type, default_sql)
REQUIRED_TOURNAMENT_COLUMNS: List[Tuple[str, str, str, str]] = [
    ("balance_by_level", "INTEGER", "BOOLEAN", "DEFAULT FALSE"),
    ("selected_group_id", "INTEGER", "INTEGER", "DEFAULT NULL"),
]

REQUIRED_SCHEDULE_COLUMNS: List[Tuple[str, str, str, str]] = [
    ("clock_json", "TEXT", "JSON", "DEFAULT NULL"),
]


def _is_sqlite(engine: Engine) -> bool:
    return engine.dialect.name.lower() == "sqlite"


def _get_existing_columns_sqlite(engine: Engine, table_name: str) -> Dict[str, str]:
    cols: Dict[str, str] = {}
    with engine.connect() as conn:
        res = conn.execute(text(f"PRAGMA table_info({table_name});")).fetchall()
        # PRAGMA table_info returns rows: (cid, name, type, notnull, dflt_value, pk)
        for row in res:
            cols[str(row[1])] = str(row[2])
    return cols


def _get_existing_columns_postgres(engine: Engine, table_name: str) -> Dict[str, str]:
    cols: Dict[str, str] = {}
    sql = """
    SELECT column_name, data_type
    FROM information_schema.columns
    WHERE table_schema = 'public' AND table_name = :table_name;
    """
    with engine.connect() as conn:
        res = conn.execute(text(sql), {"table_name": table_name}).fetchall()
        for row in res:
            cols[str(row[0])] = str(row[1])
    return cols


def _table_exists(engine: Engine, table: str) -> bool:
    with engine.connect() as conn:
        if _is_sqlite(engine):
            result = conn.execute(
                text("SELECT name FROM sqlite_master WHERE type='table' AND name=:table_name"),
                {"table_name": table},
            ).fetchone()
            return bool(result)
        result = conn.execute(
            text("""
            SELECT EXISTS (
                SELECT FROM information_schema.tables
                WHERE table_schema = 'public' AND table_name = :table_name
            )
        """),
            {"table_name": table},
        ).fetchone()
        return bool(result and result[0])


def _ensure_columns(engine: Engine, table: str, required: List[Tuple[str, str, str, str]]) -> int:
    """Add any missing columns. Returns the number of columns added."""
    if not _table_exists(engine, table):
        # create_all will build it with every column
        return 0

    added = 0
    if _is_sqlite(engine):
        existing = _get_existing_columns_sqlite(engine, table)
        with engine.begin() as conn:
            for name, sqlite_type, _pg_type, default in required:
                if name in existing:
                    continue
                # SQLite has no boolean literals in older versions
                sqlite_default = default.replace("FALSE", "0")
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {name} {sqlite_type} {sqlite_default};"))
                added += 1
    else:
        existing = _get_existing_columns_postgres(engine, table)
        with engine.begin() as conn:
            for name, _sqlite_type, pg_type, default in required:
                if name in existing:
                    continue
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {name} {pg_type} {default};"))
                added += 1
    return added


def ensure_tournament_columns(engine: Engine) -> None:
    """
    Idempotently adds required columns to the 'tournament' table if missing.
    Safe to run at every startup.
    """
    try:
        from matchplanner.models.tournament import Tournament

        added = _ensure_columns(engine, Tournament.__table__.name, REQUIRED_TOURNAMENT_COLUMNS)
        if added:
            logger.info("Added %d missing tournament columns", added)
    except Exception as e:
        logger.warning(f"Failed to ensure tournament columns (this is OK if table doesn't exist yet): {e}")


def ensure_schedule_columns(engine: Engine) -> None:
    """
    Idempotently adds required columns to the 'generatedschedule' table if missing.
    Safe to run at every startup.
    """
    try:
        from matchplanner.models.generated_schedule import GeneratedSchedule

        added = _ensure_columns(engine, GeneratedSchedule.__table__.name, REQUIRED_SCHEDULE_COLUMNS)
        if added:
            logger.info("Added %d missing schedule columns", added)
    except Exception as e:
        logger.warning(f"Failed to ensure schedule columns (this is OK if table doesn't exist yet): {e}")
