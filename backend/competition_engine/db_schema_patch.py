from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Columns added after the first release of each table.
# (name, sqlite_type, postgres_type, sqlite_suffix, postgres_suffix)
ColumnSpec = Tuple[str, str, str, str, str]

REQUIRED_MATCH_COLUMNS: List[ColumnSpec] = [
    ("stage", "TEXT", "TEXT", "", ""),
    ("is_consolation", "INTEGER", "BOOLEAN", " DEFAULT 0", " DEFAULT FALSE"),
    ("is_bye", "INTEGER", "BOOLEAN", " DEFAULT 0", " DEFAULT FALSE"),
    ("shootout_winner_club_id", "INTEGER", "INTEGER", "", ""),
    ("winner_club_id", "INTEGER", "INTEGER", "", ""),
    ("completed_at", "DATETIME", "TIMESTAMP", "", ""),
]

REQUIRED_COMPETITION_COLUMNS: List[ColumnSpec] = [
    ("decide_draws_by_shootout", "INTEGER", "BOOLEAN", " DEFAULT 1", " DEFAULT TRUE"),
    ("champion_club_id", "INTEGER", "INTEGER", "", ""),
    ("season", "TEXT", "TEXT", "", ""),
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


def _ensure_columns(engine: Engine, table: str, required: List[ColumnSpec]) -> int:
    """Add any missing columns to `table`. Returns the number of columns added."""
    if not _table_exists(engine, table):
        # create_all builds it with every column
        return 0

    added = 0
    if _is_sqlite(engine):
        existing = _get_existing_columns_sqlite(engine, table)
        with engine.begin() as conn:
            for name, sqlite_type, _pg_type, sqlite_suffix, _pg_suffix in required:
                if name in existing:
                    continue
                # SQLite supports ADD COLUMN without IF NOT EXISTS
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {name} {sqlite_type}{sqlite_suffix};"))
                added += 1
    else:
        existing = _get_existing_columns_postgres(engine, table)
        with engine.begin() as conn:
            for name, _sqlite_type, pg_type, _sqlite_suffix, pg_suffix in required:
                if name in existing:
                    continue
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {name} {pg_type}{pg_suffix};"))
                added += 1
    return added


def ensure_match_columns(engine: Engine) -> None:
    """
    Idempotently adds late-added columns to the 'match' table.
    Safe to run at every startup.
    """
    try:
        from competition_engine.models.match import Match

        added = _ensure_columns(engine, Match.__table__.name, REQUIRED_MATCH_COLUMNS)
        if added:
            logger.info("Added %d missing column(s) to match table", added)
    except Exception as e:
        # Log error but don't crash the server
        logger.warning(f"Failed to ensure match columns (this is OK if table doesn't exist yet): {e}")


def ensure_competition_columns(engine: Engine) -> None:
    """
    Idempotently adds late-added columns to the 'competition' table.
    Safe to run at every startup.
    """
    try:
        from competition_engine.models.competition import Competition

        added = _ensure_columns(engine, Competition.__table__.name, REQUIRED_COMPETITION_COLUMNS)
        if added:
            logger.info("Added %d missing column(s) to competition table", added)
    except Exception as e:
        logger.warning(f"Failed to ensure competition columns (this is OK if table doesn't exist yet): {e}")
