#!/usr/bin/env python3
"""Verify the competition schema: tables, late-added columns and the uniqueness rules the engine relies on"""

import sys

from sqlalchemy import inspect

from competition_engine.database import engine
from competition_engine.db_schema_patch import REQUIRED_COMPETITION_COLUMNS, REQUIRED_MATCH_COLUMNS

REQUIRED_TABLES = ["club", "user", "competition", "participant", "match"]

# table -> {constraint name: columns}
REQUIRED_UNIQUE = {
    "participant": {
        "uq_participant_seed": ["competition_id", "seed_number"],
        "uq_participant_club": ["competition_id", "club_id"],
    },
    "match": {
        "uq_match_bracket_slot": ["competition_id", "round_number", "bracket_position"],
    },
}

REQUIRED_COLUMNS = {
    "match": [spec[0] for spec in REQUIRED_MATCH_COLUMNS],
    "competition": [spec[0] for spec in REQUIRED_COMPETITION_COLUMNS],
}


def find_problems(inspector):
    """Return a list of human-readable schema problems (empty when healthy)."""
    existing_tables = set(inspector.get_table_names())
    problems = [f"missing table {t}" for t in REQUIRED_TABLES if t not in existing_tables]

    for table, columns in REQUIRED_COLUMNS.items():
        if table not in existing_tables:
            continue
        present = {c["name"] for c in inspector.get_columns(table)}
        problems.extend(f"missing column {table}.{c}" for c in columns if c not in present)

    for table, constraints in REQUIRED_UNIQUE.items():
        if table not in existing_tables:
            continue
        found = {uc["name"]: uc["column_names"] for uc in inspector.get_unique_constraints(table)}
        # Postgres may back a constraint with a unique index only
        found.update(
            {ix["name"]: ix["column_names"] for ix in inspector.get_indexes(table) if ix.get("unique")}
        )
        for name, columns in constraints.items():
            if found.get(name) != columns:
                problems.append(f"missing unique constraint {name} on {table}({', '.join(columns)})")

    return problems


def main():
    print(f"Database: {engine.url}")
    problems = find_problems(inspect(engine))
    if problems:
        for problem in problems:
            print(f"  {problem}")
        print("Run migrations with: alembic upgrade head")
        return False
    print("Schema OK")
    return True


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
