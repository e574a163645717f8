"""Add bracket result fields: stage, byes, consolation, shootout and champion

Revision ID: 002_bracket_results
Revises: 001_initial
Create Date: 2026-02-11 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy import inspect

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_bracket_results"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MATCH_COLUMNS = [
    sa.Column("stage", sa.String(), nullable=True),
    sa.Column("is_consolation", sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column("is_bye", sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column("shootout_winner_club_id", sa.Integer(), nullable=True),
    sa.Column("winner_club_id", sa.Integer(), nullable=True),
    sa.Column("completed_at", sa.DateTime(), nullable=True),
]

COMPETITION_COLUMNS = [
    sa.Column("season", sa.String(), nullable=True),
    sa.Column("decide_draws_by_shootout", sa.Boolean(), nullable=False, server_default=sa.true()),
    sa.Column("champion_club_id", sa.Integer(), nullable=True),
]


def upgrade() -> None:
    # Startup schema patch may already have added some of these
    bind = op.get_bind()
    inspector = inspect(bind)

    for table, columns in (("match", MATCH_COLUMNS), ("competition", COMPETITION_COLUMNS)):
        existing = {col["name"] for col in inspector.get_columns(table)}
        for column in columns:
            if column.name not in existing:
                op.add_column(table, column)


def downgrade() -> None:
    for column in reversed(COMPETITION_COLUMNS):
        op.drop_column("competition", column.name)
    for column in reversed(MATCH_COLUMNS):
        op.drop_column("match", column.name)
