"""Initial schema: club, user, competition, participant, match tables

Revision ID: 001_initial
Revises:
Create Date: 2026-01-05 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "club",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("short_name", sa.String(), nullable=True),
        sa.Column("logo_url", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_club_name", "club", ["name"])

    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="member"),
        sa.Column("club_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["club_id"], ["club.id"]),
        sa.UniqueConstraint("email", name="uq_user_email"),
    )

    op.create_table(
        "competition",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("competition_type", sa.String(), nullable=False, server_default="league"),
        sa.Column("format", sa.String(), nullable=False, server_default="round_robin"),
        sa.Column("status", sa.String(), nullable=False, server_default="scheduled"),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("admin_user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["admin_user_id"], ["user.id"]),
    )

    op.create_table(
        "participant",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("competition_id", sa.Integer(), nullable=False),
        sa.Column("club_id", sa.Integer(), nullable=False),
        sa.Column("seed_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="confirmed"),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["competition_id"], ["competition.id"]),
        sa.ForeignKeyConstraint(["club_id"], ["club.id"]),
        sa.UniqueConstraint("competition_id", "seed_number", name="uq_participant_seed"),
        sa.UniqueConstraint("competition_id", "club_id", name="uq_participant_club"),
    )
    op.create_index("ix_participant_competition_id", "participant", ["competition_id"])

    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("competition_id", sa.Integer(), nullable=False),
        sa.Column("match_code", sa.String(), nullable=False),
        sa.Column("round", sa.Integer(), nullable=True),
        sa.Column("match_number", sa.Integer(), nullable=True),
        sa.Column("round_number", sa.Integer(), nullable=True),
        sa.Column("bracket_position", sa.Integer(), nullable=True),
        sa.Column("next_match_id", sa.Integer(), nullable=True),
        sa.Column("home_seed", sa.Integer(), nullable=True),
        sa.Column("away_seed", sa.Integer(), nullable=True),
        sa.Column("home_club_id", sa.Integer(), nullable=True),
        sa.Column("away_club_id", sa.Integer(), nullable=True),
        sa.Column("home_score", sa.Integer(), nullable=True),
        sa.Column("away_score", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="scheduled"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["competition_id"], ["competition.id"]),
        sa.ForeignKeyConstraint(["next_match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["home_club_id"], ["club.id"]),
        sa.ForeignKeyConstraint(["away_club_id"], ["club.id"]),
        sa.UniqueConstraint("competition_id", "round_number", "bracket_position", name="uq_match_bracket_slot"),
    )
    op.create_index("ix_match_competition_id", "match", ["competition_id"])
    op.create_index("ix_match_next_match_id", "match", ["next_match_id"])


def downgrade() -> None:
    op.drop_index("ix_match_next_match_id", table_name="match")
    op.drop_index("ix_match_competition_id", table_name="match")
    op.drop_table("match")
    op.drop_index("ix_participant_competition_id", table_name="participant")
    op.drop_table("participant")
    op.drop_table("competition")
    op.drop_table("user")
    op.drop_index("ix_club_name", table_name="club")
    op.drop_table("club")
