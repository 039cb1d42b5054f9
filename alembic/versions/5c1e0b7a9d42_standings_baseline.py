"""standings baseline

Revision ID: 5c1e0b7a9d42
Revises:
Create Date: 2026-10-18 00:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5c1e0b7a9d42"
down_revision = None
branch_labels = None
depends_on = None

league_status = sa.Enum("DRAFT", "REGISTRATION", "ACTIVE", "COMPLETED", "CANCELED", name="leaguestatus")
match_format = sa.Enum("BEST_OF_3", "BEST_OF_5", "SINGLE_SET", name="matchformat")
match_status = sa.Enum("SCHEDULED", "PROVISIONAL", "COMPLETED", "CANCELED", name="matchstatus")
correction_kind = sa.Enum("REVERSAL", "REBUILD", name="correctionkind")


def upgrade() -> None:
    # leagues
    op.create_table(
        "leagues",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False, unique=True),
        sa.Column("status", league_status, nullable=False),
        sa.Column("match_format", match_format, nullable=False),
        sa.Column("points_per_win", sa.Integer(), nullable=False, server_default=sa.text("2")),
        sa.Column("points_per_loss", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("schedule_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("points_per_win >= 1", name="ck_league_points_per_win"),
        sa.CheckConstraint("points_per_loss >= 0", name="ck_league_points_per_loss"),
    )
    op.create_index("ix_leagues_id", "leagues", ["id"])
    op.create_index("ix_leagues_status", "leagues", ["status"])

    # teams
    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=30), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "league_id",
            sa.Integer(),
            sa.ForeignKey("leagues.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("league_id", "name", name="uq_team_league_name"),
    )
    op.create_index("ix_teams_id", "teams", ["id"])
    op.create_index("ix_teams_league_id", "teams", ["league_id"])

    # matches
    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("league_id", sa.Integer(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=True),
        sa.Column("team_a_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=True),
        sa.Column("team_b_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=True),
        sa.Column("round", sa.Integer(), nullable=True),
        sa.Column("status", match_status, nullable=False),
        sa.Column("team_a_score", sa.JSON(), nullable=True),
        sa.Column("team_b_score", sa.JSON(), nullable=True),
        sa.Column("winner_team_id", sa.Integer(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_matches_id", "matches", ["id"])
    op.create_index("ix_matches_league_id", "matches", ["league_id"])
    op.create_index("ix_matches_team_a_id", "matches", ["team_a_id"])
    op.create_index("ix_matches_team_b_id", "matches", ["team_b_id"])
    op.create_index("ix_matches_status", "matches", ["status"])

    # rankings
    op.create_table(
        "rankings",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("league_id", sa.Integer(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=True),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=True),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("matches_played", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("wins", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("losses", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("sets_won", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("sets_lost", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("points_scored", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("points_conceded", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("league_id", "team_id", name="uq_ranking_league_team"),
        sa.CheckConstraint("points >= 0", name="ck_ranking_points"),
        sa.CheckConstraint("matches_played = wins + losses", name="ck_ranking_played"),
    )
    op.create_index("ix_rankings_id", "rankings", ["id"])
    op.create_index("ix_rankings_league_id", "rankings", ["league_id"])
    op.create_index("ix_rankings_team_id", "rankings", ["team_id"])

    # applied_matches (ledger)
    op.create_table(
        "applied_matches",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("league_id", sa.Integer(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=True),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("winner_team_id", sa.Integer(), nullable=False),
        sa.Column("loser_team_id", sa.Integer(), nullable=False),
        sa.Column("winner_delta", sa.JSON(), nullable=False),
        sa.Column("loser_delta", sa.JSON(), nullable=False),
        sa.Column("applied_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("match_id", name="uq_applied_match"),
    )
    op.create_index("ix_applied_matches_id", "applied_matches", ["id"])
    op.create_index("ix_applied_matches_league_id", "applied_matches", ["league_id"])

    # ranking_corrections (audit)
    op.create_table(
        "ranking_corrections",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("league_id", sa.Integer(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=True),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=True),
        sa.Column("match_id", sa.Integer(), nullable=True),
        sa.Column("kind", correction_kind, nullable=False),
        sa.Column("reason", sa.String(length=200), nullable=True),
        sa.Column("delta", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_ranking_corrections_id", "ranking_corrections", ["id"])
    op.create_index("ix_ranking_corrections_league_id", "ranking_corrections", ["league_id"])
    op.create_index("ix_ranking_corrections_team_id", "ranking_corrections", ["team_id"])


def downgrade() -> None:
    op.drop_table("ranking_corrections")
    op.drop_table("applied_matches")
    op.drop_table("rankings")
    op.drop_table("matches")
    op.drop_table("teams")
    op.drop_table("leagues")
