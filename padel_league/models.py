# padel_league/models.py
import enum
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy import (
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .config import DEFAULT_POINTS_PER_LOSS, DEFAULT_POINTS_PER_WIN
from .db import Base


# -----------------------
# Enums
# -----------------------
class LeagueStatus(str, enum.Enum):
    DRAFT = "draft"
    REGISTRATION = "registration"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELED = "canceled"


class MatchFormat(str, enum.Enum):
    BEST_OF_3 = "best_of_3"
    BEST_OF_5 = "best_of_5"
    SINGLE_SET = "single_set"


class MatchStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    PROVISIONAL = "provisional"  # result submitted, awaiting confirmation
    COMPLETED = "completed"
    CANCELED = "canceled"


class CorrectionKind(str, enum.Enum):
    REVERSAL = "reversal"
    REBUILD = "rebuild"


class League(Base):
    __tablename__ = "leagues"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    status: Mapped[LeagueStatus] = mapped_column(
        SAEnum(LeagueStatus), nullable=False, default=LeagueStatus.DRAFT, index=True
    )
    match_format: Mapped[MatchFormat] = mapped_column(
        SAEnum(MatchFormat), nullable=False, default=MatchFormat.BEST_OF_3
    )

    # Standings points awarded per match outcome
    points_per_win: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_POINTS_PER_WIN)
    points_per_loss: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_POINTS_PER_LOSS)

    schedule_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    teams = relationship("Team", back_populates="league", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("points_per_win >= 1", name="ck_league_points_per_win"),
        CheckConstraint("points_per_loss >= 0", name="ck_league_points_per_loss"),
    )


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(30), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    league_id: Mapped[int] = mapped_column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), index=True)
    league = relationship("League", back_populates="teams")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("league_id", "name", name="uq_team_league_name"),)


class Match(Base):
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    league_id: Mapped[int] = mapped_column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), index=True)

    team_a_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), index=True)
    team_b_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), index=True)

    # Round-robin round number; null for ad hoc matches
    round: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[MatchStatus] = mapped_column(
        SAEnum(MatchStatus), nullable=False, default=MatchStatus.SCHEDULED, index=True
    )

    # Games per set, e.g. [6, 6] vs [2, 3]
    team_a_score: Mapped[list[int] | None] = mapped_column(JSON, nullable=True)
    team_b_score: Mapped[list[int] | None] = mapped_column(JSON, nullable=True)
    winner_team_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Ranking(Base):
    """
    Accumulated standing of one team within one league.
    One row per (league_id, team_id); numeric columns are only ever changed
    through single UPDATE statements issued by logic.ranking_engine.
    """

    __tablename__ = "rankings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    league_id: Mapped[int] = mapped_column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), index=True)
    team_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), index=True)

    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    matches_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    losses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sets_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sets_lost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_scored: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_conceded: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    team = relationship("Team")

    __table_args__ = (
        UniqueConstraint("league_id", "team_id", name="uq_ranking_league_team"),
        CheckConstraint("points >= 0", name="ck_ranking_points"),
        CheckConstraint("matches_played = wins + losses", name="ck_ranking_played"),
    )


class AppliedMatch(Base):
    """
    Ledger of match results already folded into rankings.
    The unique match_id is what makes re-delivery a no-op.
    """

    __tablename__ = "applied_matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    league_id: Mapped[int] = mapped_column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), index=True)
    match_id: Mapped[int] = mapped_column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)

    winner_team_id: Mapped[int] = mapped_column(Integer, nullable=False)
    loser_team_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Exact deltas applied, so a reversal subtracts what was added
    winner_delta: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False)
    loser_delta: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False)

    applied_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("match_id", name="uq_applied_match"),)


class RankingCorrection(Base):
    """Audit trail for every write that can decrease a ranking."""

    __tablename__ = "ranking_corrections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    league_id: Mapped[int] = mapped_column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), index=True)
    team_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), index=True)
    match_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    kind: Mapped[CorrectionKind] = mapped_column(SAEnum(CorrectionKind), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(200), nullable=True)
    delta: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
