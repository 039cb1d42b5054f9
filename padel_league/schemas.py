# padel_league/schemas.py
from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .config import DEFAULT_POINTS_PER_LOSS, DEFAULT_POINTS_PER_WIN
from .models import LeagueStatus, MatchFormat, MatchStatus


# -----------------------
# Shared / Enums
# -----------------------
class TeamStatusFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"


# -----------------------
# League
# -----------------------
class LeagueCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=50)
    status: LeagueStatus = LeagueStatus.DRAFT
    match_format: MatchFormat = MatchFormat.BEST_OF_3
    points_per_win: int = Field(DEFAULT_POINTS_PER_WIN, ge=1)
    points_per_loss: int = Field(DEFAULT_POINTS_PER_LOSS, ge=0)

    @model_validator(mode="after")
    def _loss_not_above_win(self) -> "LeagueCreate":
        if self.points_per_loss > self.points_per_win:
            raise ValueError("points_per_loss cannot exceed points_per_win")
        return self


class LeagueOut(BaseModel):
    id: int
    name: str
    status: LeagueStatus
    match_format: MatchFormat
    points_per_win: int
    points_per_loss: int
    schedule_generated: bool

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class LeagueStatusUpdate(BaseModel):
    status: LeagueStatus


class LeaguePointsUpdate(BaseModel):
    points_per_win: int = Field(..., ge=1)
    points_per_loss: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _loss_not_above_win(self) -> "LeaguePointsUpdate":
        if self.points_per_loss > self.points_per_win:
            raise ValueError("points_per_loss cannot exceed points_per_win")
        return self


# -----------------------
# Team / Join League
# -----------------------
class JoinLeague(BaseModel):
    name: str = Field(..., min_length=2, max_length=30)


class TeamOut(BaseModel):
    id: int
    name: str
    league_id: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class TeamStatusUpdate(BaseModel):
    is_active: bool


# -----------------------
# Schedule / Matches
# -----------------------
class MatchCreate(BaseModel):
    league_id: int
    team_a_id: int
    team_b_id: int
    round: int | None = None


class MatchOut(BaseModel):
    id: int
    league_id: int
    team_a_id: int
    team_b_id: int
    round: int | None = None
    status: MatchStatus
    team_a_score: list[int] | None = None
    team_b_score: list[int] | None = None
    winner_team_id: int | None = None
    completed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class MatchResultIn(BaseModel):
    team_a_score: list[int] = Field(..., min_length=1)
    team_b_score: list[int] = Field(..., min_length=1)
    winner_team_id: int | None = None
    # False stores a provisional result that needs /confirm before it counts
    final: bool = True


# -----------------------
# Rankings / Standings
# -----------------------
class RankingOut(BaseModel):
    league_id: int
    team_id: int
    points: int
    matches_played: int
    wins: int
    losses: int
    sets_won: int
    sets_lost: int
    points_scored: int
    points_conceded: int
    version: int

    model_config = ConfigDict(from_attributes=True)


class RankingUpdate(BaseModel):
    """Outcome of applying or reverting one match."""

    match_id: int
    changed: bool
    winner: RankingOut
    loser: RankingOut


class RankingRecord(BaseModel):
    """Plain standings input: one team's counters plus the name used for tie-breaks."""

    team_id: int
    team_name: str
    is_active: bool = True
    points: int = Field(0, ge=0)
    matches_played: int = Field(0, ge=0)
    wins: int = Field(0, ge=0)
    losses: int = Field(0, ge=0)
    sets_won: int = Field(0, ge=0)
    sets_lost: int = Field(0, ge=0)
    points_scored: int = Field(0, ge=0)
    points_conceded: int = Field(0, ge=0)

    model_config = ConfigDict(frozen=True)


class StandingRow(BaseModel):
    rank: int
    team_id: int
    team_name: str
    is_active: bool
    points: int
    matches_played: int
    wins: int
    losses: int
    sets_won: int
    sets_lost: int
    points_scored: int
    points_conceded: int
    set_ratio: float
    point_ratio: float


class RebuildReport(BaseModel):
    league_id: int
    teams: int
    matches_applied: int
    matches_skipped: int
    records_corrected: int
    ledger_added: int
    ledger_removed: int


# -----------------------
# Reports / Stats
# -----------------------
class MatchTypes(BaseModel):
    decisive: int = 0  # decided in two sets by more than 3 games
    close: int = 0
    deciding_set: int = 0  # needed a third (or later) set


class LeagueStats(BaseModel):
    league_id: int
    league_name: str
    total_matches: int
    completed_matches: int
    completion_percentage: int
    average_sets_per_match: float
    # number of sets played -> completed matches
    sets_distribution: dict[int, int]
    match_types: MatchTypes
    most_common_score: str | None = None
    average_points: float
    top_teams: list[StandingRow]
    generated_at: datetime
