# padel_league/logic/match_result.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .. import models
from ..errors import InvalidMatchScore

# Maximum number of sets a result may contain per match format
MAX_SETS: dict[models.MatchFormat, int] = {
    models.MatchFormat.SINGLE_SET: 1,
    models.MatchFormat.BEST_OF_3: 3,
    models.MatchFormat.BEST_OF_5: 5,
}

RANKING_FIELDS = (
    "points",
    "matches_played",
    "wins",
    "losses",
    "sets_won",
    "sets_lost",
    "points_scored",
    "points_conceded",
)


class MatchResult(BaseModel):
    """Immutable outcome of one match, as delivered by the match lifecycle."""

    match_id: int
    league_id: int
    team_a_id: int
    team_b_id: int
    team_a_score: tuple[int, ...]
    team_b_score: tuple[int, ...]
    status: models.MatchStatus = models.MatchStatus.COMPLETED
    winner_team_id: int | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_match(cls, match: models.Match) -> "MatchResult":
        return cls(
            match_id=match.id,
            league_id=match.league_id,
            team_a_id=match.team_a_id,
            team_b_id=match.team_b_id,
            team_a_score=tuple(match.team_a_score or ()),
            team_b_score=tuple(match.team_b_score or ()),
            status=match.status,
            winner_team_id=match.winner_team_id,
        )


class SideTally(BaseModel):
    """Sets and games one side took out of a match."""

    team_id: int
    sets_won: int = Field(0, ge=0)
    sets_lost: int = Field(0, ge=0)
    games_won: int = Field(0, ge=0)
    games_lost: int = Field(0, ge=0)


class Outcome(BaseModel):
    winner: SideTally
    loser: SideTally


def validate_scores(
    team_a_score: tuple[int, ...] | list[int],
    team_b_score: tuple[int, ...] | list[int],
    match_format: models.MatchFormat | None = None,
) -> None:
    if not team_a_score or not team_b_score:
        raise InvalidMatchScore("at least one set is required")
    if len(team_a_score) != len(team_b_score):
        raise InvalidMatchScore("both teams need a score for every set")
    if any(g < 0 for g in team_a_score) or any(g < 0 for g in team_b_score):
        raise InvalidMatchScore("games cannot be negative")
    if match_format is not None and len(team_a_score) > MAX_SETS[match_format]:
        raise InvalidMatchScore(
            f"{match_format.value} allows at most {MAX_SETS[match_format]} sets"
        )


def decide_outcome(result: MatchResult, match_format: models.MatchFormat | None = None) -> Outcome:
    """
    Count sets and games per side and pick the winner.
    A set goes to whoever took more games in it; level sets count for nobody.
    Padel has no drawn matches, so equal set counts are rejected.
    """
    validate_scores(result.team_a_score, result.team_b_score, match_format)
    if result.team_a_id == result.team_b_id:
        raise InvalidMatchScore("a team cannot play itself")

    a_sets = sum(1 for a, b in zip(result.team_a_score, result.team_b_score) if a > b)
    b_sets = sum(1 for a, b in zip(result.team_a_score, result.team_b_score) if b > a)
    if a_sets == b_sets:
        raise InvalidMatchScore("sets are level, no winner can be decided")

    a_games = sum(result.team_a_score)
    b_games = sum(result.team_b_score)

    side_a = SideTally(
        team_id=result.team_a_id, sets_won=a_sets, sets_lost=b_sets, games_won=a_games, games_lost=b_games
    )
    side_b = SideTally(
        team_id=result.team_b_id, sets_won=b_sets, sets_lost=a_sets, games_won=b_games, games_lost=a_games
    )
    winner, loser = (side_a, side_b) if a_sets > b_sets else (side_b, side_a)

    if result.winner_team_id is not None and result.winner_team_id != winner.team_id:
        raise InvalidMatchScore(
            f"declared winner {result.winner_team_id} does not match the scores (expected {winner.team_id})"
        )
    return Outcome(winner=winner, loser=loser)


def ranking_delta(side: SideTally, *, won: bool, points_per_win: int, points_per_loss: int) -> dict[str, int]:
    """Per-field increments for one side's Ranking row."""
    return {
        "points": points_per_win if won else points_per_loss,
        "matches_played": 1,
        "wins": 1 if won else 0,
        "losses": 0 if won else 1,
        "sets_won": side.sets_won,
        "sets_lost": side.sets_lost,
        "points_scored": side.games_won,
        "points_conceded": side.games_lost,
    }


def outcome_deltas(outcome: Outcome, points_per_win: int, points_per_loss: int) -> tuple[dict[str, int], dict[str, int]]:
    return (
        ranking_delta(outcome.winner, won=True, points_per_win=points_per_win, points_per_loss=points_per_loss),
        ranking_delta(outcome.loser, won=False, points_per_win=points_per_win, points_per_loss=points_per_loss),
    )
