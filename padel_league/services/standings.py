# padel_league/services/standings.py
from __future__ import annotations

from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import begin_read
from ..errors import TeamNotInLeague
from ..logic.ranking_engine import get_league_or_raise
from ..logic.standings import compute_standings, point_ratio, set_ratio


def load_ranking_records(db: Session, league_id: int) -> list[schemas.RankingRecord]:
    """
    All Ranking rows of a league joined with their team, read in one SELECT so
    every row reflects whole committed updates.
    """
    rows = (
        db.query(models.Ranking, models.Team)
        .join(models.Team, models.Team.id == models.Ranking.team_id)
        .filter(models.Ranking.league_id == league_id)
        .all()
    )
    return [
        schemas.RankingRecord(
            team_id=team.id,
            team_name=team.name,
            is_active=team.is_active,
            points=r.points,
            matches_played=r.matches_played,
            wins=r.wins,
            losses=r.losses,
            sets_won=r.sets_won,
            sets_lost=r.sets_lost,
            points_scored=r.points_scored,
            points_conceded=r.points_conceded,
        )
        for r, team in rows
    ]


def _matches_filter(rec: schemas.RankingRecord, status: schemas.TeamStatusFilter, played_only: bool) -> bool:
    if status == schemas.TeamStatusFilter.ACTIVE and not rec.is_active:
        return False
    if status == schemas.TeamStatusFilter.INACTIVE and rec.is_active:
        return False
    if played_only and rec.matches_played == 0:
        return False
    return True


def _to_row(rank: int, rec: schemas.RankingRecord) -> schemas.StandingRow:
    return schemas.StandingRow(
        rank=rank,
        team_id=rec.team_id,
        team_name=rec.team_name,
        is_active=rec.is_active,
        points=rec.points,
        matches_played=rec.matches_played,
        wins=rec.wins,
        losses=rec.losses,
        sets_won=rec.sets_won,
        sets_lost=rec.sets_lost,
        points_scored=rec.points_scored,
        points_conceded=rec.points_conceded,
        set_ratio=round(set_ratio(rec), 4),
        point_ratio=round(point_ratio(rec), 4),
    )


def get_standings(
    db: Session,
    league_id: int,
    status: schemas.TeamStatusFilter = schemas.TeamStatusFilter.ALL,
    played_only: bool = False,
) -> list[schemas.StandingRow]:
    """
    Ordered standings table for a league. Ranks are 1-based and never shared:
    the final tie-break on team name/id makes the order total.
    """
    begin_read(db)
    league = get_league_or_raise(db, league_id)
    records = [r for r in load_ranking_records(db, league.id) if _matches_filter(r, status, played_only)]
    return [_to_row(i, rec) for i, rec in enumerate(compute_standings(records), start=1)]


def get_team_standing(db: Session, league_id: int, team_id: int) -> schemas.StandingRow:
    """One team's row, ranked within the unfiltered league table."""
    for row in get_standings(db, league_id):
        if row.team_id == team_id:
            return row
    raise TeamNotInLeague(team_id, league_id)
