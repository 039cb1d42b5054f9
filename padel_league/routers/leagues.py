from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import get_db

logger = logging.getLogger(__name__)

route = APIRouter(prefix="/leagues", tags=["leagues"])

# Status changes a league may make; anything else is rejected.
ALLOWED_TRANSITIONS: dict[models.LeagueStatus, set[models.LeagueStatus]] = {
    models.LeagueStatus.DRAFT: {models.LeagueStatus.REGISTRATION, models.LeagueStatus.CANCELED},
    models.LeagueStatus.REGISTRATION: {
        models.LeagueStatus.DRAFT,
        models.LeagueStatus.ACTIVE,
        models.LeagueStatus.CANCELED,
    },
    models.LeagueStatus.ACTIVE: {models.LeagueStatus.COMPLETED, models.LeagueStatus.CANCELED},
    models.LeagueStatus.COMPLETED: set(),
    models.LeagueStatus.CANCELED: set(),
}


def _get_league(db: Session, league_id: int) -> models.League:
    league = db.get(models.League, league_id)
    if not league:
        raise HTTPException(status_code=404, detail="League not found")
    return league


@route.post("/", response_model=schemas.LeagueOut)
def create_league(body: schemas.LeagueCreate, db: Session = Depends(get_db)):
    name = body.name.strip()
    existing = db.query(models.League).filter(models.League.name == name).first()
    if existing:
        raise HTTPException(status_code=400, detail="League name already exists")

    league = models.League(
        name=name,
        status=body.status,
        match_format=body.match_format,
        points_per_win=body.points_per_win,
        points_per_loss=body.points_per_loss,
    )
    db.add(league)
    db.commit()
    db.refresh(league)
    logger.info("Created league %s (%s)", league.id, league.name)
    return schemas.LeagueOut.model_validate(league)


@route.get("/", response_model=list[schemas.LeagueOut])
def list_leagues(status: models.LeagueStatus | None = None, db: Session = Depends(get_db)):
    q = db.query(models.League)
    if status is not None:
        q = q.filter(models.League.status == status)
    return [schemas.LeagueOut.model_validate(lg) for lg in q.order_by(models.League.id.asc()).all()]


@route.get("/{league_id}", response_model=schemas.LeagueOut)
def get_league(league_id: int, db: Session = Depends(get_db)):
    return schemas.LeagueOut.model_validate(_get_league(db, league_id))


@route.patch("/{league_id}/status", response_model=schemas.LeagueOut)
def update_status(league_id: int, body: schemas.LeagueStatusUpdate, db: Session = Depends(get_db)):
    league = _get_league(db, league_id)
    if league.status == body.status:
        return schemas.LeagueOut.model_validate(league)

    if body.status not in ALLOWED_TRANSITIONS[league.status]:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot move league from {league.status.value} to {body.status.value}",
        )
    league.status = body.status
    db.commit()
    db.refresh(league)
    return schemas.LeagueOut.model_validate(league)


@route.patch("/{league_id}/points", response_model=schemas.LeagueOut)
def update_points(league_id: int, body: schemas.LeaguePointsUpdate, db: Session = Depends(get_db)):
    """
    Change the win/loss point values. Only future applications use them;
    POST /standings/{league_id}/rebuild re-scores past matches.
    """
    league = _get_league(db, league_id)
    league.points_per_win = body.points_per_win
    league.points_per_loss = body.points_per_loss
    db.commit()
    db.refresh(league)
    return schemas.LeagueOut.model_validate(league)


@route.get("/{league_id}/teams", response_model=list[schemas.TeamOut])
def list_teams(league_id: int, db: Session = Depends(get_db)):
    league = _get_league(db, league_id)
    teams = (
        db.query(models.Team)
        .filter(models.Team.league_id == league.id)
        .order_by(models.Team.id.asc())
        .all()
    )
    return [schemas.TeamOut.model_validate(t) for t in teams]


@route.post("/{league_id}/join", response_model=schemas.TeamOut)
def join_league(league_id: int, body: schemas.JoinLeague, db: Session = Depends(get_db)):
    """Register a team in the league and seed its empty Ranking row."""
    league = _get_league(db, league_id)
    if league.status in (models.LeagueStatus.COMPLETED, models.LeagueStatus.CANCELED):
        raise HTTPException(status_code=400, detail="League is closed to new teams")

    name = body.name.strip()
    dup = (
        db.query(models.Team)
        .filter(models.Team.league_id == league.id, models.Team.name == name)
        .first()
    )
    if dup:
        raise HTTPException(
            status_code=400, detail="A team with that name already exists in this league"
        )

    team = models.Team(league_id=league.id, name=name)
    db.add(team)
    db.flush()
    db.add(models.Ranking(league_id=league.id, team_id=team.id))
    db.commit()
    db.refresh(team)
    return schemas.TeamOut.model_validate(team)


@route.get("/{league_id}/matches", response_model=list[schemas.MatchOut])
def list_matches(
    league_id: int,
    status: models.MatchStatus | None = None,
    db: Session = Depends(get_db),
):
    league = _get_league(db, league_id)
    q = db.query(models.Match).filter(models.Match.league_id == league.id)
    if status is not None:
        q = q.filter(models.Match.status == status)
    matches = q.order_by(models.Match.round.asc(), models.Match.id.asc()).all()
    return [schemas.MatchOut.model_validate(m) for m in matches]
