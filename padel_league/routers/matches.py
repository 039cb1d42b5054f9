# padel_league/routers/matches.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import get_db
from ..errors import MatchNotFound
from ..logic.ranking_engine import (
    cancel_match,
    check_membership,
    confirm_match_result,
    get_league_or_raise,
    record_match_result,
)

route = APIRouter(prefix="/matches", tags=["matches"])


def _get_match(db: Session, match_id: int) -> models.Match:
    match = db.get(models.Match, match_id)
    if match is None:
        raise MatchNotFound(match_id)
    return match


def _match_out(match: models.Match, ranking: schemas.RankingUpdate | None = None) -> dict:
    return {
        "match": schemas.MatchOut.model_validate(match).model_dump(mode="json"),
        "rankings": ranking.model_dump() if ranking is not None else None,
    }


@route.post("/", response_model=schemas.MatchOut)
def create_match(body: schemas.MatchCreate, db: Session = Depends(get_db)):
    """Schedule a single ad hoc match between two teams of the same league."""
    league = get_league_or_raise(db, body.league_id)
    if body.team_a_id == body.team_b_id:
        raise HTTPException(status_code=400, detail="A team cannot play itself")
    check_membership(db, league.id, (body.team_a_id, body.team_b_id))

    match = models.Match(
        league_id=league.id,
        team_a_id=body.team_a_id,
        team_b_id=body.team_b_id,
        round=body.round,
        status=models.MatchStatus.SCHEDULED,
    )
    db.add(match)
    db.commit()
    db.refresh(match)
    return schemas.MatchOut.model_validate(match)


@route.get("/{match_id}", response_model=schemas.MatchOut)
def get_match(match_id: int, db: Session = Depends(get_db)):
    return schemas.MatchOut.model_validate(_get_match(db, match_id))


@route.put("/{match_id}/result")
def record_result(match_id: int, body: schemas.MatchResultIn, db: Session = Depends(get_db)):
    """
    Record the set scores of a match.

    final=false stores a provisional result (no ranking change) that must be
    confirmed. A final result completes the match and applies it to the
    standings. Re-sending the same final result is harmless; sending a
    different one for a completed match reverts the old result first.
    """
    match, ranking = record_match_result(
        db,
        match_id,
        body.team_a_score,
        body.team_b_score,
        winner_team_id=body.winner_team_id,
        final=body.final,
    )
    return _match_out(match, ranking)


@route.post("/{match_id}/confirm")
def confirm_result(match_id: int, db: Session = Depends(get_db)):
    """Turn a provisional result into a completed one and apply it."""
    match, ranking = confirm_match_result(db, match_id)
    return _match_out(match, ranking)


@route.post("/{match_id}/cancel", response_model=schemas.MatchOut)
def cancel(match_id: int, db: Session = Depends(get_db)):
    """Cancel a match; a completed one is first removed from the standings."""
    return schemas.MatchOut.model_validate(cancel_match(db, match_id))
