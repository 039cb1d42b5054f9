from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import get_db

router = APIRouter(prefix="/teams", tags=["teams"])


def _get_team(db: Session, team_id: int) -> models.Team:
    team = db.get(models.Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


@router.get("/{team_id}", response_model=schemas.TeamOut)
def get_team(team_id: int, db: Session = Depends(get_db)):
    return schemas.TeamOut.model_validate(_get_team(db, team_id))


@router.patch("/{team_id}/status", response_model=schemas.TeamOut)
def update_team_status(team_id: int, body: schemas.TeamStatusUpdate, db: Session = Depends(get_db)):
    """
    Mark a team active/inactive. Its Ranking row is kept either way; the
    standings status filter decides whether it is shown.
    """
    team = _get_team(db, team_id)
    team.is_active = body.is_active
    db.commit()
    db.refresh(team)
    return schemas.TeamOut.model_validate(team)
