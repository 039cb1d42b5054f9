# padel_league/routers/schedule.py
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models
from ..db import get_db

logger = logging.getLogger(__name__)

route = APIRouter(prefix="/schedule", tags=["schedule"])

BYE = 0


def round_robin_rounds(team_ids: list[int]) -> list[list[tuple[int, int]]]:
    """
    Single round-robin by the circle method: the first team stays fixed and the
    rest rotate one seat per round. Odd counts get a bye marker, and pairings
    against it are dropped, so every team meets every other team exactly once.
    """
    ids = list(team_ids)
    if len(ids) % 2 == 1:
        ids.append(BYE)
    n = len(ids)

    rounds: list[list[tuple[int, int]]] = []
    arr = ids[:]
    for rnd in range(n - 1):
        pairs: list[tuple[int, int]] = []
        for i in range(n // 2):
            a = arr[i]
            b = arr[-(i + 1)]
            if a == BYE or b == BYE:
                continue
            # alternate sides each round
            pairs.append((a, b) if rnd % 2 == 0 else (b, a))
        rounds.append(pairs)
        # rotate (keep first fixed)
        arr = [arr[0]] + [arr[-1]] + arr[1:-1]
    return rounds


@route.post("/{league_id}/round-robin")
def generate_round_robin(league_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    """
    Create one scheduled match for every pair of active teams in the league.
    Refuses to run twice for the same league.
    """
    league = db.get(models.League, league_id)
    if not league:
        raise HTTPException(status_code=404, detail="League not found")
    if league.schedule_generated:
        raise HTTPException(status_code=400, detail="Schedule has already been generated for this league")

    teams = (
        db.query(models.Team)
        .filter(models.Team.league_id == league_id, models.Team.is_active.is_(True))
        .order_by(models.Team.id.asc())
        .all()
    )
    if len(teams) < 2:
        raise HTTPException(status_code=400, detail="Need at least 2 teams")

    created = 0
    rounds = round_robin_rounds([t.id for t in teams])
    for rnd, pairs in enumerate(rounds, start=1):
        for a, b in pairs:
            db.add(
                models.Match(
                    league_id=league.id,
                    team_a_id=a,
                    team_b_id=b,
                    round=rnd,
                    status=models.MatchStatus.SCHEDULED,
                )
            )
            created += 1

    league.schedule_generated = True
    db.commit()
    logger.info("Generated %s matches over %s rounds for league %s", created, len(rounds), league.id)
    return {"ok": True, "rounds": len(rounds), "matches_created": created}
