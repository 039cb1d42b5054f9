# padel_league/routers/standings.py
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from .. import schemas
from ..db import get_db
from ..logic.ranking_engine import rebuild_league_rankings
from ..services.standings import get_standings, get_team_standing
from ..utils.idempotency import with_idempotency

route = APIRouter(prefix="/standings", tags=["standings"])


@route.get("/{league_id}", response_model=list[schemas.StandingRow], operation_id="standings_get")
def standings_table(
    league_id: int,
    status: schemas.TeamStatusFilter = schemas.TeamStatusFilter.ALL,
    played_only: bool = False,
    db: Session = Depends(get_db),
):
    """
    Ordered standings for a league, best first, each row carrying its 1-based rank.
    Shared by the dashboard and the public league page; access control is the
    caller's concern.
      - status=active|inactive restricts to teams with that flag
      - played_only=true drops teams that have not played yet
    """
    return get_standings(db, league_id, status=status, played_only=played_only)


@route.get(
    "/{league_id}/teams/{team_id}",
    response_model=schemas.StandingRow,
    operation_id="standings_team",
)
def team_standing(league_id: int, team_id: int, db: Session = Depends(get_db)):
    return get_team_standing(db, league_id, team_id)


@route.post(
    "/{league_id}/rebuild",
    response_model=schemas.RebuildReport,
    operation_id="standings_rebuild",
)
@with_idempotency("rebuild_v1")
async def rebuild(
    league_id: int,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Recompute every Ranking row of the league from its completed matches.
    Consistency repair; safe alongside live result reporting.
    Requires an Idempotency-Key header so a retried call is answered from cache.
    """
    # worker thread: the rebuild waits on row locks and must not block the event loop
    return await run_in_threadpool(rebuild_league_rankings, db, league_id)
