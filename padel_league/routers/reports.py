# padel_league/routers/reports.py
from __future__ import annotations

from enum import Enum

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from .. import schemas
from ..db import get_db
from ..services.reports import league_stats, schedule_report, standings_report

route = APIRouter(prefix="/leagues", tags=["reports"])


class ReportType(str, Enum):
    STANDINGS = "standings"
    SCHEDULE = "schedule"


@route.get("/{league_id}/reports/{report_type}", operation_id="league_report")
def download_report(
    league_id: int,
    report_type: ReportType,
    format: str = "csv",
    status: schemas.TeamStatusFilter = schemas.TeamStatusFilter.ALL,
    db: Session = Depends(get_db),
):
    """
    Download a league report as a CSV attachment.
      - standings: the ordered table (status filter as in /standings)
      - schedule: every match by round with its result
    """
    if format.lower() != "csv":
        raise HTTPException(status_code=400, detail="Unsupported format. Supported formats: csv")

    if report_type == ReportType.STANDINGS:
        filename, content = standings_report(db, league_id, status=status)
    else:
        filename, content = schedule_report(db, league_id)

    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@route.get("/{league_id}/stats", response_model=schemas.LeagueStats, operation_id="league_stats")
def get_league_stats(league_id: int, db: Session = Depends(get_db)):
    return league_stats(db, league_id)
