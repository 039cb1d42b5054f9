# padel_league/services/reports.py
from __future__ import annotations

import csv
import io
import re
from collections import Counter
from datetime import datetime

from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import begin_read
from ..logic.ranking_engine import get_league_or_raise
from .standings import get_standings

TOP_TEAMS = 5
# game margin above which a two-set match counts as decisive
DECISIVE_MARGIN = 3

STANDINGS_COLUMNS = [
    "rank",
    "team_name",
    "is_active",
    "matches_played",
    "wins",
    "losses",
    "points",
    "sets_won",
    "sets_lost",
    "points_scored",
    "points_conceded",
    "point_difference",
    "set_ratio",
    "point_ratio",
]

SCHEDULE_COLUMNS = ["round", "match_id", "team_a", "team_b", "status", "result", "winner"]


def report_filename(league: models.League, report_type: str) -> str:
    slug = re.sub(r"\s+", "-", league.name.strip())
    return f"{slug}-{report_type}-report.csv"


def _to_csv(columns: list[str], rows: list[dict]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=columns, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue()


def _score_line(match: models.Match) -> str:
    return ", ".join(f"{a}-{b}" for a, b in zip(match.team_a_score or [], match.team_b_score or []))


def standings_report(db: Session, league_id: int, status=schemas.TeamStatusFilter.ALL) -> tuple[str, str]:
    """Standings table as CSV, in table order. Returns (filename, content)."""
    begin_read(db)
    league = get_league_or_raise(db, league_id)
    rows = []
    for row in get_standings(db, league.id, status=status):
        data = row.model_dump()
        data["point_difference"] = row.points_scored - row.points_conceded
        rows.append(data)
    return report_filename(league, "standings"), _to_csv(STANDINGS_COLUMNS, rows)


def schedule_report(db: Session, league_id: int) -> tuple[str, str]:
    """Every match of the league by round, with its result when completed."""
    begin_read(db)
    league = get_league_or_raise(db, league_id)
    names = {
        t.id: t.name for t in db.query(models.Team).filter(models.Team.league_id == league.id).all()
    }
    matches = (
        db.query(models.Match)
        .filter(models.Match.league_id == league.id)
        .order_by(models.Match.round.asc(), models.Match.id.asc())
        .all()
    )
    rows = []
    for m in matches:
        done = m.status == models.MatchStatus.COMPLETED
        rows.append(
            {
                "round": m.round if m.round is not None else "",
                "match_id": m.id,
                "team_a": names.get(m.team_a_id, ""),
                "team_b": names.get(m.team_b_id, ""),
                "status": m.status.value,
                "result": _score_line(m) if done else "",
                "winner": names.get(m.winner_team_id, "") if done else "",
            }
        )
    return report_filename(league, "schedule"), _to_csv(SCHEDULE_COLUMNS, rows)


def league_stats(db: Session, league_id: int) -> schemas.LeagueStats:
    """
    Summary numbers for a league dashboard, computed from its completed matches.
    Canceled matches are left out of every count.
    """
    begin_read(db)
    league = get_league_or_raise(db, league_id)
    matches = (
        db.query(models.Match)
        .filter(models.Match.league_id == league.id, models.Match.status != models.MatchStatus.CANCELED)
        .order_by(models.Match.id.asc())
        .all()
    )
    completed = [m for m in matches if m.status == models.MatchStatus.COMPLETED and m.team_a_score]

    sets_distribution: Counter[int] = Counter()
    scores: Counter[str] = Counter()
    kinds = schemas.MatchTypes()
    total_sets = 0
    for m in completed:
        n_sets = len(m.team_a_score)
        total_sets += n_sets
        sets_distribution[n_sets] += 1
        scores[_score_line(m)] += 1

        margin = abs(sum(m.team_a_score) - sum(m.team_b_score or []))
        if n_sets > 2:
            kinds.deciding_set += 1
        elif margin > DECISIVE_MARGIN:
            kinds.decisive += 1
        else:
            kinds.close += 1

    table = get_standings(db, league.id)
    most_common = scores.most_common(1)

    return schemas.LeagueStats(
        league_id=league.id,
        league_name=league.name,
        total_matches=len(matches),
        completed_matches=len(completed),
        completion_percentage=round(100 * len(completed) / len(matches)) if matches else 0,
        average_sets_per_match=round(total_sets / len(completed), 2) if completed else 0.0,
        sets_distribution=dict(sorted(sets_distribution.items())),
        match_types=kinds,
        most_common_score=most_common[0][0] if most_common else None,
        average_points=round(sum(r.points for r in table) / len(table), 2) if table else 0.0,
        top_teams=table[:TOP_TEAMS],
        generated_at=datetime.utcnow(),
    )
