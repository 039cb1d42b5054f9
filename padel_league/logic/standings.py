# padel_league/logic/standings.py
from __future__ import annotations

from fractions import Fraction
from typing import Iterable

from ..schemas import RankingRecord

__all__ = [
    "set_ratio",
    "point_ratio",
    "standings_sort_key",
    "compute_standings",
]

# ---------------------------------------------------------------------------
# Tie-break chain, applied in order until two teams differ:
#   1. points          (desc)
#   2. set ratio       (desc)
#   3. point ratio     (desc)
#   4. wins            (desc)
#   5. team name, id   (asc)  -> total order, so no two rows ever tie
# Ratios are compared as Fractions; floats are only for display.
# ---------------------------------------------------------------------------


def _set_ratio_exact(r: RankingRecord) -> Fraction:
    played = r.sets_won + r.sets_lost
    return Fraction(r.sets_won, played) if played > 0 else Fraction(0)


def _point_ratio_exact(r: RankingRecord) -> Fraction:
    if r.points_conceded > 0:
        return Fraction(r.points_scored, r.points_conceded)
    return Fraction(r.points_scored)


def set_ratio(r: RankingRecord) -> float:
    """sets_won / (sets_won + sets_lost), or 0 when no sets have been played."""
    return float(_set_ratio_exact(r))


def point_ratio(r: RankingRecord) -> float:
    """points_scored / points_conceded, or points_scored when nothing was conceded."""
    return float(_point_ratio_exact(r))


def standings_sort_key(r: RankingRecord) -> tuple:
    return (
        -r.points,
        -_set_ratio_exact(r),
        -_point_ratio_exact(r),
        -r.wins,
        r.team_name.casefold(),
        r.team_name,
        r.team_id,
    )


def compute_standings(records: Iterable[RankingRecord]) -> list[RankingRecord]:
    """Order records best-first. Pure: the result depends only on the input values."""
    return sorted(records, key=standings_sort_key)
