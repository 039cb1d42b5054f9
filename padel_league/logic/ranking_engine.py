# padel_league/logic/ranking_engine.py
"""
Folds completed match results into per-team Ranking rows.

Every write to a Ranking row is one UPDATE statement that moves all counters
and the version together (``col = col + :delta``), issued after the two rows
have been locked in team-id order. The applied_matches ledger, unique on
match_id, is written in the same transaction and is what turns a re-delivered
result into a no-op.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import begin_read
from ..errors import (
    DuplicateApplication,
    InvalidMatchScore,
    InvalidMatchState,
    LeagueNotFound,
    MatchNotFound,
    TeamNotInLeague,
)
from .match_result import (
    RANKING_FIELDS,
    MatchResult,
    Outcome,
    decide_outcome,
    outcome_deltas,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def get_league_or_raise(db: Session, league_id: int) -> models.League:
    league = db.get(models.League, league_id)
    if league is None:
        raise LeagueNotFound(league_id)
    return league


def check_membership(db: Session, league_id: int, team_ids: Iterable[int]) -> None:
    wanted = set(team_ids)
    found = {
        tid
        for (tid,) in db.query(models.Team.id)
        .filter(models.Team.league_id == league_id, models.Team.id.in_(wanted))
        .all()
    }
    for tid in sorted(wanted - found):
        logger.warning("Team %s is not a member of league %s", tid, league_id)
        raise TeamNotInLeague(tid, league_id)


def ensure_ranking(db: Session, league_id: int, team_id: int) -> bool:
    """
    Create the (league, team) Ranking row if it does not exist yet.
    Returns True when a row was created. A concurrent creator wins quietly.
    """
    exists = (
        db.query(models.Ranking.id)
        .filter(models.Ranking.league_id == league_id, models.Ranking.team_id == team_id)
        .first()
    )
    if exists:
        return False

    db.add(models.Ranking(league_id=league_id, team_id=team_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return False
    logger.info("Created ranking record for team %s in league %s", team_id, league_id)
    return True


def _lock_rankings(db: Session, league_id: int, team_ids: Iterable[int] | None = None) -> list[models.Ranking]:
    q = db.query(models.Ranking).filter(models.Ranking.league_id == league_id)
    if team_ids is not None:
        q = q.filter(models.Ranking.team_id.in_(sorted(set(team_ids))))
    # Fixed lock order keeps overlapping writers from deadlocking
    return q.order_by(models.Ranking.team_id.asc()).populate_existing().with_for_update().all()


def _shift(db: Session, league_id: int, team_id: int, delta: dict[str, int], sign: int = 1) -> None:
    values = {f: getattr(models.Ranking, f) + sign * int(delta.get(f, 0)) for f in RANKING_FIELDS}
    values["version"] = models.Ranking.version + 1
    values["updated_at"] = datetime.utcnow()
    db.execute(
        update(models.Ranking)
        .where(models.Ranking.league_id == league_id, models.Ranking.team_id == team_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )


def _overwrite(db: Session, league_id: int, team_id: int, totals: dict[str, int]) -> None:
    values: dict = {f: int(totals[f]) for f in RANKING_FIELDS}
    values["version"] = models.Ranking.version + 1
    values["updated_at"] = datetime.utcnow()
    db.execute(
        update(models.Ranking)
        .where(models.Ranking.league_id == league_id, models.Ranking.team_id == team_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )


def _snapshot(db: Session, league_id: int, team_id: int) -> schemas.RankingOut:
    begin_read(db)
    row = (
        db.query(models.Ranking)
        .populate_existing()
        .filter(models.Ranking.league_id == league_id, models.Ranking.team_id == team_id)
        .one()
    )
    return schemas.RankingOut.model_validate(row)


def is_applied(db: Session, match_id: int) -> bool:
    return db.query(models.AppliedMatch.id).filter(models.AppliedMatch.match_id == match_id).first() is not None


def _ledger_entry(db: Session, match_id: int, lock: bool = False) -> models.AppliedMatch | None:
    q = db.query(models.AppliedMatch).populate_existing().filter(models.AppliedMatch.match_id == match_id)
    if lock:
        q = q.with_for_update()
    return q.first()


def _fold(
    db: Session,
    league_id: int,
    match_id: int,
    outcome: Outcome,
    winner_delta: dict[str, int],
    loser_delta: dict[str, int],
) -> None:
    """Ledger row plus both increments. The caller holds the ranking locks and commits."""
    db.add(
        models.AppliedMatch(
            league_id=league_id,
            match_id=match_id,
            winner_team_id=outcome.winner.team_id,
            loser_team_id=outcome.loser.team_id,
            winner_delta=winner_delta,
            loser_delta=loser_delta,
        )
    )
    db.flush()
    _shift(db, league_id, outcome.winner.team_id, winner_delta)
    _shift(db, league_id, outcome.loser.team_id, loser_delta)


def _unfold(db: Session, entry: models.AppliedMatch, reason: str | None) -> None:
    """Subtract a ledger entry from both rows, audit each side and drop the entry."""
    for team_id, delta in ((entry.winner_team_id, entry.winner_delta), (entry.loser_team_id, entry.loser_delta)):
        _shift(db, entry.league_id, team_id, delta, sign=-1)
        db.add(
            models.RankingCorrection(
                league_id=entry.league_id,
                team_id=team_id,
                match_id=entry.match_id,
                kind=models.CorrectionKind.REVERSAL,
                reason=reason,
                delta={f: -int(delta.get(f, 0)) for f in RANKING_FIELDS},
            )
        )
    db.delete(entry)
    # the delete must reach the database before a new entry for the same match
    db.flush()


def _update_for(db: Session, league_id: int, match_id: int, outcome: Outcome, changed: bool) -> schemas.RankingUpdate:
    return schemas.RankingUpdate(
        match_id=match_id,
        changed=changed,
        winner=_snapshot(db, league_id, outcome.winner.team_id),
        loser=_snapshot(db, league_id, outcome.loser.team_id),
    )


# ---------------------------------------------------------------------------
# apply
# ---------------------------------------------------------------------------


def _fold_in(
    db: Session,
    league: models.League,
    match_id: int,
    outcome: Outcome,
    winner_delta: dict[str, int],
    loser_delta: dict[str, int],
) -> None:
    _lock_rankings(db, league.id, (outcome.winner.team_id, outcome.loser.team_id))

    if is_applied(db, match_id):
        db.rollback()
        raise DuplicateApplication(match_id)

    try:
        _fold(db, league.id, match_id, outcome, winner_delta, loser_delta)
    except IntegrityError as exc:
        # Lost a race against another delivery of the same match
        db.rollback()
        if is_applied(db, match_id):
            raise DuplicateApplication(match_id) from exc
        raise
    db.commit()


def apply_match_result(db: Session, result: MatchResult) -> schemas.RankingUpdate:
    """
    Apply one completed match to the winner's and loser's Ranking rows.

    Raises InvalidMatchState for non-completed matches, TeamNotInLeague when
    either side is not a member of the match's league, and InvalidMatchScore
    for malformed scores. A match already in the ledger is returned unchanged
    with ``changed=False``.
    """
    if result.status != models.MatchStatus.COMPLETED:
        raise InvalidMatchState(result.match_id, models.MatchStatus(result.status).value)

    league = get_league_or_raise(db, result.league_id)
    check_membership(db, league.id, (result.team_a_id, result.team_b_id))

    outcome = decide_outcome(result, league.match_format)
    winner_delta, loser_delta = outcome_deltas(outcome, league.points_per_win, league.points_per_loss)

    # Lazily create rows for teams that were never seeded
    ensure_ranking(db, league.id, outcome.winner.team_id)
    ensure_ranking(db, league.id, outcome.loser.team_id)

    changed = True
    try:
        _fold_in(db, league, result.match_id, outcome, winner_delta, loser_delta)
    except DuplicateApplication:
        logger.debug("Match %s already applied; returning current rankings", result.match_id)
        changed = False
    else:
        logger.info(
            "Applied match %s in league %s: winner=%s loser=%s",
            result.match_id,
            league.id,
            outcome.winner.team_id,
            outcome.loser.team_id,
        )

    return _update_for(db, league.id, result.match_id, outcome, changed)


# ---------------------------------------------------------------------------
# reversal
# ---------------------------------------------------------------------------


def revert_match_result(db: Session, match_id: int, reason: str | None = None) -> schemas.RankingUpdate | None:
    """
    Subtract a previously applied match from both Ranking rows and drop its
    ledger entry. Each side gets a RankingCorrection audit row.
    Returns None when the match was never applied.
    """
    entry = _ledger_entry(db, match_id)
    if entry is None:
        return None

    league_id = entry.league_id
    winner_id, loser_id = entry.winner_team_id, entry.loser_team_id

    _lock_rankings(db, league_id, (winner_id, loser_id))
    entry = _ledger_entry(db, match_id, lock=True)
    if entry is None:
        db.rollback()
        return None

    _unfold(db, entry, reason)
    db.commit()
    logger.info("Reverted match %s in league %s (%s)", match_id, league_id, reason or "no reason given")

    return schemas.RankingUpdate(
        match_id=match_id,
        changed=True,
        winner=_snapshot(db, league_id, winner_id),
        loser=_snapshot(db, league_id, loser_id),
    )


# ---------------------------------------------------------------------------
# match lifecycle
#
# Each call below is one transaction: the match row is locked first, then the
# two ranking rows in team-id order, and the score write, any reversal and the
# new application commit together. Overlapping reports for one match are
# therefore applied in the same order their scores are stored.
# ---------------------------------------------------------------------------


def _get_match(db: Session, match_id: int) -> models.Match:
    match = db.get(models.Match, match_id)
    if match is None:
        raise MatchNotFound(match_id)
    return match


def _lock_match(db: Session, match_id: int) -> models.Match:
    match = (
        db.query(models.Match)
        .populate_existing()
        .filter(models.Match.id == match_id)
        .with_for_update()
        .first()
    )
    if match is None:
        db.rollback()
        raise MatchNotFound(match_id)
    return match


def _prepare(db: Session, match_id: int) -> tuple[models.Match, models.League]:
    """League and membership checks plus ranking seeding, all before any lock is taken."""
    match = _get_match(db, match_id)
    league = get_league_or_raise(db, match.league_id)
    check_membership(db, league.id, (match.team_a_id, match.team_b_id))
    ensure_ranking(db, league.id, match.team_a_id)
    ensure_ranking(db, league.id, match.team_b_id)
    return match, league


def record_match_result(
    db: Session,
    match_id: int,
    team_a_score: list[int] | tuple[int, ...],
    team_b_score: list[int] | tuple[int, ...],
    *,
    winner_team_id: int | None = None,
    final: bool = True,
) -> tuple[models.Match, schemas.RankingUpdate | None]:
    """
    Store the set scores of a match and bring the standings in line.

    ``final=False`` stores a provisional result and takes back any earlier
    application. A final result completes the match and applies it; sending
    the scores already applied is a no-op (``changed=False``), and different
    scores revert the old application first.
    """
    match, league = _prepare(db, match_id)
    candidate = MatchResult(
        match_id=match.id,
        league_id=league.id,
        team_a_id=match.team_a_id,
        team_b_id=match.team_b_id,
        team_a_score=tuple(team_a_score),
        team_b_score=tuple(team_b_score),
        winner_team_id=winner_team_id,
    )
    outcome = decide_outcome(candidate, league.match_format)
    new_a, new_b = list(team_a_score), list(team_b_score)

    match = _lock_match(db, match_id)
    if match.status == models.MatchStatus.CANCELED:
        db.rollback()
        raise InvalidMatchState(match.id, match.status.value, expected="scheduled")

    _lock_rankings(db, league.id, (match.team_a_id, match.team_b_id))
    entry = _ledger_entry(db, match.id, lock=True)

    unchanged = (
        entry is not None
        and match.status == models.MatchStatus.COMPLETED
        and match.team_a_score == new_a
        and match.team_b_score == new_b
    )
    if final and unchanged:
        db.commit()
        logger.debug("Match %s re-sent with the applied scores; nothing to do", match.id)
        return match, _update_for(db, league.id, match.id, outcome, changed=False)

    if entry is not None:
        _unfold(db, entry, "result edited")

    match.team_a_score = new_a
    match.team_b_score = new_b
    match.winner_team_id = outcome.winner.team_id

    if not final:
        match.status = models.MatchStatus.PROVISIONAL
        match.completed_at = None
        db.commit()
        logger.info("Stored provisional result for match %s", match.id)
        return match, None

    match.status = models.MatchStatus.COMPLETED
    match.completed_at = match.completed_at or datetime.utcnow()
    winner_delta, loser_delta = outcome_deltas(outcome, league.points_per_win, league.points_per_loss)
    _fold(db, league.id, match.id, outcome, winner_delta, loser_delta)
    db.commit()
    logger.info(
        "Recorded match %s in league %s: winner=%s loser=%s",
        match.id,
        league.id,
        outcome.winner.team_id,
        outcome.loser.team_id,
    )
    return match, _update_for(db, league.id, match.id, outcome, changed=True)


def confirm_match_result(db: Session, match_id: int) -> tuple[models.Match, schemas.RankingUpdate]:
    """Turn a provisional result into a completed one and apply it."""
    match, league = _prepare(db, match_id)

    match = _lock_match(db, match_id)
    if match.status != models.MatchStatus.PROVISIONAL:
        db.rollback()
        raise InvalidMatchState(match.id, match.status.value, expected="provisional")
    try:
        outcome = decide_outcome(MatchResult.from_match(match), league.match_format)
    except InvalidMatchScore:
        db.rollback()
        raise

    _lock_rankings(db, league.id, (match.team_a_id, match.team_b_id))
    entry = _ledger_entry(db, match.id, lock=True)
    if entry is not None:
        _unfold(db, entry, "result confirmed")

    match.status = models.MatchStatus.COMPLETED
    match.completed_at = datetime.utcnow()
    winner_delta, loser_delta = outcome_deltas(outcome, league.points_per_win, league.points_per_loss)
    _fold(db, league.id, match.id, outcome, winner_delta, loser_delta)
    db.commit()
    logger.info("Confirmed match %s in league %s", match.id, league.id)
    return match, _update_for(db, league.id, match.id, outcome, changed=True)


def cancel_match(db: Session, match_id: int) -> models.Match:
    """Cancel a match; an applied result is taken out of the standings first."""
    match = _lock_match(db, match_id)
    if match.status == models.MatchStatus.CANCELED:
        db.commit()
        return match

    _lock_rankings(db, match.league_id, (match.team_a_id, match.team_b_id))
    entry = _ledger_entry(db, match.id, lock=True)
    if entry is not None:
        _unfold(db, entry, "match canceled")

    match.status = models.MatchStatus.CANCELED
    match.completed_at = None
    db.commit()
    logger.info("Canceled match %s", match.id)
    return match


# ---------------------------------------------------------------------------
# rebuild
# ---------------------------------------------------------------------------


def _zero() -> dict[str, int]:
    return {f: 0 for f in RANKING_FIELDS}


def rebuild_league_rankings(db: Session, league_id: int) -> schemas.RebuildReport:
    """
    Recompute every Ranking row of a league from its completed matches using
    the league's current point values, and bring the ledger in line.

    Rows are locked in the same team-id order as apply_match_result before any
    match is read, so a concurrent application either finishes first (and is
    counted) or waits and then finds its ledger entry already present.
    """
    league = get_league_or_raise(db, league_id)

    team_ids = [
        tid
        for (tid,) in db.query(models.Team.id)
        .filter(models.Team.league_id == league.id)
        .order_by(models.Team.id.asc())
        .all()
    ]
    for tid in team_ids:
        ensure_ranking(db, league.id, tid)

    rows = _lock_rankings(db, league.id)

    matches = (
        db.query(models.Match)
        .filter(models.Match.league_id == league.id, models.Match.status == models.MatchStatus.COMPLETED)
        .order_by(models.Match.id.asc())
        .all()
    )

    totals: dict[int, dict[str, int]] = {tid: _zero() for tid in team_ids}
    folded: dict[int, tuple[Outcome, dict[str, int], dict[str, int]]] = {}
    skipped = 0
    for m in matches:
        if m.team_a_id not in totals or m.team_b_id not in totals:
            logger.warning("Skipping match %s during rebuild: team outside league %s", m.id, league.id)
            skipped += 1
            continue
        try:
            outcome = decide_outcome(MatchResult.from_match(m), league.match_format)
        except InvalidMatchScore as exc:
            logger.warning("Skipping match %s during rebuild: %s", m.id, exc.message)
            skipped += 1
            continue

        wd, ld = outcome_deltas(outcome, league.points_per_win, league.points_per_loss)
        for tid, delta in ((outcome.winner.team_id, wd), (outcome.loser.team_id, ld)):
            acc = totals[tid]
            for f in RANKING_FIELDS:
                acc[f] += delta[f]
        folded[m.id] = (outcome, wd, ld)

    corrected = 0
    for row in rows:
        target = totals.get(row.team_id, _zero())
        current = {f: getattr(row, f) for f in RANKING_FIELDS}
        if current == target:
            continue
        _overwrite(db, league.id, row.team_id, target)
        db.add(
            models.RankingCorrection(
                league_id=league.id,
                team_id=row.team_id,
                kind=models.CorrectionKind.REBUILD,
                reason="rebuilt from match history",
                delta={f: target[f] - current[f] for f in RANKING_FIELDS if target[f] != current[f]},
            )
        )
        corrected += 1

    ledger = {e.match_id: e for e in db.query(models.AppliedMatch).filter(models.AppliedMatch.league_id == league.id)}
    removed = 0
    for mid, entry in ledger.items():
        if mid not in folded:
            db.delete(entry)
            removed += 1

    added = 0
    for mid, (outcome, wd, ld) in folded.items():
        entry = ledger.get(mid)
        if entry is None:
            db.add(
                models.AppliedMatch(
                    league_id=league.id,
                    match_id=mid,
                    winner_team_id=outcome.winner.team_id,
                    loser_team_id=outcome.loser.team_id,
                    winner_delta=wd,
                    loser_delta=ld,
                )
            )
            added += 1
        else:
            entry.winner_team_id = outcome.winner.team_id
            entry.loser_team_id = outcome.loser.team_id
            entry.winner_delta = wd
            entry.loser_delta = ld

    db.commit()
    logger.info(
        "Rebuilt rankings for league %s: %s matches, %s records corrected",
        league.id,
        len(folded),
        corrected,
    )

    return schemas.RebuildReport(
        league_id=league.id,
        teams=len(team_ids),
        matches_applied=len(folded),
        matches_skipped=skipped,
        records_corrected=corrected,
        ledger_added=added,
        ledger_removed=removed,
    )
