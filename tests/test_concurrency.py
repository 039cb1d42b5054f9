from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from padel_league import models
from padel_league.db import Base, use_immediate_transactions
from padel_league.logic.match_result import RANKING_FIELDS, MatchResult
from padel_league.logic.ranking_engine import (
    apply_match_result,
    rebuild_league_rankings,
    record_match_result,
)
from padel_league.services.standings import get_standings


@pytest.fixture()
def file_sessions(tmp_path):
    """A file-backed database so every worker thread gets its own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    use_immediate_transactions(engine)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def _seed(Session, n_teams=6):
    with Session() as db:
        league = models.League(name="Concurrency League")
        db.add(league)
        db.flush()
        teams = []
        for i in range(n_teams):
            team = models.Team(league_id=league.id, name=f"Team {i}")
            db.add(team)
            db.flush()
            teams.append(team.id)

        # full round robin, lower id always wins 6-4 6-4; rankings are created lazily
        match_ids = []
        for i, a in enumerate(teams):
            for b in teams[i + 1 :]:
                m = models.Match(
                    league_id=league.id,
                    team_a_id=a,
                    team_b_id=b,
                    status=models.MatchStatus.COMPLETED,
                    team_a_score=[6, 6],
                    team_b_score=[4, 4],
                )
                db.add(m)
                db.flush()
                match_ids.append(m.id)
        db.commit()
        return league.id, teams, match_ids


def _apply(Session, match_id):
    with Session() as db:
        m = db.get(models.Match, match_id)
        return apply_match_result(db, MatchResult.from_match(m)).changed


def _state(Session, league_id):
    with Session() as db:
        rows = db.query(models.Ranking).filter(models.Ranking.league_id == league_id).all()
        return {r.team_id: {f: getattr(r, f) for f in RANKING_FIELDS} for r in rows}


def test_parallel_applications_count_each_match_once(file_sessions):
    Session = file_sessions
    league_id, teams, match_ids = _seed(Session)

    # every match delivered three times, interleaved
    work = match_ids * 3
    with ThreadPoolExecutor(max_workers=8) as pool:
        changed = list(pool.map(lambda mid: _apply(Session, mid), work))

    assert sum(changed) == len(match_ids)

    state = _state(Session, league_id)
    assert len(state) == len(teams)
    n = len(teams)
    for rank, team_id in enumerate(teams):
        row = state[team_id]
        assert row["wins"] == n - 1 - rank
        assert row["losses"] == rank
        assert row["matches_played"] == n - 1
        assert row["points"] == 2 * row["wins"]

    assert sum(r["points"] for r in state.values()) == 2 * len(match_ids)
    with Session() as db:
        assert db.query(models.AppliedMatch).count() == len(match_ids)


def test_rebuild_racing_with_applications_settles_to_history(file_sessions):
    Session = file_sessions
    league_id, teams, match_ids = _seed(Session)

    def rebuild():
        with Session() as db:
            return rebuild_league_rankings(db, league_id)

    with ThreadPoolExecutor(max_workers=6) as pool:
        futures = [pool.submit(_apply, Session, mid) for mid in match_ids]
        futures.insert(len(futures) // 2, pool.submit(rebuild))
        for f in futures:
            f.result()

    after_race = _state(Session, league_id)

    with Session() as db:
        report = rebuild_league_rankings(db, league_id)
    assert report.records_corrected == 0
    assert report.ledger_added == 0
    assert _state(Session, league_id) == after_race


def _seed_fixture(Session):
    """Two teams and one scheduled match between them."""
    with Session() as db:
        league = models.League(name="Fixture League")
        db.add(league)
        db.flush()
        a = models.Team(league_id=league.id, name="A")
        b = models.Team(league_id=league.id, name="B")
        db.add_all([a, b])
        db.flush()
        m = models.Match(league_id=league.id, team_a_id=a.id, team_b_id=b.id)
        db.add(m)
        db.commit()
        return league.id, a.id, b.id, m.id


A_WINS = ([6, 6], [1, 1])
B_WINS = ([1, 1], [6, 6])


def _assert_standings_follow_match_row(Session, league_id, match_id):
    with Session() as db:
        match = db.get(models.Match, match_id)
        winner, loser = match.winner_team_id, (
            match.team_b_id if match.winner_team_id == match.team_a_id else match.team_a_id
        )
        rows = {r.team_id: r for r in get_standings(db, league_id)}
        assert (rows[winner].wins, rows[winner].losses) == (1, 0)
        assert (rows[loser].wins, rows[loser].losses) == (0, 1)
        assert rows[winner].points == 2
    with Session() as db:
        assert rebuild_league_rankings(db, league_id).records_corrected == 0


def test_correction_from_a_second_session_wins(file_sessions):
    Session = file_sessions
    league_id, a_id, b_id, match_id = _seed_fixture(Session)

    with Session() as first:
        record_match_result(first, match_id, *A_WINS)
    with Session() as second:
        record_match_result(second, match_id, *B_WINS)

    _assert_standings_follow_match_row(Session, league_id, match_id)
    with Session() as db:
        assert db.get(models.Match, match_id).winner_team_id == b_id


def test_stale_session_resending_old_scores_is_reapplied_consistently(file_sessions):
    Session = file_sessions
    league_id, a_id, b_id, match_id = _seed_fixture(Session)

    # keeps the loaded match in its identity map across commits
    stale = Session(expire_on_commit=False)
    try:
        _, upd = record_match_result(stale, match_id, *A_WINS)
        assert upd.changed is True
        stale.commit()

        with Session() as other:
            record_match_result(other, match_id, *B_WINS)

        # the stale session last saw A's scores; the match row now says B
        match, upd = record_match_result(stale, match_id, *A_WINS)
        assert upd.changed is True
        assert match.winner_team_id == a_id
    finally:
        stale.close()

    _assert_standings_follow_match_row(Session, league_id, match_id)


def test_overlapping_result_reports_keep_standings_and_match_in_step(file_sessions):
    Session = file_sessions
    league_id, a_id, b_id, match_id = _seed_fixture(Session)

    def report(i):
        a_score, b_score = A_WINS if i % 2 == 0 else B_WINS
        with Session() as db:
            record_match_result(db, match_id, a_score, b_score)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(report, range(24)))

    _assert_standings_follow_match_row(Session, league_id, match_id)
    with Session() as db:
        assert db.query(models.AppliedMatch).count() == 1


def test_reads_do_not_wait_behind_an_open_writer(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'readers.db'}",
        connect_args={"check_same_thread": False, "timeout": 0.5},
    )
    use_immediate_transactions(engine)
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    league_id, _, _, _ = _seed_fixture(Session)

    writer, reader = Session(), Session()
    try:
        # BEGIN IMMEDIATE: the writer now holds the database write lock
        writer.get(models.League, league_id)
        assert writer.in_transaction()

        rows = get_standings(reader, league_id)
        assert [r.rank for r in rows] == [1, 2]
    finally:
        reader.close()
        writer.close()
        engine.dispose()
