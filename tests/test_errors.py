import pytest

from padel_league.errors import (
    DuplicateApplication,
    InvalidMatchScore,
    InvalidMatchState,
    LeagueNotFound,
    MatchNotFound,
    StandingsError,
    TeamNotInLeague,
)


@pytest.mark.parametrize(
    "err, code, status",
    [
        (InvalidMatchState(1, "scheduled"), "INVALID_MATCH_STATE", 409),
        (TeamNotInLeague(2, 1), "TEAM_NOT_IN_LEAGUE", 422),
        (LeagueNotFound(1), "LEAGUE_NOT_FOUND", 404),
        (MatchNotFound(1), "MATCH_NOT_FOUND", 404),
        (InvalidMatchScore("sets are level"), "INVALID_MATCH_SCORE", 400),
    ],
)
def test_error_codes_and_statuses(err, code, status):
    assert isinstance(err, StandingsError)
    assert err.code == code
    assert err.status_code == status


def test_duplicate_application_carries_no_success_status():
    err = DuplicateApplication(7)
    assert err.code == "DUPLICATE_APPLICATION"
    assert err.status_code == StandingsError.status_code
    assert not 200 <= err.status_code < 300


def test_invalid_match_state_names_expected_state():
    err = InvalidMatchState(3, "completed", expected="provisional")
    assert err.status == "completed"
    assert "'provisional'" in err.message
