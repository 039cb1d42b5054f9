"""
Error kinds raised by the ranking engine and standings service.
Routes do not catch these; main.py renders them as JSON responses.
"""


class StandingsError(Exception):
    """Base error for the standings core."""

    status_code = 400

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidMatchState(StandingsError):
    """Raised when a match is not in the state an operation needs."""

    status_code = 409

    def __init__(self, match_id: int, status: str, expected: str = "completed"):
        super().__init__(
            f"Match {match_id} is '{status}', expected '{expected}'",
            "INVALID_MATCH_STATE",
        )
        self.match_id = match_id
        self.status = status


class TeamNotInLeague(StandingsError):
    """Raised when a team referenced by a match or query is not a league member."""

    status_code = 422

    def __init__(self, team_id: int, league_id: int):
        super().__init__(
            f"Team {team_id} is not a member of league {league_id}",
            "TEAM_NOT_IN_LEAGUE",
        )
        self.team_id = team_id
        self.league_id = league_id


class DuplicateApplication(StandingsError):
    """Raised internally when a match is already in the ledger; absorbed as a no-op."""

    def __init__(self, match_id: int):
        super().__init__(f"Match {match_id} has already been applied", "DUPLICATE_APPLICATION")
        self.match_id = match_id


class LeagueNotFound(StandingsError):
    status_code = 404

    def __init__(self, league_id: int):
        super().__init__("League not found", "LEAGUE_NOT_FOUND")
        self.league_id = league_id


class MatchNotFound(StandingsError):
    status_code = 404

    def __init__(self, match_id: int):
        super().__init__("Match not found", "MATCH_NOT_FOUND")
        self.match_id = match_id


class InvalidMatchScore(StandingsError):
    """Raised when set scores are malformed or contradict the declared winner."""

    def __init__(self, reason: str):
        super().__init__(f"Invalid match score: {reason}", "INVALID_MATCH_SCORE")
