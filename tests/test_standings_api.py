# tests/test_standings_api.py


def setup_league(client, name="Padel Pro", teams=("Alpha", "Bravo", "Charlie"), **settings):
    r = client.post("/leagues/", json={"name": name, **settings})
    assert r.status_code == 200, r.text
    league_id = r.json()["id"]

    ids = {}
    for nm in teams:
        rr = client.post(f"/leagues/{league_id}/join", json={"name": nm})
        assert rr.status_code == 200, rr.text
        ids[nm] = rr.json()["id"]
    return league_id, ids


def play(client, league_id, a, b, a_score, b_score, **extra):
    r = client.post("/matches/", json={"league_id": league_id, "team_a_id": a, "team_b_id": b})
    assert r.status_code == 200, r.text
    match_id = r.json()["id"]
    r = client.put(
        f"/matches/{match_id}/result",
        json={"team_a_score": a_score, "team_b_score": b_score, **extra},
    )
    return match_id, r


def test_fresh_league_lists_every_team_with_zero_counters(client):
    league_id, ids = setup_league(client)
    r = client.get(f"/standings/{league_id}")
    assert r.status_code == 200, r.text
    rows = r.json()
    assert [row["team_name"] for row in rows] == ["Alpha", "Bravo", "Charlie"]
    assert [row["rank"] for row in rows] == [1, 2, 3]
    for row in rows:
        for k in [
            "team_id",
            "team_name",
            "points",
            "matches_played",
            "wins",
            "losses",
            "sets_won",
            "sets_lost",
            "points_scored",
            "points_conceded",
            "set_ratio",
            "point_ratio",
            "rank",
        ]:
            assert k in row
        assert row["points"] == 0 and row["matches_played"] == 0


def test_reporting_a_result_updates_standings(client):
    league_id, ids = setup_league(client)

    match_id, r = play(client, league_id, ids["Charlie"], ids["Alpha"], [6, 6], [2, 3])
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["match"]["status"] == "completed"
    assert body["match"]["winner_team_id"] == ids["Charlie"]
    assert body["rankings"]["changed"] is True
    assert body["rankings"]["winner"]["points"] == 2

    rows = client.get(f"/standings/{league_id}").json()
    assert rows[0]["team_name"] == "Charlie"
    top = rows[0]
    assert (top["wins"], top["points"], top["sets_won"], top["sets_lost"]) == (1, 2, 2, 0)
    assert (top["points_scored"], top["points_conceded"]) == (12, 5)
    assert top["set_ratio"] == 1.0
    assert top["point_ratio"] == 2.4

    alpha = next(row for row in rows if row["team_name"] == "Alpha")
    assert (alpha["losses"], alpha["points"], alpha["sets_lost"]) == (1, 0, 2)
    # no sets won either way, but Alpha scored games against Bravo's zero
    assert alpha["rank"] == 2


def test_resending_same_result_does_not_double_count(client):
    league_id, ids = setup_league(client, teams=("Alpha", "Bravo"))
    match_id, r = play(client, league_id, ids["Alpha"], ids["Bravo"], [6, 6], [2, 3])
    assert r.status_code == 200

    r2 = client.put(f"/matches/{match_id}/result", json={"team_a_score": [6, 6], "team_b_score": [2, 3]})
    assert r2.status_code == 200, r2.text
    assert r2.json()["rankings"]["changed"] is False

    row = client.get(f"/standings/{league_id}/teams/{ids['Alpha']}").json()
    assert row["matches_played"] == 1 and row["points"] == 2 and row["rank"] == 1


def test_editing_a_completed_result_replaces_it(client):
    league_id, ids = setup_league(client, teams=("Alpha", "Bravo"))
    match_id, r = play(client, league_id, ids["Alpha"], ids["Bravo"], [6, 6], [2, 3])
    assert r.status_code == 200

    r = client.put(f"/matches/{match_id}/result", json={"team_a_score": [4, 3], "team_b_score": [6, 6]})
    assert r.status_code == 200, r.text
    assert r.json()["rankings"]["changed"] is True

    rows = {row["team_name"]: row for row in client.get(f"/standings/{league_id}").json()}
    assert rows["Bravo"]["wins"] == 1 and rows["Bravo"]["matches_played"] == 1
    assert rows["Alpha"]["wins"] == 0 and rows["Alpha"]["matches_played"] == 1
    assert rows["Bravo"]["rank"] == 1


def test_provisional_result_needs_confirmation(client):
    league_id, ids = setup_league(client, teams=("Alpha", "Bravo"))
    match_id, r = play(client, league_id, ids["Alpha"], ids["Bravo"], [6, 6], [0, 1], final=False)
    assert r.status_code == 200, r.text
    assert r.json()["match"]["status"] == "provisional"
    assert r.json()["rankings"] is None

    rows = client.get(f"/standings/{league_id}").json()
    assert all(row["matches_played"] == 0 for row in rows)

    r = client.post(f"/matches/{match_id}/confirm")
    assert r.status_code == 200, r.text
    assert r.json()["match"]["status"] == "completed"

    rows = client.get(f"/standings/{league_id}", params={"played_only": True}).json()
    assert len(rows) == 2
    assert rows[0]["team_name"] == "Alpha"

    # confirming twice is a conflict, not a second application
    assert client.post(f"/matches/{match_id}/confirm").status_code == 409


def test_cancel_removes_match_from_standings(client):
    league_id, ids = setup_league(client, teams=("Alpha", "Bravo"))
    match_id, r = play(client, league_id, ids["Alpha"], ids["Bravo"], [6, 6], [2, 3])
    assert r.status_code == 200

    r = client.post(f"/matches/{match_id}/cancel")
    assert r.status_code == 200
    assert r.json()["status"] == "canceled"

    rows = client.get(f"/standings/{league_id}").json()
    assert all(row["points"] == 0 and row["matches_played"] == 0 for row in rows)


def test_status_filter_and_played_only(client):
    league_id, ids = setup_league(client, teams=("Alpha", "Bravo", "Charlie", "Delta"))
    play(client, league_id, ids["Alpha"], ids["Bravo"], [6, 6], [2, 3])

    r = client.patch(f"/teams/{ids['Bravo']}/status", json={"is_active": False})
    assert r.status_code == 200 and r.json()["is_active"] is False

    active = client.get(f"/standings/{league_id}", params={"status": "active"}).json()
    assert [row["team_name"] for row in active] == ["Alpha", "Charlie", "Delta"]
    assert [row["rank"] for row in active] == [1, 2, 3]

    inactive = client.get(f"/standings/{league_id}", params={"status": "inactive"}).json()
    assert [row["team_name"] for row in inactive] == ["Bravo"]

    played = client.get(f"/standings/{league_id}", params={"played_only": True}).json()
    assert {row["team_name"] for row in played} == {"Alpha", "Bravo"}


def test_configured_points_are_used(client):
    league_id, ids = setup_league(client, teams=("Alpha", "Bravo"), points_per_win=3, points_per_loss=1)
    play(client, league_id, ids["Alpha"], ids["Bravo"], [6, 4, 7], [3, 6, 5])
    rows = {row["team_name"]: row for row in client.get(f"/standings/{league_id}").json()}
    assert rows["Alpha"]["points"] == 3
    assert rows["Bravo"]["points"] == 1
    assert rows["Bravo"]["sets_won"] == 1


def test_invalid_scores_rejected_without_side_effects(client):
    league_id, ids = setup_league(client, teams=("Alpha", "Bravo"))
    match_id, r = play(client, league_id, ids["Alpha"], ids["Bravo"], [6, 3], [3, 6])
    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_MATCH_SCORE"

    match_id, r = play(
        client, league_id, ids["Alpha"], ids["Bravo"], [6, 6], [3, 3], winner_team_id=ids["Bravo"]
    )
    assert r.status_code == 400

    assert client.get(f"/matches/{match_id}").json()["status"] == "scheduled"
    rows = client.get(f"/standings/{league_id}").json()
    assert all(row["matches_played"] == 0 for row in rows)


def test_match_between_leagues_rejected(client):
    league_a, ids_a = setup_league(client, name="League A", teams=("Alpha", "Bravo"))
    league_b, ids_b = setup_league(client, name="League B", teams=("Xray",))
    r = client.post(
        "/matches/", json={"league_id": league_a, "team_a_id": ids_a["Alpha"], "team_b_id": ids_b["Xray"]}
    )
    assert r.status_code == 422
    assert r.json()["code"] == "TEAM_NOT_IN_LEAGUE"


def test_unknown_league_and_team(client):
    r = client.get("/standings/9999")
    assert r.status_code == 404
    assert r.json()["code"] == "LEAGUE_NOT_FOUND"

    league_id, ids = setup_league(client, teams=("Alpha", "Bravo"))
    r = client.get(f"/standings/{league_id}/teams/9999")
    assert r.status_code == 422
    assert r.json()["code"] == "TEAM_NOT_IN_LEAGUE"

    assert client.get("/matches/9999").status_code == 404
