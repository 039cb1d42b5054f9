def _create(client, **body):
    body.setdefault("name", "Settings League")
    r = client.post("/leagues/", json=body)
    assert r.status_code == 200, r.text
    return r.json()


def test_create_league_defaults(client):
    lg = _create(client)
    assert lg["status"] == "draft"
    assert lg["match_format"] == "best_of_3"
    assert lg["points_per_win"] == 2
    assert lg["points_per_loss"] == 0
    assert lg["schedule_generated"] is False

    assert client.post("/leagues/", json={"name": "Settings League"}).status_code == 400
    assert [x["id"] for x in client.get("/leagues/").json()] == [lg["id"]]


def test_points_validation(client):
    r = client.post("/leagues/", json={"name": "Bad Points", "points_per_win": 1, "points_per_loss": 2})
    assert r.status_code == 422

    lg = _create(client)
    r = client.patch(f"/leagues/{lg['id']}/points", json={"points_per_win": 3, "points_per_loss": 1})
    assert r.status_code == 200
    assert (r.json()["points_per_win"], r.json()["points_per_loss"]) == (3, 1)

    r = client.patch(f"/leagues/{lg['id']}/points", json={"points_per_win": 0, "points_per_loss": 0})
    assert r.status_code == 422


def test_status_transitions(client):
    lg = _create(client)
    lid = lg["id"]

    assert client.patch(f"/leagues/{lid}/status", json={"status": "completed"}).status_code == 400

    for step in ("registration", "active", "completed"):
        r = client.patch(f"/leagues/{lid}/status", json={"status": step})
        assert r.status_code == 200, r.text
        assert r.json()["status"] == step

    # terminal
    assert client.patch(f"/leagues/{lid}/status", json={"status": "active"}).status_code == 400
    assert client.post(f"/leagues/{lid}/join", json={"name": "Late"}).status_code == 400

    only_completed = client.get("/leagues/", params={"status": "completed"}).json()
    assert [x["id"] for x in only_completed] == [lid]


def test_join_rejects_duplicate_team_names(client):
    lid = _create(client)["id"]
    assert client.post(f"/leagues/{lid}/join", json={"name": "Smashers"}).status_code == 200
    assert client.post(f"/leagues/{lid}/join", json={"name": "Smashers"}).status_code == 400

    teams = client.get(f"/leagues/{lid}/teams").json()
    assert [t["name"] for t in teams] == ["Smashers"]
    assert client.get("/leagues/777/teams").status_code == 404
