# smoke.py: end-to-end run against a live Padel League API
import json
import os
import uuid

import requests

BASE = os.environ.get("PADEL_BASE", "http://127.0.0.1:8000")


def post(path, data=None, headers=None):
    r = requests.post(BASE + path, json=data, headers=headers, timeout=15)
    r.raise_for_status()
    return r.json()


def put(path, data):
    r = requests.put(BASE + path, json=data, timeout=15)
    r.raise_for_status()
    return r.json()


def get(path):
    r = requests.get(BASE + path, timeout=15)
    r.raise_for_status()
    return r.json()


print("=== 1) create league ===")
league = post("/leagues/", {"name": f"Smoke {uuid.uuid4().hex[:6]}", "points_per_win": 3, "points_per_loss": 1})
league_id = league["id"]
print("league_id", league_id)

print("=== 2) join teams ===")
teams = [post(f"/leagues/{league_id}/join", {"name": nm}) for nm in ("Bandeja", "Vibora", "Chiquita", "Globo")]
print("team ids", [t["id"] for t in teams])

print("=== 3) round robin ===")
print(post(f"/schedule/{league_id}/round-robin"))
matches = get(f"/leagues/{league_id}/matches")

print("=== 4) report results ===")
# team_a always takes it in straight sets
for m in matches:
    put(f"/matches/{m['id']}/result", {"team_a_score": [6, 7], "team_b_score": [4, 5]})
# re-sending one must not count twice
again = put(f"/matches/{matches[0]['id']}/result", {"team_a_score": [6, 7], "team_b_score": [4, 5]})
assert again["rankings"]["changed"] is False

print("=== 5) rebuild ===")
report = post(f"/standings/{league_id}/rebuild", headers={"Idempotency-Key": uuid.uuid4().hex})
assert report["records_corrected"] == 0, report

print("=== 6) outputs ===")
table = get(f"/standings/{league_id}")
print("\n-- standings --\n", json.dumps(table, indent=2))
assert [row["rank"] for row in table] == list(range(1, len(table) + 1))

stats = get(f"/leagues/{league_id}/stats")
print("\n-- stats --\n", json.dumps(stats, indent=2))
assert stats["completion_percentage"] == 100, stats

r = requests.get(BASE + f"/leagues/{league_id}/reports/standings", params={"format": "csv"}, timeout=15)
r.raise_for_status()
print("\n-- standings.csv --\n", r.text)
