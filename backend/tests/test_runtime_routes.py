from fastapi.testclient import TestClient


def _scheduled_tournament(client: TestClient, **overrides) -> int:
    payload = {"name": "Score Night", "num_courts": 2}
    payload.update(overrides)
    tid = client.post("/api/tournaments", json=payload).json()["id"]
    client.post(f"/api/tournaments/{tid}/teams/quick-add", json={"text": "Ann, Al\nBea, Bo\nCat, Cy\nDee, Dan"})
    response = client.post(f"/api/tournaments/{tid}/schedule/generate", json={})
    assert response.status_code == 200
    return tid


def test_record_score_and_standings(client: TestClient):
    tid = _scheduled_tournament(client)

    response = client.put(f"/api/tournaments/{tid}/matches/1-2/score", json={"score_a": 11, "score_b": 5})
    assert response.status_code == 200
    body = response.json()
    assert (body["match_id"], body["score_a"], body["score_b"]) == ("1-2", 11, 5)

    response = client.put(f"/api/tournaments/{tid}/matches/3-4/score", json={"score": "8-11"})
    assert response.status_code == 200

    standings = client.get(f"/api/tournaments/{tid}/standings").json()
    assert [row["name"] for row in standings[:2]] == ["Ann & Al", "Dee & Dan"]
    assert standings[0]["wins"] == 1
    assert standings[0]["average_margin"] == 6.0
    assert standings[1]["average_margin"] == 3.0
    assert [row["rank"] for row in standings] == [1, 2, 3, 4]


def test_scores_show_in_schedule(client: TestClient):
    tid = _scheduled_tournament(client)
    client.put(f"/api/tournaments/{tid}/matches/2-3/score", json={"score": "11:9"})

    schedule = client.get(f"/api/tournaments/{tid}/schedule").json()
    match = next(m for r in schedule["rounds"] for m in r["matches"] if m["match_id"] == "2-3")
    assert (match["score_a"], match["score_b"]) == (11, 9)


def test_clear_score(client: TestClient):
    tid = _scheduled_tournament(client)
    client.put(f"/api/tournaments/{tid}/matches/1-2/score", json={"score_a": 11, "score_b": 5})

    response = client.delete(f"/api/tournaments/{tid}/matches/1-2/score")
    assert response.status_code == 200
    assert response.json()["score_a"] is None

    standings = client.get(f"/api/tournaments/{tid}/standings").json()
    assert all(row["games_played"] == 0 for row in standings)


def test_invalid_score(client: TestClient):
    tid = _scheduled_tournament(client)
    response = client.put(f"/api/tournaments/{tid}/matches/1-2/score", json={"score": "eleven"})
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INPUT_INVALID"


def test_scoring_disabled(client: TestClient):
    tid = _scheduled_tournament(client, scoring_enabled=False)
    response = client.put(f"/api/tournaments/{tid}/matches/1-2/score", json={"score_a": 11, "score_b": 5})
    assert response.status_code == 400


def test_unknown_match(client: TestClient):
    tid = _scheduled_tournament(client)
    response = client.put(f"/api/tournaments/{tid}/matches/7-8/score", json={"score_a": 1, "score_b": 2})
    assert response.status_code == 404


def test_standings_without_schedule(client: TestClient):
    tid = client.post("/api/tournaments", json={"name": "Quiet"}).json()["id"]
    client.post(f"/api/tournaments/{tid}/teams", json={"player1": "Zed", "player2": "Zoe"})
    client.post(f"/api/tournaments/{tid}/teams", json={"player1": "Amy", "player2": "Abe"})

    standings = client.get(f"/api/tournaments/{tid}/standings").json()
    # No games: ordered by name
    assert [row["name"] for row in standings] == ["Amy & Abe", "Zed & Zoe"]
