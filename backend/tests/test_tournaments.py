from fastapi.testclient import TestClient


def _payload(player_ids, **overrides):
    payload = {
        "name": "Summer League",
        "num_courts": 2,
        "players_per_team": 2,
        "match_duration_minutes": 10,
        "break_duration_minutes": 5,
        "start_time": "18:00",
        "end_time": "20:00",
        "selected_player_ids": player_ids,
    }
    payload.update(overrides)
    return payload


def test_create_and_get_tournament(client: TestClient, make_players):
    ids = make_players(8)
    response = client.post("/api/tournaments", json=_payload(ids))
    assert response.status_code == 201
    tournament = response.json()
    assert tournament["name"] == "Summer League"
    assert tournament["selected_player_ids"] == ids
    assert tournament["balance_by_level"] is False

    fetched = client.get(f"/api/tournaments/{tournament['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["start_time"] == "18:00"
    assert len(client.get("/api/tournaments").json()) == 1


def test_not_enough_players_for_a_full_tour(client: TestClient, make_players):
    ids = make_players(10)
    response = client.post("/api/tournaments", json=_payload(ids, num_courts=4))
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert any("Not enough players (10)" in str(err) and "16 required" in str(err) for err in detail)
    assert client.get("/api/tournaments").json() == []


def test_end_must_be_after_start(client: TestClient, make_players):
    ids = make_players(8)
    response = client.post("/api/tournaments", json=_payload(ids, start_time="20:00", end_time="18:00"))
    assert response.status_code == 422
    assert any("end_time must be after start_time" in str(err) for err in response.json()["detail"])


def test_malformed_time_rejected(client: TestClient, make_players):
    ids = make_players(8)
    assert client.post("/api/tournaments", json=_payload(ids, start_time="25:00")).status_code == 422
    assert client.post("/api/tournaments", json=_payload(ids, end_time="evening")).status_code == 422


def test_non_positive_settings_rejected(client: TestClient, make_players):
    ids = make_players(8)
    assert client.post("/api/tournaments", json=_payload(ids, num_courts=0)).status_code == 422
    assert client.post("/api/tournaments", json=_payload(ids, match_duration_minutes=0)).status_code == 422
    assert client.post("/api/tournaments", json=_payload(ids, break_duration_minutes=-1)).status_code == 422


def test_unknown_players_rejected(client: TestClient, make_players):
    ids = make_players(8)
    response = client.post("/api/tournaments", json=_payload(ids + [999]))
    assert response.status_code == 422
    assert "999" in response.json()["detail"]


def test_unknown_group_rejected(client: TestClient, make_players):
    ids = make_players(8)
    assert client.post("/api/tournaments", json=_payload(ids, selected_group_id=42)).status_code == 422


def test_duplicate_selection_collapsed(client: TestClient, make_players):
    ids = make_players(8)
    response = client.post("/api/tournaments", json=_payload(ids + ids[:2]))
    assert response.status_code == 201
    assert response.json()["selected_player_ids"] == ids


def test_update_tournament(client: TestClient, make_tournament):
    tournament = make_tournament()
    response = client.put(f"/api/tournaments/{tournament['id']}", json={"break_duration_minutes": 0, "name": "Renamed"})
    assert response.status_code == 200
    assert response.json()["break_duration_minutes"] == 0
    assert response.json()["name"] == "Renamed"


def test_update_revalidates_merged_settings(client: TestClient, make_tournament):
    tournament = make_tournament()
    response = client.put(f"/api/tournaments/{tournament['id']}", json={"num_courts": 3})
    assert response.status_code == 422
    assert "Not enough players (8)" in response.json()["detail"]

    response = client.put(f"/api/tournaments/{tournament['id']}", json={"end_time": "17:00"})
    assert response.status_code == 422
    assert client.get(f"/api/tournaments/{tournament['id']}").json()["num_courts"] == 2


def test_delete_tournament_removes_schedule_and_matches(client: TestClient, make_tournament):
    tournament = make_tournament()
    tid = tournament["id"]
    assert client.get(f"/api/tournaments/{tid}/schedule").status_code == 200
    assert len(client.get(f"/api/tournaments/{tid}/matches").json()) == 4

    assert client.delete(f"/api/tournaments/{tid}").status_code == 204
    assert client.get(f"/api/tournaments/{tid}").status_code == 404
    assert client.get(f"/api/tournaments/{tid}/matches").status_code == 404
    assert client.delete(f"/api/tournaments/{tid}").status_code == 404


def test_unknown_tournament_is_404(client: TestClient):
    assert client.get("/api/tournaments/123").status_code == 404
    assert client.put("/api/tournaments/123", json={"name": "x"}).status_code == 404
