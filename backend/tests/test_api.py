import uuid
from datetime import datetime, timedelta

API = "/api/v1"

def _start(client):
    response = client.post(f"{API}/sessions", json={"user_metadata": {"source": "test"}})
    assert response.status_code == 201
    return response.json()

def _answer(client, session_id, pair, pick=0):
    return client.post(f"{API}/sessions/{session_id}/selections",
                       json={"selected_id": pair[pick]["id"], "time_to_decision": 1.5})

def _play(client, session_id, pair, rounds):
    for _ in range(rounds):
        data = _answer(client, session_id, pair).json()
        pair = data["next_pair"]
    return pair

def test_start_session(client):
    data = _start(client)

    assert uuid.UUID(data["session_id"])
    assert len(data["pair"]) == 2
    assert data["pair"][0]["id"] != data["pair"][1]["id"]
    assert data["progress"]["choices_made"] == 0
    assert data["progress"]["min_choices_required"] == 3

def test_start_session_without_body(client):
    response = client.post(f"{API}/sessions")

    assert response.status_code == 201

def test_session_status_and_current_pair(client):
    data = _start(client)
    session_id = data["session_id"]

    status = client.get(f"{API}/sessions/{session_id}").json()
    pair = client.get(f"{API}/sessions/{session_id}/pair").json()

    assert status["state"] == "initialized"
    assert [d["id"] for d in pair["pair"]] == [d["id"] for d in data["pair"]]

def test_submit_selection(client):
    data = _start(client)

    response = _answer(client, data["session_id"], data["pair"], pick=1)
    body = response.json()

    assert response.status_code == 200
    assert body["selection"]["selected_id"] == data["pair"][1]["id"]
    assert body["selection"]["rejected_id"] == data["pair"][0]["id"]
    assert body["selection"]["round_number"] == 1
    assert len(body["next_pair"]) == 2
    assert body["progress"]["choices_made"] == 1

def test_submit_selection_outside_pair(client):
    data = _start(client)
    pair_ids = {d["id"] for d in data["pair"]}
    outsider = next(f"design_00{i}" for i in range(1, 9) if f"design_00{i}" not in pair_ids)

    response = client.post(f"{API}/sessions/{data['session_id']}/selections",
                           json={"selected_id": outsider})

    assert response.status_code == 400

def test_submit_selection_validation(client):
    data = _start(client)

    response = client.post(f"{API}/sessions/{data['session_id']}/selections", json={})

    assert response.status_code == 422

def test_unknown_and_malformed_session_ids(client):
    assert client.get(f"{API}/sessions/{uuid.uuid4()}").status_code == 404
    assert client.get(f"{API}/sessions/not-a-uuid").status_code == 400
    assert client.get(f"{API}/sessions/{uuid.uuid4()}/results").status_code == 404

def test_results_flow(client):
    data = _start(client)
    session_id = data["session_id"]
    pair = _play(client, session_id, data["pair"], 2)

    early = client.get(f"{API}/sessions/{session_id}/results")
    assert early.status_code == 409
    assert early.json()["detail"]["min_choices_required"] == 3

    partial = client.get(f"{API}/sessions/{session_id}/results", params={"allow_partial": True})
    assert partial.status_code == 200
    assert partial.json()["metadata"]["total_selections"] == 2

    _play(client, session_id, pair, 1)
    profile = client.get(f"{API}/sessions/{session_id}/results").json()

    assert profile["metadata"]["total_selections"] == 3
    assert set(profile["preferences"]) == {
        "style", "industry", "typography", "type", "category", "platform", "colors"
    }
    assert profile["strength_scores"]["style"]["label"] in {"weak", "moderate", "strong"}
    assert profile["summary"].startswith("Based on 3 choices")
    assert 1 <= len(profile["top_recommendations"]) <= 5

def test_results_text_export(client):
    data = _start(client)
    session_id = data["session_id"]
    _play(client, session_id, data["pair"], 3)

    response = client.get(f"{API}/sessions/{session_id}/results/text")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text.startswith("YOUR DESIGN PREFERENCE PROFILE\n")
    assert "Based on 3 choices" in response.text

def test_favorites(client):
    data = _start(client)
    session_id = data["session_id"]

    toggled = client.post(f"{API}/sessions/{session_id}/favorites/design_004").json()
    favorites = client.get(f"{API}/sessions/{session_id}/favorites").json()

    assert toggled["is_hearted"] is True
    assert favorites["total"] == 1
    assert favorites["favorites"][0]["title"] == "Ledger"
    assert favorites["favorites"][0]["score"] == 5

    missing = client.post(f"{API}/sessions/{session_id}/favorites/missing")
    assert missing.status_code == 404

def test_analyze_with_supplied_designs(client):
    payload = {
        "selections": [
            {"selected_id": "d1", "rejected_id": "d2"},
            {"selected_id": "d1", "rejected_id": "d2"},
            {"selected_id": "d2", "rejected_id": "d1"},
        ],
        "designs": [
            {"id": "d1", "tags": {"style": ["Minimalist"]}},
            {"id": "d2", "tags": {"style": ["Bold"]}},
        ],
        "completed_at": "2025-01-30T10:00:00",
    }

    response = client.post(f"{API}/analyze", json=payload)
    body = response.json()

    assert response.status_code == 200
    assert body["preferences"]["style"]["top"] == [
        {"tag": "Minimalist", "count": 2, "percentage": 67},
        {"tag": "Bold", "count": 1, "percentage": 33},
    ]
    assert body["top_recommendations"] == ["Favor Minimalist aesthetics"]

def test_analyze_against_loaded_catalogue(client):
    response = client.post(f"{API}/analyze", json={
        "selections": [{"selected_id": "design_001"}, {"selected_id": "unknown"}],
    })
    body = response.json()

    assert response.status_code == 200
    assert body["metadata"]["total_selections"] == 2
    assert body["preferences"]["style"]["top"][0] == {"tag": "Minimalist", "count": 1, "percentage": 50}

def test_analyze_requires_selections(client):
    assert client.post(f"{API}/analyze", json={}).status_code == 422

def test_designs(client):
    listing = client.get(f"{API}/designs").json()
    filtered = client.get(f"{API}/designs", params={"tag": "minimalist"}).json()
    by_category = client.get(f"{API}/designs", params={"tag": "react", "category": "platform"}).json()
    design = client.get(f"{API}/designs/design_001").json()

    assert listing["total"] == 8
    assert {d["id"] for d in filtered["designs"]} == {"design_001", "design_004", "design_006"}
    assert by_category["total"] == 2
    assert design["websiteUrl"] == "https://northwind.io/"
    assert client.get(f"{API}/designs/missing").status_code == 404

def test_health_and_stats(client):
    _start(client)

    health = client.get(f"{API}/health").json()
    stats = client.get(f"{API}/stats").json()

    assert health["status"] == "healthy"
    assert health["components"]["designs_loaded"] == 8
    assert health["configuration"]["strong_threshold"] == 50
    assert stats["total_sessions"] == 1

def test_admin_cleanup(client):
    _start(client)

    response = client.post(f"{API}/admin/cleanup", params={"max_age_hours": 1})

    assert response.status_code == 200
    assert response.json()["sessions_removed"] == 0
    assert response.json()["sessions_remaining"] == 1

def test_admin_cleanup_defaults_to_configured_age(client, manager):
    stale = manager.sessions[_start(client)["session_id"]]
    _start(client)
    stale.last_activity = datetime.now() - timedelta(hours=manager.settings.SESSION_MAX_AGE_HOURS + 1)

    data = client.post(f"{API}/admin/cleanup").json()

    assert data["max_age_hours"] == manager.settings.SESSION_MAX_AGE_HOURS
    assert data["sessions_removed"] == 1
    assert data["sessions_remaining"] == 1

def test_request_headers(client):
    response = client.get(f"{API}/health", headers={"X-Request-ID": "abc123"})

    assert response.headers["X-Request-ID"] == "abc123"
    assert response.headers["X-Response-Time"].endswith("s")
    assert response.headers["X-Content-Type-Options"] == "nosniff"

def test_root(client):
    assert client.get("/").json()["docs"] == "/docs"
