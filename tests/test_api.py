from __future__ import annotations

import json

from fastapi.testclient import TestClient

from quizboard.api.deps import get_disconnect_check


def _join(client: TestClient, session_id: str, participant_id: str, name: str) -> dict:
    res = client.post("/join", json={"session_id": session_id, "participant_id": participant_id, "name": name})
    assert res.status_code == 200, res.text
    return res.json()


def _answer(client: TestClient, session_id: str, participant_id: str, correct: object):
    return client.post("/answer", json={"session_id": session_id, "participant_id": participant_id, "correct": correct})


def test_healthcheck(client: TestClient) -> None:
    res = client.get("/healthcheck")
    assert res.status_code == 200
    data = res.json()
    assert data["status"] == "ok"
    assert data["sessions"] == 0
    assert data["subscribers"] == 0
    assert data["uptime_sec"] >= 0


def test_join_answer_leaderboard_flow(client: TestClient) -> None:
    _join(client, "q", "u1", "Ana")
    joined = _join(client, "q", "u2", "Ben")
    assert joined["participant"] == {"participant_id": "u2", "name": "Ben", "score": 0, "attempts": 0}
    assert [e["participant_id"] for e in joined["standings"]] == ["u1", "u2"]

    assert _answer(client, "q", "u1", True).status_code == 200
    assert _answer(client, "q", "u2", False).status_code == 200
    res = _answer(client, "q", "u1", True)
    assert res.status_code == 200
    assert res.json()["participant"]["score"] == 2

    board = client.get("/leaderboard", params={"session_id": "q"})
    assert board.status_code == 200
    assert board.json() == {
        "session_id": "q",
        "entries": [
            {"participant_id": "u1", "name": "Ana", "score": 2, "attempts": 2},
            {"participant_id": "u2", "name": "Ben", "score": 0, "attempts": 1},
        ],
    }


def test_join_trims_whitespace(client: TestClient) -> None:
    data = _join(client, "  q ", " u1", "Ana  ")
    assert data["session_id"] == "q"
    assert data["participant"]["participant_id"] == "u1"
    assert data["participant"]["name"] == "Ana"


def test_rejoin_renames_without_resetting_score(client: TestClient) -> None:
    _join(client, "q", "u1", "Ana")
    _answer(client, "q", "u1", True)
    data = _join(client, "q", "u1", "Anna")
    assert data["participant"] == {"participant_id": "u1", "name": "Anna", "score": 1, "attempts": 1}
    assert len(data["standings"]) == 1


def test_join_blank_fields_rejected(client: TestClient) -> None:
    res = client.post("/join", json={"session_id": "q", "participant_id": "   ", "name": "Ana"})
    assert res.status_code == 400
    assert "participant_id" in res.json()["detail"]


def test_join_missing_fields_rejected(client: TestClient) -> None:
    res = client.post("/join", json={"session_id": "q"})
    assert res.status_code == 422


def test_answer_requires_boolean(client: TestClient) -> None:
    _join(client, "q", "u1", "Ana")
    assert _answer(client, "q", "u1", "yes").status_code == 422
    assert _answer(client, "q", "u1", 1).status_code == 422


def test_answer_unknown_session(client: TestClient) -> None:
    res = _answer(client, "nope", "u1", True)
    assert res.status_code == 404
    assert res.json()["detail"] == "Session not found"


def test_answer_unknown_participant(client: TestClient) -> None:
    _join(client, "q", "u1", "Ana")
    res = _answer(client, "q", "ghost", True)
    assert res.status_code == 404
    assert res.json()["detail"] == "Participant not found"

    board = client.get("/leaderboard", params={"session_id": "q"}).json()
    assert board["entries"] == [{"participant_id": "u1", "name": "Ana", "score": 0, "attempts": 0}]


def test_leaderboard_errors(client: TestClient) -> None:
    assert client.get("/leaderboard").status_code == 400
    assert client.get("/leaderboard", params={"session_id": "missing"}).status_code == 404


def test_events_requires_session_id(client: TestClient) -> None:
    res = client.get("/events", params={"session_id": " "})
    assert res.status_code == 400


def test_cors_headers(client: TestClient) -> None:
    res = client.get("/healthcheck", headers={"Origin": "http://example.com"})
    assert res.headers.get("access-control-allow-origin") == "*"


def test_events_stream_sends_standings_and_detaches(client: TestClient) -> None:
    _join(client, "q", "u1", "Ana")
    checks: list[int] = []

    async def _gone_after_first_frame() -> bool:
        checks.append(1)
        return len(checks) > 1

    client.app.dependency_overrides[get_disconnect_check] = lambda: _gone_after_first_frame
    try:
        with client.stream("GET", "/events", params={"session_id": "q"}) as res:
            assert res.status_code == 200
            assert res.headers["content-type"].startswith("text/event-stream")
            assert res.headers["cache-control"] == "no-cache"
            body = res.read().decode()
    finally:
        client.app.dependency_overrides.clear()

    event_line, data_line, *_ = body.split("\n")
    assert event_line == "event: leaderboard"
    payload = json.loads(data_line[len("data: ") :])
    assert payload["session_id"] == "q"
    assert payload["entries"] == [{"participant_id": "u1", "name": "Ana", "score": 0, "attempts": 0}]

    assert client.get("/healthcheck").json()["subscribers"] == 0
