import pytest
from fastapi.testclient import TestClient

from pipeline.fetch_data import FetchError
from server import main


RANKINGS_PAYLOAD = {
    "rankings": {
        "rankings": [{
            "name": "College Football Playoff Rankings",
            "ranks": [
                {"current": 1, "team": {"id": "194", "displayName": "Ohio State Buckeyes"}, "record": {"summary": "12-0"}},
                {"current": 2, "team": {"id": "84", "displayName": "Indiana Hoosiers"}, "record": {"summary": "12-0"}},
            ],
        }],
    },
    "records": {"Ohio State Buckeyes": "12-0"},
    "recordsById": {"84": {"name": "Indiana Hoosiers", "record": "12-0"}},
}


@pytest.fixture
def client(monkeypatch):
    main._cache.clear()
    monkeypatch.setattr(main, "get_sor_rows", lambda: [])
    yield TestClient(main.app)
    main._cache.clear()


def _down():
    raise FetchError("ESPN rankings feed returned nothing")


def test_playoff_rankings_proxy(client, monkeypatch):
    monkeypatch.setattr(main, "get_playoff_rankings", lambda: RANKINGS_PAYLOAD)
    resp = client.get("/api/playoff-rankings")
    assert resp.status_code == 200
    assert set(resp.json()) == {"rankings", "records", "recordsById"}


def test_playoff_rankings_upstream_failure(client, monkeypatch):
    monkeypatch.setattr(main, "get_playoff_rankings", _down)
    resp = client.get("/api/playoff-rankings")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Failed to fetch rankings"}


def test_rankings_are_cached(client, monkeypatch):
    calls = []

    def loader():
        calls.append(1)
        return RANKINGS_PAYLOAD

    monkeypatch.setattr(main, "get_playoff_rankings", loader)
    client.get("/api/playoff-rankings")
    client.get("/api/playoff-rankings")
    assert len(calls) == 1

    assert client.post("/api/cache/clear").json() == {"cleared": 1}
    client.get("/api/playoff-rankings")
    assert len(calls) == 2


def test_bracket_from_live_feed(client, monkeypatch):
    monkeypatch.setattr(main, "get_playoff_rankings", lambda: RANKINGS_PAYLOAD)
    resp = client.get("/api/bracket", params={"mode": "direct"})
    assert resp.status_code == 200
    body = resp.json()
    assert [t["id"] for t in body["seeds"]] == ["194", "84"]
    assert body["seeds"][1]["record"] == "12-0"


def test_bracket_falls_back_when_feed_down(client, monkeypatch):
    monkeypatch.setattr(main, "get_playoff_rankings", _down)
    resp = client.get("/api/bracket", params={"mode": "fair"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["field"] == {"total": 12, "autoBids": 4, "atLarge": 8}


def test_bracket_rejects_unknown_mode(client):
    assert client.get("/api/bracket", params={"mode": "committee"}).status_code == 422


def test_fair_score_endpoint(client):
    resp = client.post("/api/fair-score", json={"id": "84", "name": "Indiana Hoosiers", "record": "11-1", "sor": 2})
    assert resp.status_code == 200
    body = resp.json()
    assert body["conference"] == "Big Ten"
    assert body["isPowerConference"] is True
    assert body["fairRankScore"] == pytest.approx(107.57)


def test_fair_score_rejects_blank_id(client):
    resp = client.post("/api/fair-score", json={"id": " ", "name": "Nobody"})
    assert resp.status_code == 422


def test_health(client, monkeypatch):
    for var in ("DATABASE_URL", "DB_HOST", "DB_USER", "DB_PASSWORD", "DB_NAME", "DB_DATABASE"):
        monkeypatch.delenv(var, raising=False)
    body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert body["db"] == {"configured": False, "sorRows": 0}


def test_fair_score_rejects_zero_sor(client):
    resp = client.post("/api/fair-score", json={"id": "84", "name": "Indiana Hoosiers", "record": "11-1", "sor": 0})
    assert resp.status_code == 422
