import pytest
import requests

from pipeline import espn_api
from pipeline.espn_api import EspnApiClient


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self.payload = payload or {}

    def json(self):
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)


class FakeSession:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def make_client(monkeypatch):
    monkeypatch.setattr(espn_api.time, "sleep", lambda seconds: None)

    def _make(*outcomes):
        client = EspnApiClient(base_url="https://espn.test/cfb/", requests_per_second=1000, max_retries=3)
        client._local.session = FakeSession(*outcomes)
        return client

    return _make


def test_server_error_is_retried(make_client):
    client = make_client(FakeResponse(503), FakeResponse(200, {"rankings": []}))
    assert client.get_rankings() == {"rankings": []}
    assert len(client.session.calls) == 2
    assert client.request_count == 2


def test_rate_limit_is_retried(make_client):
    client = make_client(FakeResponse(429), FakeResponse(200, {"ok": True}))
    assert client.get_standings() == {"ok": True}


def test_not_found_is_empty(make_client):
    client = make_client(FakeResponse(404))
    assert client.get_scoreboard("20251129") == {}
    url, params = client.session.calls[0]
    assert url == "https://espn.test/cfb/scoreboard"
    assert params["dates"] == "20251129"
    assert params["groups"] == "80"
    assert "_" in params


def test_persistent_server_error_raises(make_client):
    client = make_client(FakeResponse(500), FakeResponse(502), FakeResponse(500))
    with pytest.raises(requests.exceptions.HTTPError):
        client.get_rankings()
    assert len(client.session.calls) == 3


def test_client_error_is_not_retried(make_client):
    client = make_client(FakeResponse(400), FakeResponse(200))
    with pytest.raises(requests.exceptions.HTTPError):
        client.get_rankings()
    assert len(client.session.calls) == 1


def test_timeout_retried_then_raised(make_client):
    client = make_client(requests.exceptions.Timeout(), FakeResponse(200, {"ok": True}))
    assert client.get_rankings() == {"ok": True}

    client = make_client(*[requests.exceptions.Timeout() for _ in range(3)])
    with pytest.raises(requests.exceptions.Timeout):
        client.get_rankings()
