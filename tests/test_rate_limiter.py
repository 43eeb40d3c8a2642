from unittest.mock import patch

import pytest

from config import Config
from rate_limiter import default_rate_limit, limiter


@pytest.fixture
def astronauts():
    with patch("server.fetch_astronauts", return_value=[]) as fetch:
        yield fetch


def test_default_limit_follows_config(monkeypatch):
    monkeypatch.setattr(Config, "RATE_LIMIT_REQUESTS", 100)
    monkeypatch.setattr(Config, "RATE_LIMIT_WINDOW_SECONDS", 900)

    assert default_rate_limit() == "100 per 900 seconds"


def test_disabled_limiter_lets_everything_through(client, astronauts):
    statuses = [client.get("/api/nasa/astronauts").status_code for _ in range(5)]

    assert statuses == [200] * 5
    assert astronauts.call_count == 5


def test_blocks_after_budget(client, limited, astronauts):
    statuses = [client.get("/api/nasa/astronauts").status_code for _ in range(4)]

    assert statuses == [200, 200, 429, 429]
    assert astronauts.call_count == 2


def test_clients_are_counted_separately(client, limited, astronauts):
    first = {"REMOTE_ADDR": "10.0.0.1"}
    second = {"REMOTE_ADDR": "10.0.0.2"}

    assert client.get("/api/nasa/astronauts", environ_base=first).status_code == 200
    assert client.get("/api/nasa/astronauts", environ_base=first).status_code == 200
    assert client.get("/api/nasa/astronauts", environ_base=first).status_code == 429
    assert client.get("/api/nasa/astronauts", environ_base=second).status_code == 200


def test_reset_clears_counters(client, limited, astronauts):
    for _ in range(3):
        client.get("/api/nasa/astronauts")

    limiter.reset()

    assert client.get("/api/nasa/astronauts").status_code == 200


def test_remaining_budget_in_headers(client, limited, astronauts):
    first = client.get("/api/nasa/astronauts")
    second = client.get("/api/nasa/astronauts")

    assert first.headers["X-RateLimit-Limit"] == "2"
    assert first.headers["X-RateLimit-Remaining"] == "1"
    assert second.headers["X-RateLimit-Remaining"] == "0"
