import json
import os

# Settings are read at import time, so the environment must be in place first
os.environ["FLASK_ENV"] = "test"
os.environ["NASA_API_KEY"] = "test-api-key"
os.environ["NASA_API_BASE_URL"] = "https://api.nasa.gov"
os.environ["FRONTEND_URL"] = "http://localhost:3000"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
import requests

import server
from config import Config
from rate_limiter import limiter


def make_response(payload=None, status=200, content_type="application/json",
                  content=None, url="https://upstream.test/"):
    """Build a real requests.Response so raise_for_status/json behave normally."""
    response = requests.Response()
    response.status_code = status
    response.url = url
    response.headers["Content-Type"] = content_type
    if content is None:
        content = json.dumps(payload).encode("utf-8")
    response._content = content
    return response


@pytest.fixture
def client():
    return server.app.test_client()


@pytest.fixture(autouse=True)
def clear_iss_cache():
    server.reset_iss_cache()
    yield
    server.reset_iss_cache()


@pytest.fixture
def limited(monkeypatch):
    """Turn the limiter on with a budget of two requests per window."""
    monkeypatch.setattr(Config, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(Config, "RATE_LIMIT_REQUESTS", 2)
    limiter.reset()
    yield limiter
    limiter.reset()


@pytest.fixture
def iss_primary_payload():
    return {
        "name": "iss",
        "id": 25544,
        "latitude": 12.345,
        "longitude": 67.89,
        "altitude": 408.05,
        "velocity": 27600.5,
        "visibility": "daylight",
        "timestamp": 1640995200,
        "units": "kilometers",
    }


@pytest.fixture
def iss_fallback_payload():
    return {
        "message": "success",
        "timestamp": 1640995200,
        "iss_position": {"latitude": "12.345", "longitude": "67.890"},
    }


@pytest.fixture
def upstream_response():
    return make_response
