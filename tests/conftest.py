# tests/conftest.py
import os
import tempfile
import threading
import uuid
from pathlib import Path

# settings are read at import time; point them at a throwaway database first
_TMP = Path(tempfile.mkdtemp(prefix="dealflow-tests-"))
os.environ["DEALFLOW_DB_URI"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["DEALFLOW_JWT_SECRET"] = "test-secret"
os.environ["DEALFLOW_ANTHROPIC_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from dealflow.api.http import app  # ensures imports resolve; run tests from repo root


def _route(system: str) -> str:
    s = system.lower()
    if "investment analyst" in s:
        return "ultra"
    if "market analyst" in s:
        return "market"
    if "risk" in s:
        return "risk"
    if "demographic" in s:
        return "demographics"
    return "other"


class FakeCompletionClient:
    """Canned replies keyed by which insight call is asking (ultra/market/risk/demographics)."""

    def __init__(self, replies=None, errors=()):
        self.replies = dict(replies or {})
        self.errors = set(errors)
        self.calls = []
        self._lock = threading.Lock()

    def complete(self, *, system, prompt, temperature, max_tokens):
        key = _route(system)
        with self._lock:
            self.calls.append(key)
        if key in self.errors:
            raise RuntimeError(f"{key} backend unavailable")
        return self.replies.get(key, "{}")


@pytest.fixture(scope="session")
def client():
    return TestClient(app)


@pytest.fixture
def fake_llm():
    return FakeCompletionClient


@pytest.fixture
def register_user(client):
    """Register a fresh user and return (user, auth headers)."""

    def _register():
        name = f"user_{uuid.uuid4().hex[:10]}"
        r = client.post(
            "/api/auth/register",
            json={"username": name, "email": f"{name}@example.com", "password": "hunter22"},
        )
        assert r.status_code == 200, r.text
        body = r.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _register
