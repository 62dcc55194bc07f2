"""Pytest shared fixtures: test app, session helpers and an in-memory Graph."""
import os
import pathlib
import sys
from types import SimpleNamespace
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Configure test environment BEFORE any app imports
os.environ.setdefault("DEMO_MODE", "true")
os.environ.setdefault("FLASK_SESSION_COOKIE_SECURE", "false")

import pytest
import requests

from app.core.graph import GraphClient, GraphAPIError, GraphTransportError
from app.flask_app import create_app

ORG_TENANT_ID = "72f988bf-86f1-41af-91ab-2d7cd011db47"
ALL_USER_SCOPES = ("User.ReadWrite", "User.ReadBasic.All", "User.ReadWrite.All")


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Fail loudly if a test reaches for the real Graph or Entra endpoints.

    Tests exercising the HTTP layer install their own fakes on top.
    """
    def _blocked(method):
        def _call(url, *args, **kwargs):
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return _call

    for method in ("get", "post", "patch", "delete"):
        monkeypatch.setattr(requests, method, _blocked(method.upper()))


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Graph
# ─────────────────────────────────────────────────────────────────────────────
class FakeGraph(GraphClient):
    """GraphClient whose HTTP verbs answer from a canned response table.

    URL resolution (including the continuation-link guard) and paging are
    inherited from the real client.
    """

    def __init__(self):
        super().__init__("fake-token")
        self.responses = {}
        self.calls = []

    def respond(self, method: str, path: str, result=None):
        self.responses[(method, path)] = result
        return self

    def fail(self, method: str, path: str, status: int, code: str = "", message: str = "Graph error"):
        self.responses[(method, path)] = GraphAPIError(status, code, message, path)
        return self

    def unreachable(self, method: str, path: str, message: str = "Could not reach Microsoft Graph: read timed out"):
        self.responses[(method, path)] = GraphTransportError(message, path)
        return self

    def calls_to(self, method: str, path: Optional[str] = None):
        return [call for call in self.calls if call.method == method and (path is None or call.path == path)]

    def _call(self, method, path, params=None, json=None):
        relative = self.url_for(path)[len(self.base_url):]
        self.calls.append(SimpleNamespace(method=method, path=relative, params=params, json=json))
        if (method, relative) not in self.responses:
            raise AssertionError(f"Unexpected Graph call: {method} {relative}")
        result = self.responses[(method, relative)]
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, path, params=None):
        return self._call("GET", path, params=params)

    def get_content(self, path):
        return self._call("GET", path)

    def post(self, path, json=None):
        return self._call("POST", path, json=json) or {}

    def patch(self, path, json=None):
        return self._call("PATCH", path, json=json) or {}

    def delete(self, path):
        self._call("DELETE", path)


@pytest.fixture()
def graph(monkeypatch):
    """Replace the per-request Graph client with a FakeGraph."""
    fake = FakeGraph()
    monkeypatch.setattr("app.api.helpers.graph.graph_client", lambda: fake)
    return fake


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def app():
    flask_app = create_app()
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        with app.app_context():
            yield client


# ─────────────────────────────────────────────────────────────────────────────
# Session Helpers
# ─────────────────────────────────────────────────────────────────────────────
def authenticate(client, scopes=ALL_USER_SCOPES, tenant_id: str = ORG_TENANT_ID, name: str = "Adele Vance"):
    """Sign the test client in with a token carrying the given delegated scopes."""
    with client.session_transaction() as session:
        session["token"] = {
            "access_token": "stub",
            "token_type": "Bearer",
            "scope": " ".join(scopes),
        }
        session["id_claims"] = {
            "name": name,
            "preferred_username": "adelev@contoso.onmicrosoft.com",
            "tid": tenant_id,
        }


def get_csrf_token(client) -> str:
    """Get CSRF token from session (any request issues one)."""
    client.get("/health")
    with client.session_transaction() as session:
        return session.get("_csrf_token", "")


def flashed(client) -> list:
    """(category, alert) pairs waiting in the session."""
    with client.session_transaction() as session:
        return [tuple(item) for item in session.get("_flashes", [])]
