"""CLI tests — click commands driven through CliRunner.

Learn: _client() is swapped for one whose transport is an
httpx.MockTransport, so each command runs end to end without a server.
"""

import json
import time

import httpx
import pytest
from click.testing import CliRunner

from crmdesk.cli import main as cli
from crmdesk.client.api import CrmClient
from crmdesk.client.session import (
    FileTokenStore,
    MemoryTokenStore,
    SessionManager,
    StoredSession,
)


class _NullTimer:
    def start(self):
        pass

    def cancel(self):
        pass


@pytest.fixture
def session():
    return SessionManager(store=MemoryTokenStore(), timer_factory=lambda d, fn: _NullTimer())


@pytest.fixture
def api(monkeypatch, session):
    """Route the CLI's client through a handler; returns the recorded requests."""
    state = {"routes": {}, "requests": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        key = (request.method, request.url.path)
        status, body = state["routes"].get(key, (404, {"error": "Not found"}))
        return httpx.Response(status, json=body)

    def make_client():
        return CrmClient(
            base_url="http://test/api",
            session=session,
            transport=httpx.MockTransport(handler),
        )

    monkeypatch.setattr(cli, "_client", make_client)
    return state


@pytest.fixture
def logged_in(session):
    session.start("jwt-1", 900)
    return session


def test_login_stores_session(api, session):
    api["routes"][("POST", "/api/auth/login")] = (
        200, {"token": "jwt-1", "expiresInSeconds": 900},
    )
    result = CliRunner().invoke(cli.main, ["login", "a@x.com", "--password", "pw"])
    assert result.exit_code == 0, result.output
    assert "Logged in" in result.output
    assert "15 min" in result.output
    assert session.token == "jwt-1"

    sent = json.loads(api["requests"][0].read())
    assert sent == {"emailOrPhone": "a@x.com", "password": "pw"}


def test_bad_login_prints_error(api, session):
    api["routes"][("POST", "/api/auth/login")] = (400, {"error": "Invalid credentials"})
    result = CliRunner().invoke(cli.main, ["login", "a@x.com", "--password", "nope"])
    assert result.exit_code == 1
    assert "Invalid credentials" in result.output
    assert session.token is None


def test_commands_require_login(api):
    result = CliRunner().invoke(cli.main, ["contacts", "list"])
    assert result.exit_code == 1
    assert "Not logged in" in result.output
    assert api["requests"] == []


def test_contacts_list_nested(api, logged_in):
    api["routes"][("GET", "/api/contacts")] = (200, [{
        "id": 1,
        "contact_first_name": "Jane",
        "contact_last_name": "Doe",
        "contact_number": "2222222222",
        "contact_email": None,
        "contact_full_name": None,
        "addresses": [{"address_line1": "1 Main St", "city": "Springfield"}],
        "tasks": [{"id": 4, "title": "Call Jane", "status": "pending"}],
    }])
    result = CliRunner().invoke(cli.main, ["contacts", "list"])
    assert result.exit_code == 0, result.output
    assert "Jane Doe" in result.output
    assert "1 Main St, Springfield" in result.output
    assert "task #4: Call Jane" in result.output
    assert api["requests"][0].headers["Authorization"] == "Bearer jwt-1"


def test_tasks_add_with_due_date(api, logged_in):
    api["routes"][("POST", "/api/tasks")] = (200, {"ok": True, "id": 9, "taskId": 9})
    result = CliRunner().invoke(
        cli.main, ["tasks", "add", "Call Jane", "--contact-id", "1", "--due", "2026-11-01"]
    )
    assert result.exit_code == 0, result.output
    assert "Task #9 created" in result.output
    sent = json.loads(api["requests"][0].read())
    assert sent == {"title": "Call Jane", "contact_id": 1, "due_date": "2026-11-01"}


def test_tasks_done_sends_status_only(api, logged_in):
    api["routes"][("PUT", "/api/tasks/9")] = (200, {"ok": True})
    result = CliRunner().invoke(cli.main, ["tasks", "done", "9"])
    assert result.exit_code == 0, result.output
    assert json.loads(api["requests"][0].read()) == {"status": "completed"}


def test_expired_token_rejected_by_server(api, logged_in):
    api["routes"][("GET", "/api/tasks")] = (401, {"error": "Token has expired"})
    result = CliRunner().invoke(cli.main, ["tasks", "list"])
    assert result.exit_code == 1
    assert "Token has expired" in result.output
    assert logged_in.token is None


def test_logout_clears_session(api, logged_in):
    result = CliRunner().invoke(cli.main, ["logout"])
    assert result.exit_code == 0
    assert logged_in.token is None


def test_client_restores_session_from_file(tmp_path, monkeypatch):
    """The real _client() picks up a session written by an earlier run."""
    path = tmp_path / "session.json"
    monkeypatch.setenv("CRMDESK_SESSION_FILE", str(path))
    monkeypatch.setenv("CRMDESK_API_URL", "http://example.invalid/api/")

    FileTokenStore(path).save(StoredSession(token="saved", expires_at=time.time() + 600))
    client = cli._client()
    try:
        assert client.session.token == "saved"
        assert str(client.http.base_url) == "http://example.invalid/api/"
    finally:
        client.session.end()
        client.close()
    assert not path.exists()
