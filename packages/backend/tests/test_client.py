"""CrmClient tests against a mocked transport.

Learn: httpx.MockTransport routes requests to a plain function, so the
client's auth flow and error mapping can be checked without a server.
"""

import json
from datetime import date

import httpx
import pytest

from crmdesk.client.api import ApiError, CrmClient
from crmdesk.client.session import MemoryTokenStore, SessionManager


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def _client(recorder, session=None):
    session = session or SessionManager(
        store=MemoryTokenStore(), timer_factory=lambda delay, fn: _NullTimer()
    )
    return CrmClient(
        base_url="http://test/api",
        session=session,
        transport=httpx.MockTransport(recorder),
    )


class _NullTimer:
    def start(self):
        pass

    def cancel(self):
        pass


def test_login_starts_session_and_token_is_attached():
    recorder = Recorder([
        httpx.Response(200, json={"token": "jwt-1", "expiresInSeconds": 900}),
        httpx.Response(200, json=[]),
    ])
    with _client(recorder) as c:
        body = c.login("a@x.com", "pw")
        assert body["token"] == "jwt-1"
        assert c.session.token == "jwt-1"
        assert c.list_contacts() == []

    login, listing = recorder.requests
    assert login.url.path == "/api/auth/login"
    assert "Authorization" not in login.headers
    assert listing.headers["Authorization"] == "Bearer jwt-1"


def test_401_ends_local_session():
    recorder = Recorder([
        httpx.Response(200, json={"token": "jwt-1", "expiresInSeconds": 900}),
        httpx.Response(401, json={"error": "Token has expired"}),
    ])
    with _client(recorder) as c:
        c.login("a@x.com", "pw")
        with pytest.raises(ApiError) as exc:
            c.list_tasks()
        assert exc.value.status_code == 401
        assert exc.value.message == "Token has expired"
        assert c.session.token is None
        assert c.session.store.load() is None


def test_error_message_from_body():
    recorder = Recorder([httpx.Response(409, json={"error": "Email or phone already used"})])
    with _client(recorder) as c:
        with pytest.raises(ApiError) as exc:
            c.register("Ann", "Lee", "a@x.com", "1111111111", "pw")
    assert exc.value.status_code == 409
    assert exc.value.message == "Email or phone already used"


def test_error_without_json_body():
    recorder = Recorder([httpx.Response(502, text="bad gateway")])
    with _client(recorder) as c:
        with pytest.raises(ApiError) as exc:
            c.me()
    assert exc.value.status_code == 502
    assert exc.value.message == "Bad Gateway"


def test_complete_task_sends_status_only():
    recorder = Recorder([httpx.Response(200, json={"ok": True})])
    with _client(recorder) as c:
        c.complete_task(7)
    request = recorder.requests[0]
    assert request.method == "PUT"
    assert request.url.path == "/api/tasks/7"
    assert json.loads(request.read()) == {"status": "completed"}


def test_create_task_serializes_due_date():
    recorder = Recorder([httpx.Response(200, json={"ok": True, "id": 3, "taskId": 3})])
    with _client(recorder) as c:
        assert c.create_task("Call", due_date=date(2026, 11, 1), contact_id=1) == 3
    sent = json.loads(recorder.requests[0].read())
    assert sent == {"title": "Call", "due_date": "2026-11-01", "contact_id": 1}


def test_list_emails_passes_limit():
    recorder = Recorder([httpx.Response(200, json=[])])
    with _client(recorder) as c:
        c.list_emails(limit=5)
    assert recorder.requests[0].url.params["limit"] == "5"
