"""HTTP client for the crmdesk API.

Learn: BearerSessionAuth is an httpx.Auth flow, so the token is read
from the SessionManager at send time and attached to *every* request
made through the client. A 401 from the server ends the local session:
the server, not the client's clock, has the final word on expiry.

Errors come back as ApiError carrying the server's {"error": ...} text,
so callers can show the message inline instead of crashing.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Generator, Optional

import httpx

from crmdesk.client.session import SessionManager

DEFAULT_BASE_URL = "http://localhost:4000/api"


class ApiError(Exception):
    """A non-2xx response from the API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        message = response.reason_phrase or "Request failed"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            message = str(body["error"])
        return cls(response.status_code, message)


class BearerSessionAuth(httpx.Auth):
    """Attach the session's token; sign out locally on 401."""

    def __init__(self, session: SessionManager):
        self.session = session

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self.session.token
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        response = yield request
        if response.status_code == 401 and token:
            self.session.end()


def _jsonable(data: dict[str, Any]) -> dict[str, Any]:
    return {k: (v.isoformat() if isinstance(v, date) else v) for k, v in data.items()}


class CrmClient:
    """Typed-ish wrapper around every crmdesk endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[SessionManager] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.session = session if session is not None else SessionManager()
        self.http = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            auth=BearerSessionAuth(self.session),
            transport=transport,
        )

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "CrmClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self.http.request(method, path, **kwargs)
        if response.is_error:
            raise ApiError.from_response(response)
        if not response.content:
            return None
        return response.json()

    # ─── Auth ────────────────────────────────────────────

    def register(
        self, first_name: str, last_name: str, email: str, phone: str, password: str
    ) -> int:
        body = self._request("POST", "/auth/register", json={
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "phone": phone,
            "password": password,
        })
        return body["userId"]

    def login(self, email_or_phone: str, password: str) -> dict:
        """Log in and start the local session. Returns the token response."""
        body = self._request("POST", "/auth/login", json={
            "emailOrPhone": email_or_phone,
            "password": password,
        })
        self.session.start(body["token"], body["expiresInSeconds"])
        return body

    def logout(self) -> None:
        self.session.end()

    def me(self) -> dict:
        return self._request("GET", "/auth/me")

    # ─── Contacts ────────────────────────────────────────

    def create_contact(
        self,
        first_name: str,
        last_name: str,
        number: str,
        email: Optional[str] = None,
        note: Optional[str] = None,
    ) -> int:
        body = self._request("POST", "/contacts", json={
            "contact_first_name": first_name,
            "contact_last_name": last_name,
            "contact_number": number,
            "contact_email": email,
            "note": note,
        })
        return body["id"]

    def list_contacts(self) -> list[dict]:
        return self._request("GET", "/contacts")

    def get_contact(self, contact_id: int) -> dict:
        return self._request("GET", f"/contacts/{contact_id}")

    def update_contact(self, contact_id: int, **changes: Any) -> None:
        self._request("PUT", f"/contacts/{contact_id}", json=_jsonable(changes))

    def delete_contact(self, contact_id: int) -> None:
        self._request("DELETE", f"/contacts/{contact_id}")

    def add_contact_address(self, contact_id: int, address_line1: str, **fields: Any) -> int:
        body = self._request(
            "POST",
            f"/contacts/{contact_id}/address",
            json={"address_line1": address_line1, **fields},
        )
        return body["id"]

    # ─── Tasks ───────────────────────────────────────────

    def create_task(self, title: str, **fields: Any) -> int:
        body = self._request("POST", "/tasks", json=_jsonable({"title": title, **fields}))
        return body["id"]

    def list_tasks(self) -> list[dict]:
        return self._request("GET", "/tasks")

    def get_task(self, task_id: int) -> dict:
        return self._request("GET", f"/tasks/{task_id}")

    def update_task(self, task_id: int, **changes: Any) -> None:
        self._request("PUT", f"/tasks/{task_id}", json=_jsonable(changes))

    def complete_task(self, task_id: int) -> None:
        self.update_task(task_id, status="completed")

    def delete_task(self, task_id: int) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    # ─── Addresses ───────────────────────────────────────

    def create_address(self, contact_id: int, address_line1: str, city: str, **fields: Any) -> int:
        body = self._request("POST", "/addresses", json={
            "contact_id": contact_id,
            "address_line1": address_line1,
            "city": city,
            **fields,
        })
        return body["id"]

    def list_addresses(self, contact_id: Optional[int] = None) -> list[dict]:
        params = {"contact_id": contact_id} if contact_id is not None else None
        return self._request("GET", "/addresses", params=params)

    def update_address(self, address_id: int, **changes: Any) -> None:
        self._request("PUT", f"/addresses/{address_id}", json=changes)

    def delete_address(self, address_id: int) -> None:
        self._request("DELETE", f"/addresses/{address_id}")

    # ─── Email ───────────────────────────────────────────

    def send_email(self, to_email: str, subject: str, body: Optional[str] = None) -> int:
        resp = self._request("POST", "/email/send", json={
            "to_email": to_email,
            "subject": subject,
            "body": body,
        })
        return resp["id"]

    def list_emails(self, limit: Optional[int] = None) -> list[dict]:
        params = {"limit": limit} if limit is not None else None
        return self._request("GET", "/email", params=params)
