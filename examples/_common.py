"""
Shared helpers for crmdesk examples.

Handles the health check and authentication (register + login) so each
example can focus on its specific workflow.
"""

import os
import sys
import uuid

import httpx

from crmdesk.client import ApiError, CrmClient, SessionManager

BASE = os.environ.get("CRMDESK_API_URL", "http://localhost:4000/api")


def check_backend() -> None:
    """Verify the backend is reachable and healthy."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  crmdesk-server")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Database: {'✓' if health['db'] == 'ok' else '✗'} ({health['db']})")

    if health["db"] != "ok":
        print("\nERROR: The database is not reachable. Check CRMDESK_DATABASE_URL.")
        sys.exit(1)


def create_client(session: SessionManager | None = None) -> CrmClient:
    """Check backend, register a fresh user, log in, and return the client.

    Uses a unique email and phone per run so examples are idempotent.
    """
    check_backend()
    client = CrmClient(base_url=BASE, session=session)

    run_id = uuid.uuid4()
    email = f"demo-{run_id.hex[:8]}@example.com"
    phone = f"{run_id.int % 10**10:010d}"
    password = "demo-password-123"

    try:
        client.register("Demo", "User", email, phone, password)
        client.login(email, password)
    except ApiError as e:
        print(f"ERROR: Authentication failed: {e}")
        sys.exit(1)

    print(f"  Auth:     ✓ (JWT, {int(client.session.seconds_remaining())}s left)")
    return client
