#!/usr/bin/env python3
"""
crmdesk session expiry — watch the client sign itself out.

Logs in, then waits for the expiry timer armed by SessionManager. Set
CRMDESK_ACCESS_TOKEN_EXPIRE_MINUTES=1 on the server to see it within a
minute.
Run with: python examples/session_expiry.py
"""

import threading

from _common import create_client
from crmdesk.client import ApiError, SessionManager


def main():
    expired = threading.Event()

    def on_expire():
        print("\n   Session expired. Back to the login screen.")
        expired.set()

    client = create_client(SessionManager(on_expire=on_expire))
    print(f"\nWaiting {int(client.session.seconds_remaining())}s for the session to expire...")
    expired.wait()

    print("\nTrying an authenticated call after expiry...")
    try:
        client.list_contacts()
    except ApiError as e:
        print(f"   {e.status_code}: {e.message}")
    client.close()


if __name__ == "__main__":
    main()
