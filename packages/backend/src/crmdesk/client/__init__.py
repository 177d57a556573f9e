"""Python client for crmdesk: session management plus an API wrapper."""

from crmdesk.client.api import ApiError, BearerSessionAuth, CrmClient
from crmdesk.client.session import (
    FileTokenStore,
    MemoryTokenStore,
    SessionManager,
    StoredSession,
)

__all__ = [
    "ApiError",
    "BearerSessionAuth",
    "CrmClient",
    "FileTokenStore",
    "MemoryTokenStore",
    "SessionManager",
    "StoredSession",
]
