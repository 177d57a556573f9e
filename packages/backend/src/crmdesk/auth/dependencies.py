"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user from the request. The same dependency is
attached to every protected router at include_router() time, so a
handler can never forget the auth gate.

The Authorization header must read "Bearer <jwt>". Anything else —
missing header, other scheme, bad signature, expired token — ends the
request with 401. There is no retry.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from crmdesk.auth.jwt import ACCESS_TOKEN_TYPE, TokenError, TokenExpiredError, verify_token
from crmdesk.config import Settings
from crmdesk.errors import MalformedPrincipal, Unauthenticated

logger = structlog.get_logger()


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated principal making the request.

    Learn: All resource services take user_id from here and put it in
    the WHERE clause of every read, update and delete they issue.
    """

    user_id: int


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise Unauthenticated()
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthenticated()
    return token


def principal_from_payload(payload: dict) -> CurrentUser:
    """Pull the user id out of a verified payload.

    A valid signature says nothing about the payload's shape, so the
    subject is checked explicitly.
    """
    if payload.get("type", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
        raise Unauthenticated("Invalid or expired token.")
    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        logger.warning("auth.malformed_principal", has_sub=subject is not None)
        raise MalformedPrincipal()
    if user_id <= 0:
        logger.warning("auth.malformed_principal", has_sub=True)
        raise MalformedPrincipal()
    return CurrentUser(user_id=user_id)


async def get_current_user(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """Resolve the bearer token into a CurrentUser (401 on any failure)."""
    token = _bearer_token(authorization)
    try:
        payload = verify_token(token, settings)
    except TokenExpiredError:
        raise Unauthenticated("Token has expired")
    except TokenError as e:
        logger.info("auth.token_rejected", reason=str(e))
        raise Unauthenticated("Invalid or expired token.")

    principal = principal_from_payload(payload)
    structlog.contextvars.bind_contextvars(user_id=principal.user_id)
    return principal
