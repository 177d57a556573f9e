"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
The access token is short-lived (15 min by default) and carries the
user id as the standard "sub" claim. There is no refresh token: when
the access token expires the user logs in again.

Signature and expiry are re-checked on every request; nothing the
client says about expiry is ever trusted.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from crmdesk.config import Settings

ACCESS_TOKEN_TYPE = "access"


class TokenError(Exception):
    """Raised when token verification fails."""


class TokenExpiredError(TokenError):
    pass


def create_access_token(
    user_id: int,
    settings: Settings,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a signed JWT access token for a user."""
    now = datetime.now(timezone.utc)
    expires = now + timedelta(
        minutes=expires_minutes if expires_minutes is not None
        else settings.access_token_expire_minutes
    )
    payload = {
        "sub": str(user_id),
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": expires,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str, settings: Settings) -> dict:
    """Verify and decode a JWT token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")
