"""Auth API — registration, login, current user.

Learn: Routes for user authentication:
- POST /auth/register → create a user (email + phone must be unused)
- POST /auth/login → email-or-phone + password → JWT access token
- GET /auth/me → the signed-in user's profile (needs a token)

There is no refresh endpoint: when the token expires, log in again.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crmdesk.auth.dependencies import CurrentUser, get_current_user, get_settings
from crmdesk.config import Settings
from crmdesk.db.engine import get_db
from crmdesk.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserRead,
)
from crmdesk.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


def _svc(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(db, settings)


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(body: RegisterRequest, svc: AuthService = Depends(_svc)):
    """Create a new user account."""
    user = await svc.register(
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        phone=body.phone,
        password=body.password,
    )
    return RegisterResponse(userId=user.id)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, svc: AuthService = Depends(_svc)):
    """Login with email or phone and password → JWT access token."""
    issued = await svc.login(body.identifier, body.password)
    return TokenResponse(token=issued.token, expiresInSeconds=issued.expires_in_seconds)


@router.get("/me", response_model=UserRead)
async def get_me(
    user: CurrentUser = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    """Get the current authenticated user's info."""
    return await svc.get_user(user.user_id)
