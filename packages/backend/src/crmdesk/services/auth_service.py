"""Auth service — registration, credential checks and token issuing.

Learn: The login path never says *why* it failed. Unknown identifier and
wrong password produce the same InvalidCredentials error, and an unknown
identifier still pays for one bcrypt round so response time does not
leak which accounts exist.
"""

import asyncio
from dataclasses import dataclass

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crmdesk.auth.jwt import create_access_token
from crmdesk.auth.password import burn_verification, hash_password, verify_password
from crmdesk.config import Settings
from crmdesk.db.models import User
from crmdesk.errors import DuplicateIdentity, InvalidCredentials, NotFound

logger = structlog.get_logger()


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_in_seconds: int


class AuthService:
    """Business logic for the credential store and token issuer."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    # ─── Register ────────────────────────────────────────

    async def _identity_taken(self, email: str, phone: str) -> bool:
        result = await self.db.execute(
            select(User.id).where(or_(User.email == email, User.phone == phone)).limit(1)
        )
        return result.first() is not None

    async def register(
        self,
        first_name: str,
        last_name: str,
        email: str,
        phone: str,
        password: str,
    ) -> User:
        """Create a user. Email and phone must both be unused."""
        if await self._identity_taken(email, phone):
            raise DuplicateIdentity()

        # bcrypt is CPU-bound; keep it off the event loop.
        hashed = await asyncio.to_thread(
            hash_password, password, self.settings.bcrypt_rounds
        )
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            password=hashed,
            created_by=None,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration; the unique
            # constraint is the source of truth.
            await self.db.rollback()
            raise DuplicateIdentity()

        logger.info("auth.registered", user_id=user.id)
        return user

    # ─── Login ───────────────────────────────────────────

    async def authenticate(self, identifier: str, password: str) -> User:
        """Return the user whose email or phone is `identifier` and whose password matches."""
        result = await self.db.execute(
            select(User)
            .where(or_(User.email == identifier, User.phone == identifier))
            .order_by(User.id)
            .limit(1)
        )
        user = result.scalars().first()

        if user is None:
            await asyncio.to_thread(
                burn_verification, password, self.settings.bcrypt_rounds
            )
            logger.info("auth.login_failed")
            raise InvalidCredentials()

        if not await asyncio.to_thread(verify_password, password, user.password):
            logger.info("auth.login_failed")
            raise InvalidCredentials()

        return user

    async def login(self, identifier: str, password: str) -> IssuedToken:
        user = await self.authenticate(identifier, password)
        token = create_access_token(user.id, self.settings)
        logger.info("auth.login", user_id=user.id)
        return IssuedToken(
            token=token,
            expires_in_seconds=self.settings.access_token_ttl_seconds,
        )

    # ─── Current user ────────────────────────────────────

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user
