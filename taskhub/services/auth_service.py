"""
TaskHub Backend — Auth Service
================================

What:  Registration, credential checks and token refresh.
Who:   Called by the /auth route handlers. Audit entries are scheduled by the
       handlers, not here, so this layer stays free of HTTP concerns.

Error Handling:
    - Email already registered      → ValidationError (400)
    - Unknown email / wrong password → InvalidCredentialsError (401)
    - Bad refresh token / gone user  → AuthenticationError (401)
    - Unexpected SQLAlchemy failures → DatabaseError (500)
"""

import logging
from typing import Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.exceptions import (
    AuthenticationError,
    DatabaseError,
    InvalidCredentialsError,
    ValidationError,
)
from taskhub.models.user import Role, User
from taskhub.services.password_hasher import hash_password, verify_password
from taskhub.services.token_service import TokenPair, TokenService, token_service

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Stateless; receives the request's session on every call."""

    def __init__(self, tokens: TokenService):
        self.tokens = tokens

    async def _find_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def register(self, db: AsyncSession, name: str, email: str, password: str) -> User:
        """
        Creates a `user`-role account and commits it.

        The pre-check gives the common case a clean 400; the unique index on
        users.email catches the concurrent case and maps to the same error.
        """
        email = normalize_email(email)
        if await self._find_by_email(db, email) is not None:
            raise ValidationError(message="User already exists")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=await hash_password(password),
            role=Role.USER.value,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ValidationError(message="User already exists")
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error registering %s: %s", email, e, exc_info=True)
            raise DatabaseError(context={"operation": "register"})

        logger.info("Registered user %s", user.id)
        return user

    async def login(self, db: AsyncSession, email: str, password: str) -> Tuple[User, TokenPair]:
        """Returns the user and a fresh token pair, or raises InvalidCredentialsError."""
        user = await self._find_by_email(db, normalize_email(email))
        if user is None:
            logger.info("Login failed: unknown email")
            raise InvalidCredentialsError()

        if not await verify_password(password, user.password_hash):
            logger.info("Login failed: wrong password for user %s", user.id)
            raise InvalidCredentialsError(user_id=user.id)

        return user, self.tokens.issue_pair(user.id, Role(user.role))

    async def refresh(self, db: AsyncSession, refresh_token: str) -> TokenPair:
        """
        Exchanges a valid refresh token for a new pair.

        The user is reloaded so the new tokens carry the current role.
        """
        identity = self.tokens.verify_refresh_token(refresh_token)
        user = await db.get(User, identity.user_id)
        if user is None:
            raise AuthenticationError(message="Not authorized, user no longer exists")
        return self.tokens.issue_pair(user.id, Role(user.role))


auth_service = AuthService(tokens=token_service)
