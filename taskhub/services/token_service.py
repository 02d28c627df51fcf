"""
TaskHub Backend — JWT Token Service
=====================================

What:  Issues and verifies the signed access/refresh token pair.
How:   PyJWT, HMAC (HS256 by default). Access and refresh tokens use separate
       secrets and carry a `type` claim, so one can never be replayed as the
       other.

Claims:
    sub   user id (string UUID)
    role  user | admin
    type  access | refresh
    iss   configured issuer
    iat / exp / jti

There is no revocation list: a token stays valid until `exp`.
"""

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from taskhub.config import settings
from taskhub.exceptions import AuthenticationError
from taskhub.models.user import Role
from taskhub.services.access_control import Identity

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    """Signs and verifies TaskHub JWTs."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        algorithm: str = "HS256",
        issuer: str = "taskhub",
    ):
        self._secrets = {ACCESS: access_secret, REFRESH: refresh_secret}
        self._ttls = {ACCESS: access_ttl, REFRESH: refresh_ttl}
        self.algorithm = algorithm
        self.issuer = issuer

    # ── Issuance ──────────────────────────────────────────────────────────

    def _encode(self, user_id: uuid.UUID, role: Role, token_type: str) -> str:
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": str(user_id),
            "role": role.value,
            "type": token_type,
            "iss": self.issuer,
            "iat": now,
            "exp": now + self._ttls[token_type],
            "jti": secrets.token_hex(16),
        }
        return jwt.encode(payload, self._secrets[token_type], algorithm=self.algorithm)

    def create_access_token(self, user_id: uuid.UUID, role: Role) -> str:
        return self._encode(user_id, role, ACCESS)

    def create_refresh_token(self, user_id: uuid.UUID, role: Role) -> str:
        return self._encode(user_id, role, REFRESH)

    def issue_pair(self, user_id: uuid.UUID, role: Role) -> TokenPair:
        return TokenPair(
            access_token=self.create_access_token(user_id, role),
            refresh_token=self.create_refresh_token(user_id, role),
        )

    # ── Verification ──────────────────────────────────────────────────────

    def _decode(self, token: str, token_type: str) -> Identity:
        try:
            claims = jwt.decode(
                token,
                self._secrets[token_type],
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["sub", "role", "type", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError(message="Not authorized, token expired")
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected %s token: %s", token_type, e)
            raise AuthenticationError(message="Not authorized, token invalid")

        if claims.get("type") != token_type:
            raise AuthenticationError(message="Not authorized, token invalid")

        try:
            return Identity(user_id=uuid.UUID(claims["sub"]), role=Role(claims["role"]))
        except (ValueError, TypeError):
            raise AuthenticationError(message="Not authorized, token invalid")

    def verify_access_token(self, token: str) -> Identity:
        return self._decode(token, ACCESS)

    def verify_refresh_token(self, token: str) -> Identity:
        return self._decode(token, REFRESH)


token_service = TokenService(
    access_secret=settings.jwt_access_secret,
    refresh_secret=settings.jwt_refresh_secret,
    access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
    refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
    algorithm=settings.jwt_algorithm,
    issuer=settings.jwt_issuer,
)
