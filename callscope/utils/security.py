"""Bearer token helpers used to identify the calling actor.

Tokens are issued by the account service that fronts this backend; this
module only needs the shared secret to verify them. ``create_access_token``
exists for local tooling and tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from callscope.config.settings import settings


class AuthenticationError(Exception):
    """Raised when a JWT cannot be decoded or is otherwise invalid."""


class TokenPayload(BaseModel):
    """Claims read from an access token."""

    sub: str
    exp: datetime
    iat: datetime | None = None
    user: dict[str, Any] | None = None

    @property
    def actor_id(self) -> str:
        """Embedded user id when present, otherwise the subject claim."""

        if self.user and self.user.get("id") is not None:
            return str(self.user["id"])
        return self.sub


def _signing_key() -> str:
    return settings.security.jwt_secret_key.get_secret_value()


def create_access_token(
    subject: str,
    *,
    user_id: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.security.access_token_expires_minutes)
    claims: dict[str, Any] = {"sub": subject, "iat": issued_at, "exp": issued_at + lifetime}
    if user_id is not None:
        claims["user"] = {"id": user_id}
    return jwt.encode(claims, _signing_key(), algorithm=settings.security.jwt_algorithm)


def decode_access_token(token: str) -> TokenPayload:
    """Verify signature and expiry, returning the typed claims."""

    try:
        claims = jwt.decode(token, _signing_key(), algorithms=[settings.security.jwt_algorithm])
        return TokenPayload.model_validate(claims)
    except (JWTError, ValidationError) as exc:
        raise AuthenticationError("Invalid authentication token") from exc


__all__ = [
    "AuthenticationError",
    "TokenPayload",
    "create_access_token",
    "decode_access_token",
]
