"""JWT verification for tokens issued by the external auth service."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from pydantic import BaseModel

from .config import settings
from .exceptions import AuthenticationError


# JWT Configuration
JWT_ALGORITHM = "HS256"
JWT_ISSUER = "sentiment-auth"
JWT_AUDIENCE = "sentiment-api"


class TokenData(BaseModel):
    """Decoded JWT token data."""

    sub: str  # stable user id
    exp: datetime
    iat: datetime
    iss: str
    aud: str
    jti: str
    sid: Optional[str] = None  # browsing session id
    is_admin: bool = False


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromtimestamp(value, tz=timezone.utc)


def create_access_token(
    user_id: str,
    is_admin: bool = False,
    session_id: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed JWT access token.

    Production tokens come from the auth service; this is used by tooling and tests.
    """
    now = datetime.now(timezone.utc)
    expires = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    payload = {
        "sub": user_id,
        "exp": expires,
        "iat": now,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "jti": secrets.token_urlsafe(16),
        "is_admin": is_admin,
    }
    if session_id:
        payload["sid"] = session_id

    return jwt.encode(payload, settings.auth_secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenData:
    """Decode and validate JWT access token."""
    try:
        payload = jwt.decode(
            token,
            settings.auth_secret,
            algorithms=[JWT_ALGORITHM],
            issuer=JWT_ISSUER,
            audience=JWT_AUDIENCE,
            options={
                "require": ["exp", "iat", "sub", "iss", "aud", "jti"],
            },
        )
        return TokenData(
            sub=payload["sub"],
            exp=_as_datetime(payload["exp"]),
            iat=_as_datetime(payload["iat"]),
            iss=payload["iss"],
            aud=payload["aud"],
            jti=payload["jti"],
            sid=payload.get("sid"),
            is_admin=payload.get("is_admin", False),
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Token has expired", error_code="TOKEN_EXPIRED")
    except jwt.InvalidTokenError:
        raise AuthenticationError(message="Invalid token", error_code="INVALID_TOKEN")
