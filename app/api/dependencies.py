"""API dependencies for viewer identity and admin access."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Cookie, Depends, Header

from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.logging import get_logger
from app.core.security import decode_access_token


logger = get_logger("api.dependencies")

__all__ = [
    "Viewer",
    "get_viewer",
    "require_admin",
]


@dataclass(frozen=True)
class Viewer:
    """Identity of the caller as far as this service cares.

    Anonymous callers have no user id; `session_id` may still be set from the
    X-Session-ID header for correlation.
    """

    user_id: str | None = None
    session_id: str | None = None
    is_admin: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = Viewer()


def _extract_token(
    authorization: str | None = Header(default=None),
    session: str | None = Cookie(default=None),
) -> str | None:
    """Extract JWT token from Authorization header or session cookie."""
    # Prefer Authorization header (for API clients)
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token:
            return token

    # Fall back to session cookie (for browser clients)
    if session:
        return session

    return None


async def get_viewer(
    authorization: str | None = Header(default=None),
    session: str | None = Cookie(default=None),
    x_session_id: str | None = Header(default=None, alias="X-Session-ID"),
) -> Viewer:
    """
    Get the current viewer (optional authentication).

    A missing, expired or otherwise invalid token yields an anonymous viewer;
    reads never fail because of identity.
    """
    token = _extract_token(authorization, session)
    if not token:
        return Viewer(session_id=x_session_id) if x_session_id else ANONYMOUS

    try:
        token_data = decode_access_token(token)
    except AuthenticationError as e:
        logger.debug(f"Ignoring invalid viewer token: {e.error_code}")
        return Viewer(session_id=x_session_id) if x_session_id else ANONYMOUS

    return Viewer(
        user_id=token_data.sub,
        session_id=token_data.sid or x_session_id,
        is_admin=token_data.is_admin,
    )


async def require_admin(
    viewer: Viewer = Depends(get_viewer),
) -> Viewer:
    """
    Require admin user.

    Raises AuthenticationError if anonymous, AuthorizationError if not admin.
    """
    if not viewer.is_authenticated:
        raise AuthenticationError(
            message="Authentication required",
            error_code="MISSING_CREDENTIALS",
        )
    if not viewer.is_admin:
        raise AuthorizationError(
            message="Admin privileges required",
            error_code="ADMIN_REQUIRED",
        )
    return viewer
