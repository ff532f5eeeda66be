from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from uuid import UUID

import jwt
from fastapi import Depends, Request

from app.core.config import settings
from app.core.exceptions import AuthorizationError


class UserRole(str, Enum):
    RESIDENT = "resident"
    STAFF = "staff"


@dataclass(frozen=True)
class CurrentUser:
    id: UUID
    role: UserRole

    @property
    def is_staff(self) -> bool:
        return self.role == UserRole.STAFF


def create_access_token(
    user_id: UUID,
    role: UserRole = UserRole.RESIDENT,
    expires_in: timedelta | None = None,
) -> str:
    """Issue a bearer token for ``user_id`` (used by internal tooling and tests)."""
    ttl = expires_in or timedelta(minutes=settings.AUTH_TOKEN_TTL_MINUTES)
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "exp": datetime.now(UTC) + ttl,
    }
    return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


def decode_access_token(token: str) -> CurrentUser:
    """Decode a bearer token.

    Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError on failure.
    """
    payload = jwt.decode(
        token, settings.AUTH_JWT_SECRET, algorithms=[settings.AUTH_JWT_ALGORITHM]
    )
    role = UserRole(payload.get("role", UserRole.RESIDENT.value))
    return CurrentUser(id=UUID(payload["sub"]), role=role)


def get_current_user(request: Request) -> CurrentUser:
    """Extract the caller from the ``Authorization: Bearer`` header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise AuthorizationError("Missing authorization header")

    if not auth_header.startswith("Bearer "):
        raise AuthorizationError("Invalid authorization header format")

    token = auth_header[7:]
    if not token:
        raise AuthorizationError("Bearer token is required")

    try:
        return decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthorizationError("Token has expired") from None
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise AuthorizationError("User not authenticated") from None


def require_staff(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_staff:
        raise AuthorizationError("Municipal staff access required")
    return user
