"""Supabase JWT authentication and role checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from fastapi import Depends, Request
from jose import JWTError, jwt as jose_jwt

from staffdir_shared.config import settings
from staffdir_shared.constants import ROLE_ADMIN, ROLE_USER, Role
from staffdir_shared.db import get_supabase_client
from staffdir_shared.models import Profile

from staffdir_api.errors import ApiError

logger = structlog.get_logger(__name__)


@dataclass
class AuthUser:
    user_id: str
    role: Role = ROLE_USER
    email: str | None = None
    full_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def _validate_jwt(token: str) -> dict[str, Any] | None:
    """Validate a Supabase access token and return its claims."""
    try:
        return jose_jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience="authenticated",
        )
    except JWTError:
        return None


def _load_profile(user_id: str) -> Profile | None:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("profiles")
        .select("id, role, email, full_name")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    return Profile.from_db_row(result.data[0])


async def get_current_user(request: Request) -> AuthUser | None:
    """Extract the caller from a Bearer token.

    Returns None if no credentials are provided (public access).
    Raises 401 if the token is invalid or expired.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None

    claims = _validate_jwt(auth_header[7:])
    if claims is None or not claims.get("sub"):
        raise ApiError.unauthorized("Invalid or expired token")

    user_id = str(claims["sub"])
    user = AuthUser(user_id=user_id, email=claims.get("email"))
    profile = _load_profile(user_id)
    if profile is not None:
        user.role = profile.role
        user.email = profile.email or user.email
        user.full_name = profile.full_name

    request.state.user = user
    structlog.contextvars.bind_contextvars(user_id=user_id)
    return user


async def require_user(
    user: AuthUser | None = Depends(get_current_user),
) -> AuthUser:
    if user is None:
        raise ApiError.unauthorized()
    return user


async def require_admin(user: AuthUser = Depends(require_user)) -> AuthUser:
    """Role check evaluated before any body parsing, so non-admins always get 403."""
    if not user.is_admin:
        logger.info("admin_access_denied", user_id=user.user_id, role=user.role)
        raise ApiError.forbidden()
    return user
