"""Shared FastAPI dependencies."""

from __future__ import annotations

from staffdir_shared.db import get_supabase_client

from staffdir_api.middleware.auth import AuthUser, get_current_user, require_admin, require_user
from staffdir_api.utils.pagination import PageParams

__all__ = [
    "AuthUser",
    "PageParams",
    "get_current_user",
    "get_supabase_client",
    "require_admin",
    "require_user",
]
