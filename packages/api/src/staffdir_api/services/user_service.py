"""Admin data hygiene for orphaned user records."""

from __future__ import annotations

from typing import Any

import structlog

from staffdir_shared.db import get_supabase_client

from staffdir_api.utils.filtering import escape_like

logger = structlog.get_logger(__name__)

AUTH_USERS_PAGE_SIZE = 1000


def _delete_identities(supabase: Any, email: str) -> int:
    result = (
        supabase.table("identities")
        .delete()
        .ilike("identity_data->>email", escape_like(email))
        .execute()
    )
    return len(result.data or [])


def _delete_profiles(supabase: Any, email: str) -> int:
    result = supabase.table("profiles").delete().ilike("email", escape_like(email)).execute()
    return len(result.data or [])


def _find_auth_user_ids(supabase: Any, email: str) -> list[str]:
    wanted = email.casefold()
    matches: list[str] = []
    page = 1
    while True:
        users = supabase.auth.admin.list_users(page=page, per_page=AUTH_USERS_PAGE_SIZE)
        matches.extend(
            str(u.id) for u in users if (getattr(u, "email", None) or "").casefold() == wanted
        )
        if len(users) < AUTH_USERS_PAGE_SIZE:
            return matches
        page += 1


def _delete_auth_users(supabase: Any, email: str) -> int:
    deleted = 0
    for user_id in _find_auth_user_ids(supabase, email):
        supabase.auth.admin.delete_user(user_id)
        deleted += 1
    return deleted


CLEANUP_STEPS = (
    ("identities", _delete_identities),
    ("profiles", _delete_profiles),
    ("users", _delete_auth_users),
)


def cleanup_user(email: str, *, admin_id: str) -> dict[str, Any]:
    """Delete identities, profiles and auth users matching email (case-insensitive).

    Steps run independently; a failing step is logged, counted as 0 and
    listed under "failed" without stopping the others.
    """
    supabase = get_supabase_client(service_role=True)
    deleted: dict[str, int] = {}
    failed: list[str] = []
    for name, step in CLEANUP_STEPS:
        try:
            deleted[name] = step(supabase, email)
        except Exception as exc:
            logger.error("user_cleanup_step_failed", step=name, error=str(exc))
            deleted[name] = 0
            failed.append(name)

    logger.info("user_cleanup_completed", deleted=deleted, failed=failed, admin_id=admin_id)
    return {"deleted": deleted, "failed": failed}
