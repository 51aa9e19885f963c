"""Admin agency management: listing, creation, edits and activation."""

from __future__ import annotations

from typing import Any

import structlog
from postgrest.exceptions import APIError as PostgrestAPIError

from staffdir_shared.config import settings
from staffdir_shared.db import UNIQUE_VIOLATION, first_row, get_supabase_client
from staffdir_shared.models import Agency
from staffdir_shared.time_utils import utc_now_iso

from staffdir_api.errors import ApiError
from staffdir_api.schemas.agencies import AgencyCreate
from staffdir_api.utils.filtering import apply_text_search, apply_tristate_filter, escape_like
from staffdir_api.utils.pagination import apply_range
from staffdir_api.utils.slugs import first_free_slug, slugify

logger = structlog.get_logger(__name__)

ADMIN_LIST_COLUMNS = (
    "id, name, slug, is_active, is_claimed, claimed_by, created_at, "
    "profile_completion_percentage"
)


def attach_owner_profiles(agencies: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Set owner_profile {email, full_name} (or None) on each agency in place."""
    owner_ids = sorted({a["claimed_by"] for a in agencies if a.get("claimed_by")})
    profiles: dict[str, dict[str, Any]] = {}
    if owner_ids:
        supabase = get_supabase_client(service_role=True)
        result = (
            supabase.table("profiles")
            .select("id, email, full_name")
            .in_("id", owner_ids)
            .execute()
        )
        profiles = {row["id"]: row for row in result.data or []}

    for agency in agencies:
        profile = profiles.get(agency.get("claimed_by") or "")
        agency["owner_profile"] = (
            {"email": profile.get("email"), "full_name": profile.get("full_name")}
            if profile
            else None
        )
    return agencies


def list_agencies(
    *,
    search: str | None = None,
    status: str = "all",
    claimed: str = "all",
    limit: int = 25,
    offset: int = 0,
) -> tuple[list[dict[str, Any]], int]:
    supabase = get_supabase_client(service_role=True)
    query = supabase.table("agencies").select(ADMIN_LIST_COLUMNS, count="exact")
    query = apply_text_search(query, "name", search)
    query = apply_tristate_filter(
        query, "is_active", status, true_value="active", false_value="inactive"
    )
    query = apply_tristate_filter(
        query, "is_claimed", claimed, true_value="yes", false_value="no"
    )
    query = apply_range(query.order("created_at", desc=True), offset, limit)

    result = query.execute()
    agencies = attach_owner_profiles(list(result.data or []))
    return agencies, result.count or 0


def get_agency(agency_id: str) -> dict[str, Any] | None:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("agencies")
        .select("*")
        .eq("id", agency_id)
        .limit(1)
        .execute()
    )
    agency = first_row(result)
    if agency is None:
        return None
    return attach_owner_profiles([agency])[0]


def require_agency(agency_id: str, columns: str = "id") -> dict[str, Any]:
    """Fetch an agency or raise 404."""
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("agencies")
        .select(columns)
        .eq("id", agency_id)
        .limit(1)
        .execute()
    )
    agency = first_row(result)
    if agency is None:
        raise ApiError.not_found("Agency not found")
    return agency


def _name_taken(name: str) -> bool:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("agencies")
        .select("id")
        .ilike("name", escape_like(name))
        .limit(1)
        .execute()
    )
    return bool(result.data)


def _slug_taken(slug: str) -> bool:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("agencies")
        .select("id")
        .eq("slug", slug)
        .limit(1)
        .execute()
    )
    return bool(result.data)


def generate_unique_slug(name: str, *, max_attempts: int | None = None) -> str:
    """Slug for name: base, then base-2 .. base-N. Raises 409 when all are taken."""
    attempts = max_attempts or settings.max_slug_attempts
    base = slugify(name)
    if not base:
        raise ApiError.validation(
            "Agency name must contain at least one letter or number",
            {"name": ["Unable to generate a URL slug from this name"]},
        )
    slug = first_free_slug(base, attempts, _slug_taken)
    if slug is None:
        logger.warning("slug_attempts_exhausted", base=base, attempts=attempts)
        raise ApiError.conflict(f"Unable to generate unique slug after {attempts} attempts")
    return slug


def create_agency(payload: AgencyCreate, *, admin_id: str) -> dict[str, Any]:
    if _name_taken(payload.name):
        raise ApiError.conflict(
            "An agency with this name already exists",
            {"name": ["An agency with this name already exists"]},
        )
    slug = generate_unique_slug(payload.name)

    agency = Agency(
        **payload.model_dump(),
        slug=slug,
        is_active=True,
        is_claimed=False,
        profile_completion_percentage=0,
    )
    supabase = get_supabase_client(service_role=True)
    try:
        result = supabase.table("agencies").insert(agency.to_insert_dict()).execute()
    except PostgrestAPIError as exc:
        if exc.code == UNIQUE_VIOLATION:
            raise ApiError.conflict("An agency with this name or slug already exists") from exc
        raise

    row = first_row(result)
    if row is None:
        raise ApiError.database("Failed to create agency")
    logger.info("agency_created", agency_id=row.get("id"), slug=slug, admin_id=admin_id)
    return row


def update_agency(agency_id: str, changes: dict[str, Any], *, admin_id: str) -> dict[str, Any]:
    if not changes:
        raise ApiError.validation("No fields provided to update")
    require_agency(agency_id)

    now = utc_now_iso()
    update = {
        **changes,
        "updated_at": now,
        "last_edited_at": now,
        "last_edited_by": admin_id,
    }
    supabase = get_supabase_client(service_role=True)
    try:
        result = supabase.table("agencies").update(update).eq("id", agency_id).execute()
    except PostgrestAPIError as exc:
        if exc.code == UNIQUE_VIOLATION:
            raise ApiError.conflict("An agency with this name already exists") from exc
        raise

    row = first_row(result)
    if row is None:
        raise ApiError.not_found("Agency not found")
    logger.info(
        "agency_updated", agency_id=agency_id, fields=sorted(changes), admin_id=admin_id
    )
    return row


def set_agency_active(agency_id: str, *, active: bool, admin_id: str) -> dict[str, Any]:
    require_agency(agency_id)
    now = utc_now_iso()
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("agencies")
        .update({
            "is_active": active,
            "updated_at": now,
            "last_edited_at": now,
            "last_edited_by": admin_id,
        })
        .eq("id", agency_id)
        .execute()
    )
    row = first_row(result)
    if row is None:
        raise ApiError.not_found("Agency not found")
    logger.info("agency_status_changed", agency_id=agency_id, active=active, admin_id=admin_id)
    return row
