"""Public agency directory: search, profile and compliance badges."""

from __future__ import annotations

from typing import Any

import structlog

from staffdir_shared.constants import COMPLIANCE_DISPLAY_NAMES
from staffdir_shared.db import first_row, get_supabase_client
from staffdir_shared.time_utils import parse_iso_date, utc_today

from staffdir_api.errors import ApiError
from staffdir_api.schemas.agencies import PublicAgenciesQuery
from staffdir_api.utils.filtering import apply_multi_column_search
from staffdir_api.utils.pagination import apply_range

logger = structlog.get_logger(__name__)

PUBLIC_COLUMNS = (
    "id, name, slug, description, logo_url, website, phone, email, headquarters, "
    "founded_year, employee_count, company_size, offers_per_diem, is_union, is_claimed, "
    "profile_completion_percentage, "
    "agency_trades(trade:trades(id, name, slug)), "
    "agency_regions(region:regions(id, name, code))"
)


def flatten_relations(agency: dict[str, Any]) -> dict[str, Any]:
    """Replace embedded junction rows with flat trades/regions lists."""
    trades = [row.get("trade") for row in agency.pop("agency_trades", None) or []]
    regions = [row.get("region") for row in agency.pop("agency_regions", None) or []]
    agency["trades"] = [t for t in trades if t]
    agency["regions"] = [r for r in regions if r]
    return agency


def _agency_ids_for(
    supabase: Any, lookup: str, column: str, values: list[str], junction: str, fk: str
) -> set[str]:
    ids = [row["id"] for row in supabase.table(lookup).select("id").in_(column, values).execute().data or []]
    if not ids:
        return set()
    result = supabase.table(junction).select("agency_id").in_(fk, ids).execute()
    return {row["agency_id"] for row in result.data or []}


def _filter_agency_ids(supabase: Any, params: PublicAgenciesQuery) -> set[str] | None:
    """Agency ids matching every trade/state filter, or None when unfiltered."""
    matched: set[str] | None = None
    if params.trades:
        matched = _agency_ids_for(
            supabase, "trades", "slug", params.trades, "agency_trades", "trade_id"
        )
    if params.states:
        by_state = _agency_ids_for(
            supabase, "regions", "code", params.states, "agency_regions", "region_id"
        )
        matched = by_state if matched is None else matched & by_state
    return matched


def search_agencies(params: PublicAgenciesQuery) -> tuple[list[dict[str, Any]], int]:
    supabase = get_supabase_client()
    matched = _filter_agency_ids(supabase, params)
    if matched is not None and not matched:
        return [], 0

    query = supabase.table("agencies").select(PUBLIC_COLUMNS, count="exact").eq("is_active", True)
    if matched is not None:
        query = query.in_("id", sorted(matched))
    query = apply_multi_column_search(query, ["name", "description"], params.search)
    result = apply_range(query.order("name"), params.offset, params.limit).execute()

    agencies = [flatten_relations(row) for row in result.data or []]
    logger.debug("directory_search", results=len(agencies), total=result.count)
    return agencies, result.count or 0


def _active_agency_by_slug(slug: str, columns: str) -> dict[str, Any]:
    supabase = get_supabase_client()
    result = (
        supabase.table("agencies")
        .select(columns)
        .eq("slug", slug)
        .eq("is_active", True)
        .limit(1)
        .execute()
    )
    agency = first_row(result)
    if agency is None:
        raise ApiError.not_found("Agency not found")
    return agency


def get_agency_by_slug(slug: str) -> dict[str, Any]:
    return flatten_relations(_active_agency_by_slug(slug, PUBLIC_COLUMNS))


def public_compliance(slug: str) -> list[dict[str, Any]]:
    agency = _active_agency_by_slug(slug, "id")
    supabase = get_supabase_client()
    result = (
        supabase.table("agency_compliance")
        .select("compliance_type, is_verified, expiration_date")
        .eq("agency_id", agency["id"])
        .eq("is_active", True)
        .order("compliance_type")
        .execute()
    )
    today = utc_today()
    badges = []
    for row in result.data or []:
        expiration = parse_iso_date(row.get("expiration_date"))
        badges.append({
            "type": row["compliance_type"],
            "displayName": COMPLIANCE_DISPLAY_NAMES.get(row["compliance_type"], row["compliance_type"]),
            "isVerified": bool(row.get("is_verified")),
            "expirationDate": row.get("expiration_date"),
            "isExpired": expiration is not None and expiration < today,
        })
    return badges
