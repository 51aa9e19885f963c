"""Labor-request intake and agency matching."""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Any

import structlog
from postgrest.exceptions import APIError as PostgrestAPIError

from staffdir_shared.constants import CONFIRMATION_TOKEN_TTL_HOURS
from staffdir_shared.db import first_row, get_supabase_client
from staffdir_shared.models import LaborRequest, LaborRequestCraft
from staffdir_shared.time_utils import utc_now

from staffdir_api.errors import ApiError
from staffdir_api.schemas.labor_requests import LaborRequestCreate
from staffdir_api.utils.filtering import apply_multi_column_search
from staffdir_api.utils.pagination import apply_range

logger = structlog.get_logger(__name__)

MATCH_RPC = "match_agencies_to_craft"


def _match_agencies(supabase: Any, craft: dict[str, Any]) -> list[dict[str, Any]]:
    """Agencies serving the craft's trade and region; [] if the lookup fails."""
    try:
        result = supabase.rpc(
            MATCH_RPC,
            {"p_trade_id": craft["trade_id"], "p_region_id": craft["region_id"]},
        ).execute()
    except PostgrestAPIError as exc:
        logger.warning("agency_match_failed", craft_id=craft.get("id"), error=exc.message)
        return []
    return list(result.data or [])


def create_labor_request(payload: LaborRequestCreate) -> dict[str, Any]:
    supabase = get_supabase_client(service_role=True)
    request = LaborRequest(
        project_name=payload.project_name,
        company_name=payload.company_name,
        contact_email=payload.contact_email,
        contact_phone=payload.contact_phone,
        additional_details=payload.additional_details,
        confirmation_token=secrets.token_hex(32),
        confirmation_token_expires=utc_now() + timedelta(hours=CONFIRMATION_TOKEN_TTL_HOURS),
    )
    created = first_row(supabase.table("labor_requests").insert(request.to_insert_dict()).execute())
    if created is None:
        raise ApiError.database("Failed to create labor request")
    request_id = created["id"]

    craft_rows = [
        LaborRequestCraft(
            labor_request_id=request_id,
            trade_id=craft.trade_id,
            region_id=craft.region_id,
            experience_level=craft.experience_level,
            worker_count=craft.worker_count,
            start_date=craft.start_date,
            duration_days=craft.duration_days,
            hours_per_week=craft.hours_per_week,
            notes=craft.notes or None,
            pay_rate_min=craft.pay_rate_min,
            pay_rate_max=craft.pay_rate_max,
            per_diem_rate=craft.per_diem_rate,
        ).to_insert_dict()
        for craft in payload.crafts
    ]
    try:
        crafts = supabase.table("labor_request_crafts").insert(craft_rows).execute().data or []
    except PostgrestAPIError as exc:
        logger.error("labor_request_crafts_failed", labor_request_id=request_id, error=exc.message)
        supabase.table("labor_requests").delete().eq("id", request_id).execute()
        raise ApiError.database("Failed to save craft requirements") from exc

    matches_by_craft: dict[str, int] = {}
    notifications: list[dict[str, Any]] = []
    for craft in crafts:
        matches = _match_agencies(supabase, craft)
        matches_by_craft[craft["id"]] = len(matches)
        notifications.extend(
            {
                "labor_request_id": request_id,
                "labor_request_craft_id": craft["id"],
                "agency_id": match["agency_id"],
                "status": "pending",
            }
            for match in matches
        )

    if notifications:
        try:
            supabase.table("labor_request_notifications").insert(notifications).execute()
        except PostgrestAPIError as exc:
            logger.error(
                "labor_request_notifications_failed",
                labor_request_id=request_id,
                error=exc.message,
            )

    logger.info(
        "labor_request_created",
        labor_request_id=request_id,
        crafts=len(crafts),
        matches=len(notifications),
    )
    return {
        "id": request_id,
        "confirmationToken": request.confirmation_token,
        "matchCount": len(notifications),
        "matchesByCraft": matches_by_craft,
    }


def _notification_stats(notifications: list[dict[str, Any]]) -> dict[str, int]:
    stats = {"sent": 0, "failed": 0, "responded": 0, "pending": 0}
    for n in notifications:
        status = n.get("status")
        if status in ("sent", "delivered", "opened"):
            stats["sent"] += 1
        elif status in ("failed", "bounced"):
            stats["failed"] += 1
        elif status == "responded":
            stats["responded"] += 1
        else:
            stats["pending"] += 1
    return stats


def list_labor_requests(
    *,
    status: str = "all",
    search: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[dict[str, Any]], int]:
    supabase = get_supabase_client(service_role=True)
    query = supabase.table("labor_requests").select(
        "*, crafts:labor_request_crafts(*), notifications:labor_request_notifications(id, status)",
        count="exact",
    )
    if status != "all":
        query = query.eq("status", status)
    query = apply_multi_column_search(query, ["project_name", "company_name"], search)
    result = apply_range(query.order("created_at", desc=True), offset, limit).execute()

    requests: list[dict[str, Any]] = []
    for row in result.data or []:
        notifications = row.pop("notifications", None) or []
        stats = _notification_stats(notifications)
        row.pop("confirmation_token", None)
        requests.append({
            **row,
            "match_count": len(notifications),
            "notification_stats": stats,
            "has_delivery_errors": stats["failed"] > 0,
        })
    return requests, result.count or 0
