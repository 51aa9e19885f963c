"""
Agency claim workflow.

    pending ──approve──▶ approved   (agency claimed, requester becomes agency_owner)
       │  └─reject───▶ rejected     (reason kept for the requester)
       └─ under_review ─┘

At most one pending/under_review claim exists per (agency, user). Approval
touches three rows without a transaction; if a later write fails the
earlier ones are restored before the error is returned.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog
from postgrest.exceptions import APIError as PostgrestAPIError

from staffdir_shared.constants import ACTIVE_CLAIM_STATUSES, ROLE_ADMIN, ROLE_AGENCY_OWNER
from staffdir_shared.db import UNIQUE_VIOLATION, first_row, get_supabase_client
from staffdir_shared.mailer import send_email_best_effort, templates
from staffdir_shared.models import ClaimAuditEntry, ClaimRequest
from staffdir_shared.time_utils import utc_now_iso

from staffdir_api.errors import ApiError
from staffdir_api.middleware.auth import AuthUser
from staffdir_api.schemas.claims import ClaimRequestCreate
from staffdir_api.utils.email_domain import verify_email_domain
from staffdir_api.utils.filtering import apply_text_search
from staffdir_api.utils.pagination import apply_range

logger = structlog.get_logger(__name__)

CLAIMS = "agency_claim_requests"
AUDIT_LOG = "agency_claim_audit_log"


def _record_audit(claim_id: str, action: str, *, admin_id: str | None, notes: str) -> None:
    entry = ClaimAuditEntry(claim_id=claim_id, admin_id=admin_id, action=action, notes=notes)
    supabase = get_supabase_client(service_role=True)
    try:
        supabase.table(AUDIT_LOG).insert(entry.to_insert_dict()).execute()
    except PostgrestAPIError as exc:
        logger.error("claim_audit_failed", claim_id=claim_id, action=action, error=exc.message)


def _get_profile(user_id: str) -> dict[str, Any] | None:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("profiles")
        .select("id, role, email, full_name")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    return first_row(result)


def get_claim(claim_id: str) -> dict[str, Any]:
    supabase = get_supabase_client(service_role=True)
    result = supabase.table(CLAIMS).select("*").eq("id", claim_id).limit(1).execute()
    claim = first_row(result)
    if claim is None:
        raise ApiError.not_found("Claim not found")
    return claim


def _require_open(claim: dict[str, Any]) -> None:
    if claim.get("status") not in ACTIVE_CLAIM_STATUSES:
        raise ApiError.conflict(
            f"Claim has already been {claim.get('status')}",
            {"status": claim.get("status")},
        )


# ---------------------------------------------------------------------------
# Requester side
# ---------------------------------------------------------------------------

async def submit_claim(payload: ClaimRequestCreate, user: AuthUser) -> dict[str, Any]:
    supabase = get_supabase_client(service_role=True)
    agency_id = str(payload.agency_id)

    agency = first_row(
        supabase.table("agencies")
        .select("id, name, website, is_claimed, claimed_by")
        .eq("id", agency_id)
        .limit(1)
        .execute()
    )
    if agency is None:
        raise ApiError("AGENCY_NOT_FOUND", "Agency not found", 404)
    if agency.get("is_claimed") and agency.get("claimed_by"):
        raise ApiError("AGENCY_ALREADY_CLAIMED", "This agency has already been claimed", 409)

    pending = first_row(
        supabase.table(CLAIMS)
        .select("id, status")
        .eq("agency_id", agency_id)
        .eq("user_id", user.user_id)
        .in_("status", list(ACTIVE_CLAIM_STATUSES))
        .limit(1)
        .execute()
    )
    if pending is not None:
        raise ApiError(
            "PENDING_CLAIM_EXISTS",
            "You already have a pending claim request for this agency",
            409,
            {"existing_claim_id": pending["id"], "status": pending["status"]},
        )

    claim = ClaimRequest(
        agency_id=payload.agency_id,
        user_id=user.user_id,
        business_email=payload.business_email,
        phone_number=payload.phone_number,
        position_title=payload.position_title,
        verification_method=payload.verification_method,
        additional_notes=payload.additional_notes,
        email_domain_verified=verify_email_domain(payload.business_email, agency.get("website")),
    )
    try:
        result = supabase.table(CLAIMS).insert(claim.to_insert_dict()).execute()
    except PostgrestAPIError as exc:
        # partial unique index on (agency_id, user_id) for open claims
        if exc.code == UNIQUE_VIOLATION:
            raise ApiError(
                "PENDING_CLAIM_EXISTS",
                "You already have a pending claim request for this agency",
                409,
            ) from exc
        raise

    row = first_row(result)
    if row is None:
        raise ApiError.database("Failed to create claim request")

    logger.info(
        "claim_submitted",
        claim_id=row["id"],
        agency_id=agency_id,
        email_domain_verified=claim.email_domain_verified,
    )
    _record_audit(row["id"], "submitted", admin_id=None, notes="Claim request submitted by user")
    await send_email_best_effort(
        to=user.email or payload.business_email,
        message=templates.claim_submitted(agency_name=agency["name"], full_name=user.full_name),
    )

    return {
        "id": row["id"],
        "agency_id": row["agency_id"],
        "user_id": row["user_id"],
        "status": row["status"],
        "email_domain_verified": row.get("email_domain_verified", claim.email_domain_verified),
        "created_at": row.get("created_at"),
    }


def list_my_claims(user_id: str) -> list[dict[str, Any]]:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table(CLAIMS)
        .select("*, agency:agencies(id, name, slug, logo_url)")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return list(result.data or [])


# ---------------------------------------------------------------------------
# Admin side
# ---------------------------------------------------------------------------

def list_claims(
    *,
    status: str = "all",
    search: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[dict[str, Any]], int]:
    supabase = get_supabase_client(service_role=True)
    query = supabase.table(CLAIMS).select(
        "*, agency:agencies(id, name, slug, website)", count="exact"
    )
    if status != "all":
        query = query.eq("status", status)
    query = apply_text_search(query, "business_email", search)
    query = apply_range(query.order("created_at", desc=True), offset, limit)
    result = query.execute()
    return list(result.data or []), result.count or 0


def _compensate(label: str, claim_id: str, write: Callable[[], Any]) -> None:
    try:
        write()
    except PostgrestAPIError as exc:
        logger.error("claim_rollback_failed", step=label, claim_id=claim_id, error=exc.message)


async def approve_claim(claim_id: str, *, admin_id: str) -> tuple[dict[str, Any], str]:
    claim = get_claim(claim_id)
    _require_open(claim)

    supabase = get_supabase_client(service_role=True)
    agency = first_row(
        supabase.table("agencies")
        .select("id, name, is_claimed, claimed_by, claimed_at")
        .eq("id", claim["agency_id"])
        .limit(1)
        .execute()
    )
    if agency is None:
        raise ApiError("AGENCY_NOT_FOUND", "Agency not found", 404)
    if agency.get("is_claimed") and agency.get("claimed_by") not in (None, claim["user_id"]):
        raise ApiError("AGENCY_ALREADY_CLAIMED", "This agency has already been claimed", 409)
    requester = _get_profile(claim["user_id"])

    now = utc_now_iso()
    claims = supabase.table(CLAIMS)
    result = (
        claims.update({
            "status": "approved",
            "reviewed_by": admin_id,
            "reviewed_at": now,
            "updated_at": now,
        })
        .eq("id", claim_id)
        .execute()
    )
    approved = first_row(result) or {**claim, "status": "approved"}

    def restore_claim() -> None:
        claims.update({
            "status": claim["status"],
            "reviewed_by": claim.get("reviewed_by"),
            "reviewed_at": claim.get("reviewed_at"),
        }).eq("id", claim_id).execute()

    def restore_agency() -> None:
        supabase.table("agencies").update({
            "is_claimed": bool(agency.get("is_claimed")),
            "claimed_by": agency.get("claimed_by"),
            "claimed_at": agency.get("claimed_at"),
        }).eq("id", agency["id"]).execute()

    try:
        supabase.table("agencies").update({
            "is_claimed": True,
            "claimed_by": claim["user_id"],
            "claimed_at": now,
            "updated_at": now,
        }).eq("id", agency["id"]).execute()
    except PostgrestAPIError:
        logger.error("claim_approval_agency_update_failed", claim_id=claim_id)
        _compensate("claim", claim_id, restore_claim)
        raise

    if requester is None or requester.get("role") != ROLE_ADMIN:
        try:
            supabase.table("profiles").update({"role": ROLE_AGENCY_OWNER}).eq(
                "id", claim["user_id"]
            ).execute()
        except PostgrestAPIError:
            logger.error("claim_approval_role_update_failed", claim_id=claim_id)
            _compensate("agency", claim_id, restore_agency)
            _compensate("claim", claim_id, restore_claim)
            raise

    logger.info("claim_approved", claim_id=claim_id, agency_id=agency["id"], admin_id=admin_id)
    _record_audit(claim_id, "approved", admin_id=admin_id, notes="Claim approved by admin")
    await send_email_best_effort(
        to=(requester or {}).get("email") or claim.get("business_email"),
        message=templates.claim_approved(
            agency_name=agency["name"], full_name=(requester or {}).get("full_name")
        ),
    )
    return approved, "Claim approved successfully. User role updated to agency_owner."


async def reject_claim(
    claim_id: str, *, reason: str, admin_id: str
) -> tuple[dict[str, Any], str]:
    claim = get_claim(claim_id)
    _require_open(claim)

    now = utc_now_iso()
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table(CLAIMS)
        .update({
            "status": "rejected",
            "rejection_reason": reason,
            "reviewed_by": admin_id,
            "reviewed_at": now,
            "updated_at": now,
        })
        .eq("id", claim_id)
        .execute()
    )
    rejected = first_row(result) or {**claim, "status": "rejected", "rejection_reason": reason}
    logger.info("claim_rejected", claim_id=claim_id, admin_id=admin_id)
    _record_audit(claim_id, "rejected", admin_id=admin_id, notes=reason)

    agency = first_row(
        supabase.table("agencies").select("name").eq("id", claim["agency_id"]).limit(1).execute()
    )
    requester = _get_profile(claim["user_id"]) or {}
    await send_email_best_effort(
        to=requester.get("email") or claim.get("business_email"),
        message=templates.claim_rejected(
            agency_name=(agency or {}).get("name") or "the agency",
            reason=reason,
            full_name=requester.get("full_name"),
        ),
    )
    return rejected, "Claim rejected successfully."
