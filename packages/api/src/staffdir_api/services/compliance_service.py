"""
Compliance items per agency: status derivation, batch updates, admin
verification and document attachment.

Every write keyed on (agency_id, compliance_type) goes through a single
upsert call so a batch is applied as one statement. verified_by and
verified_at are only ever written as a pair.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import structlog

from staffdir_shared.constants import (
    COMPLIANCE_DISPLAY_NAMES,
    EXPIRING_SOON_DAYS,
    ComplianceStatus,
)
from staffdir_shared.db import first_row, get_supabase_client
from staffdir_shared.mailer import send_email_best_effort, templates
from staffdir_shared.time_utils import days_until, parse_iso_date, utc_now_iso, utc_today

from staffdir_api.errors import ApiError
from staffdir_api.schemas.compliance import (
    ComplianceVerifyAction,
    OwnerComplianceUpdateItem,
)
from staffdir_api.services import storage_service
from staffdir_api.services.agency_service import require_agency

logger = structlog.get_logger(__name__)

TABLE = "agency_compliance"
ON_CONFLICT = "agency_id,compliance_type"


# ---------------------------------------------------------------------------
# Derived status
# ---------------------------------------------------------------------------

def _as_date(value: Any) -> date | None:
    if isinstance(value, date):
        return value
    return parse_iso_date(value)


def derive_compliance_status(row: dict[str, Any], *, today: date | None = None) -> ComplianceStatus:
    """expired > expiring_soon > pending_verification > ok."""
    expiration = _as_date(row.get("expiration_date"))
    if expiration is not None:
        remaining = days_until(expiration, today=today)
        if remaining < 0:
            return "expired"
        if remaining <= EXPIRING_SOON_DAYS:
            return "expiring_soon"
    if row.get("document_url") and not row.get("is_verified"):
        return "pending_verification"
    return "ok"


def to_compliance_item(row: dict[str, Any], *, today: date | None = None) -> dict[str, Any]:
    """Row -> camelCase item with a freshly signed document link and derived status."""
    compliance_type = row["compliance_type"]
    return {
        "id": row.get("id"),
        "type": compliance_type,
        "displayName": COMPLIANCE_DISPLAY_NAMES.get(compliance_type, compliance_type),
        "isActive": bool(row.get("is_active")),
        "isVerified": bool(row.get("is_verified")),
        "verifiedBy": row.get("verified_by"),
        "verifiedAt": row.get("verified_at"),
        "documentUrl": storage_service.create_signed_url(row.get("document_url")),
        "expirationDate": row.get("expiration_date"),
        "notes": row.get("notes"),
        "status": derive_compliance_status(row, today=today),
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def fetch_rows(agency_id: str) -> list[dict[str, Any]]:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table(TABLE)
        .select("*")
        .eq("agency_id", agency_id)
        .order("compliance_type")
        .execute()
    )
    return list(result.data or [])


def fetch_row(agency_id: str, compliance_type: str) -> dict[str, Any] | None:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table(TABLE)
        .select("*")
        .eq("agency_id", agency_id)
        .eq("compliance_type", compliance_type)
        .limit(1)
        .execute()
    )
    return first_row(result)


def list_compliance(agency_id: str) -> list[dict[str, Any]]:
    today = utc_today()
    return [to_compliance_item(row, today=today) for row in fetch_rows(agency_id)]


# ---------------------------------------------------------------------------
# Batch update
# ---------------------------------------------------------------------------

def build_upsert_row(
    agency_id: str,
    item: OwnerComplianceUpdateItem,
    existing: dict[str, Any] | None,
    *,
    admin_id: str | None,
    now: str,
) -> dict[str, Any]:
    """One payload with every column present, so a batch shares a single key set.

    Fields the item leaves out carry the stored value forward. admin_id is
    None for owner updates, which never touch verification, notes or the
    document link.
    """
    existing = existing or {}
    row: dict[str, Any] = {
        "agency_id": agency_id,
        "compliance_type": item.type,
        "is_active": item.is_active,
        "expiration_date": item.expiration_date,
        "is_verified": bool(existing.get("is_verified")),
        "verified_by": existing.get("verified_by"),
        "verified_at": existing.get("verified_at"),
        "notes": existing.get("notes"),
        "document_url": existing.get("document_url"),
        "updated_at": now,
    }
    if admin_id is None:
        return row

    fields = item.model_fields_set
    is_verified = getattr(item, "is_verified", None)
    if is_verified is True:
        row.update(is_verified=True, verified_by=admin_id, verified_at=now)
    elif is_verified is False:
        row.update(is_verified=False, verified_by=None, verified_at=None)
    if "notes" in fields:
        row["notes"] = (getattr(item, "notes", None) or "").strip() or None
    if "document_url" in fields:
        row["document_url"] = getattr(item, "document_url", None) or None
    return row


def update_compliance(
    agency_id: str,
    items: list[OwnerComplianceUpdateItem],
    *,
    admin_id: str | None = None,
) -> list[dict[str, Any]]:
    """Apply a batch of item updates in one upsert and return the fresh item list."""
    existing = {row["compliance_type"]: row for row in fetch_rows(agency_id)}
    now = utc_now_iso()
    rows = [
        build_upsert_row(agency_id, item, existing.get(item.type), admin_id=admin_id, now=now)
        for item in items
    ]

    supabase = get_supabase_client(service_role=True)
    supabase.table(TABLE).upsert(rows, on_conflict=ON_CONFLICT).execute()
    logger.info(
        "compliance_updated",
        agency_id=agency_id,
        types=[row["compliance_type"] for row in rows],
        admin_id=admin_id,
    )
    return list_compliance(agency_id)


# ---------------------------------------------------------------------------
# Admin verify / reject
# ---------------------------------------------------------------------------

async def _notify_owner_of_rejection(
    agency: dict[str, Any], compliance_type: str, reason: str
) -> bool:
    owner_id = agency.get("claimed_by")
    if not owner_id:
        return False
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("profiles")
        .select("email, full_name")
        .eq("id", owner_id)
        .limit(1)
        .execute()
    )
    owner = first_row(result)
    if owner is None:
        return False
    message = templates.compliance_rejected(
        agency_name=agency.get("name") or "your agency",
        compliance_name=COMPLIANCE_DISPLAY_NAMES.get(compliance_type, compliance_type),
        reason=reason,
    )
    return await send_email_best_effort(to=owner.get("email"), message=message)


async def verify_compliance(
    agency_id: str,
    action: ComplianceVerifyAction,
    *,
    admin_id: str,
) -> tuple[dict[str, Any], str]:
    """Verify or reject one item's document. Returns (item, message)."""
    agency = require_agency(agency_id, "id, name, claimed_by")
    row = fetch_row(agency_id, action.compliance_type)
    if row is None:
        raise ApiError.not_found("Compliance record not found")

    now = utc_now_iso()
    notes = action.notes if action.notes is not None else row.get("notes")

    if action.action == "verify":
        if not row.get("document_url"):
            raise ApiError.validation("Cannot verify compliance without a supporting document")
        update = {
            "is_verified": True,
            "verified_by": admin_id,
            "verified_at": now,
            "notes": notes,
            "updated_at": now,
        }
    else:
        storage_service.remove_document(row.get("document_url"))
        update = {
            "is_verified": False,
            "verified_by": None,
            "verified_at": None,
            "document_url": None,
            "notes": notes,
            "updated_at": now,
        }

    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table(TABLE)
        .update(update)
        .eq("agency_id", agency_id)
        .eq("compliance_type", action.compliance_type)
        .execute()
    )
    updated = first_row(result) or {**row, **update}
    logger.info(
        "compliance_reviewed",
        agency_id=agency_id,
        compliance_type=action.compliance_type,
        action=action.action,
        admin_id=admin_id,
    )

    if action.action == "verify":
        return to_compliance_item(updated), "Compliance document verified successfully."

    notified = await _notify_owner_of_rejection(agency, action.compliance_type, action.reason or "")
    message = "Compliance document rejected successfully."
    if notified:
        message += " Agency owner has been notified."
    return to_compliance_item(updated), message


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

def attach_document(
    agency_id: str,
    compliance_type: str,
    content: bytes,
    content_type: str,
) -> dict[str, Any]:
    """Store a new document for an item; the item returns to unverified."""
    existing = fetch_row(agency_id, compliance_type)
    path = storage_service.upload_document(agency_id, compliance_type, content, content_type)

    now = utc_now_iso()
    payload = {
        "agency_id": agency_id,
        "compliance_type": compliance_type,
        "is_active": bool(existing.get("is_active")) if existing else False,
        "document_url": path,
        "is_verified": False,
        "verified_by": None,
        "verified_at": None,
        "updated_at": now,
    }
    supabase = get_supabase_client(service_role=True)
    try:
        result = supabase.table(TABLE).upsert(payload, on_conflict=ON_CONFLICT).execute()
    except Exception:
        storage_service.remove_document(path)
        raise

    if existing and existing.get("document_url"):
        storage_service.remove_document(existing["document_url"])
    logger.info("compliance_document_attached", agency_id=agency_id, compliance_type=compliance_type)
    return to_compliance_item(first_row(result) or {**(existing or {}), **payload})


def detach_document(agency_id: str, compliance_type: str) -> dict[str, Any]:
    existing = fetch_row(agency_id, compliance_type)
    if existing is None or not existing.get("document_url"):
        raise ApiError.not_found("No document found for this compliance type")

    storage_service.remove_document(existing["document_url"])
    update = {
        "document_url": None,
        "is_verified": False,
        "verified_by": None,
        "verified_at": None,
        "updated_at": utc_now_iso(),
    }
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table(TABLE)
        .update(update)
        .eq("agency_id", agency_id)
        .eq("compliance_type", compliance_type)
        .execute()
    )
    logger.info("compliance_document_removed", agency_id=agency_id, compliance_type=compliance_type)
    return to_compliance_item(first_row(result) or {**existing, **update})


# ---------------------------------------------------------------------------
# Agency owners
# ---------------------------------------------------------------------------

def require_owned_agency(user_id: str) -> dict[str, Any]:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("agencies")
        .select("id, name, slug")
        .eq("claimed_by", user_id)
        .limit(1)
        .execute()
    )
    agency = first_row(result)
    if agency is None:
        raise ApiError.forbidden("You do not own any agency")
    return agency
