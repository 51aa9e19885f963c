"""Admin review of agency claim requests."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, Request

from staffdir_api.dependencies import AuthUser, PageParams, require_admin
from staffdir_api.responses import build_pagination, wrap_response
from staffdir_api.schemas.claims import ClaimRejection
from staffdir_api.services import claim_service
from staffdir_api.utils.validation import parse_body

router = APIRouter(prefix="/admin/claims", tags=["admin"])

ClaimStatusFilter = Literal["all", "pending", "under_review", "approved", "rejected"]


@router.get("")
async def list_claims(
    admin: AuthUser = Depends(require_admin),
    page: PageParams = Depends(),
    status: ClaimStatusFilter = Query("all"),
    search: str | None = Query(None, max_length=100),
):
    data, total = claim_service.list_claims(
        status=status, search=search, limit=page.limit, offset=page.offset
    )
    return wrap_response(
        data, pagination=build_pagination(total, limit=page.limit, offset=page.offset)
    )


@router.post("/{claim_id}/approve")
async def approve_claim(claim_id: str, admin: AuthUser = Depends(require_admin)):
    data, message = await claim_service.approve_claim(claim_id, admin_id=admin.user_id)
    return wrap_response(data, message=message)


@router.post("/{claim_id}/reject")
async def reject_claim(
    claim_id: str,
    request: Request,
    admin: AuthUser = Depends(require_admin),
):
    payload = await parse_body(request, ClaimRejection)
    data, message = await claim_service.reject_claim(
        claim_id, reason=payload.rejection_reason, admin_id=admin.user_id
    )
    return wrap_response(data, message=message)
