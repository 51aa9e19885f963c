"""Admin view of submitted labor requests."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query

from staffdir_api.dependencies import AuthUser, PageParams, require_admin
from staffdir_api.responses import build_pagination, wrap_response
from staffdir_api.services import labor_request_service

router = APIRouter(prefix="/admin/labor-requests", tags=["admin"])

LaborRequestStatusFilter = Literal["all", "pending", "active", "fulfilled", "cancelled"]


@router.get("")
async def list_labor_requests(
    admin: AuthUser = Depends(require_admin),
    page: PageParams = Depends(),
    status: LaborRequestStatusFilter = Query("all"),
    search: str | None = Query(None, max_length=100),
):
    data, total = labor_request_service.list_labor_requests(
        status=status, search=search, limit=page.limit, offset=page.offset
    )
    return wrap_response(
        data, pagination=build_pagination(total, limit=page.limit, offset=page.offset)
    )
