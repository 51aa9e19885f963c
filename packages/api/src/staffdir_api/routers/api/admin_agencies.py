"""Admin agency management endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from staffdir_api.dependencies import AuthUser, require_admin
from staffdir_api.errors import ApiError
from staffdir_api.responses import build_pagination, wrap_response
from staffdir_api.schemas.agencies import AgencyCreate, AgencyStatusUpdate, AgencyUpdate
from staffdir_api.services import agency_service
from staffdir_api.utils.validation import parse_body

router = APIRouter(prefix="/admin/agencies", tags=["admin"])


@router.get("")
async def list_agencies(
    admin: AuthUser = Depends(require_admin),
    search: str | None = Query(None, max_length=100),
    status: Literal["active", "inactive", "all"] = Query("all"),
    claimed: Literal["yes", "no", "all"] = Query("all"),
    limit: int = Query(25, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    data, total = agency_service.list_agencies(
        search=search, status=status, claimed=claimed, limit=limit, offset=offset
    )
    return wrap_response(data, pagination=build_pagination(total, limit=limit, offset=offset))


@router.post("", status_code=201)
async def create_agency(
    request: Request,
    admin: AuthUser = Depends(require_admin),
) -> JSONResponse:
    payload = await parse_body(request, AgencyCreate)
    data = agency_service.create_agency(payload, admin_id=admin.user_id)
    return JSONResponse(
        status_code=201,
        content=wrap_response(data, message="Agency created successfully"),
    )


@router.get("/{agency_id}")
async def get_agency(agency_id: str, admin: AuthUser = Depends(require_admin)):
    data = agency_service.get_agency(agency_id)
    if data is None:
        raise ApiError.not_found("Agency not found")
    return wrap_response(data)


@router.patch("/{agency_id}")
async def update_agency(
    agency_id: str,
    request: Request,
    admin: AuthUser = Depends(require_admin),
):
    payload = await parse_body(request, AgencyUpdate)
    data = agency_service.update_agency(agency_id, payload.changes(), admin_id=admin.user_id)
    return wrap_response(data, message="Agency updated successfully")


@router.post("/{agency_id}/status")
async def set_agency_status(
    agency_id: str,
    request: Request,
    admin: AuthUser = Depends(require_admin),
):
    payload = await parse_body(request, AgencyStatusUpdate)
    data = agency_service.set_agency_active(
        agency_id, active=payload.active, admin_id=admin.user_id
    )
    verb = "activated" if payload.active else "deactivated"
    return wrap_response(data, message=f"Agency {verb} successfully")
