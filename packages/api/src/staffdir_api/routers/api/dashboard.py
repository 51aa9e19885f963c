"""Compliance self-service for agency owners."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from staffdir_shared.constants import ComplianceType

from staffdir_api.dependencies import AuthUser, require_user
from staffdir_api.responses import wrap_response
from staffdir_api.schemas.compliance import OwnerComplianceUpdateRequest
from staffdir_api.services import compliance_service
from staffdir_api.utils.validation import parse_body

router = APIRouter(prefix="/dashboard/compliance", tags=["dashboard"])

NO_STORE = {"Cache-Control": "private, no-cache, no-store, must-revalidate"}


@router.get("")
async def get_my_compliance(user: AuthUser = Depends(require_user)) -> JSONResponse:
    agency = compliance_service.require_owned_agency(user.user_id)
    data = compliance_service.list_compliance(agency["id"])
    return JSONResponse(content=wrap_response(data), headers=NO_STORE)


@router.put("")
async def update_my_compliance(
    request: Request,
    user: AuthUser = Depends(require_user),
) -> JSONResponse:
    agency = compliance_service.require_owned_agency(user.user_id)
    payload = await parse_body(
        request,
        OwnerComplianceUpdateRequest,
        code="INVALID_PARAMS",
        message="Invalid compliance data",
    )
    data = compliance_service.update_compliance(agency["id"], payload.items)
    return JSONResponse(
        content=wrap_response(data, message="Compliance updated successfully"),
        headers=NO_STORE,
    )


@router.post("/document")
async def upload_my_document(
    user: AuthUser = Depends(require_user),
    file: UploadFile = File(...),
    compliance_type: ComplianceType = Form(...),
) -> JSONResponse:
    agency = compliance_service.require_owned_agency(user.user_id)
    content = await file.read()
    data = compliance_service.attach_document(
        agency["id"], compliance_type, content, file.content_type or ""
    )
    return JSONResponse(
        content=wrap_response(data, message="Document uploaded successfully"),
        headers=NO_STORE,
    )


@router.delete("/document")
async def delete_my_document(
    user: AuthUser = Depends(require_user),
    compliance_type: ComplianceType = Query(...),
) -> JSONResponse:
    agency = compliance_service.require_owned_agency(user.user_id)
    data = compliance_service.detach_document(agency["id"], compliance_type)
    return JSONResponse(
        content=wrap_response(data, message="Document removed successfully"),
        headers=NO_STORE,
    )
