"""Admin compliance review for a single agency."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from staffdir_shared.constants import ComplianceType

from staffdir_api.dependencies import AuthUser, require_admin
from staffdir_api.responses import wrap_response
from staffdir_api.schemas.compliance import ComplianceUpdateRequest, ComplianceVerifyAction
from staffdir_api.services import compliance_service
from staffdir_api.services.agency_service import require_agency
from staffdir_api.utils.validation import parse_body

router = APIRouter(prefix="/admin/agencies/{agency_id}/compliance", tags=["admin"])

NO_STORE = {"Cache-Control": "private, no-cache, no-store, must-revalidate"}


def _no_store(body: dict) -> JSONResponse:
    return JSONResponse(content=body, headers=NO_STORE)


@router.get("")
async def get_compliance(agency_id: str, admin: AuthUser = Depends(require_admin)) -> JSONResponse:
    require_agency(agency_id)
    return _no_store(wrap_response(compliance_service.list_compliance(agency_id)))


@router.put("")
async def update_compliance(
    agency_id: str,
    request: Request,
    admin: AuthUser = Depends(require_admin),
) -> JSONResponse:
    payload = await parse_body(
        request,
        ComplianceUpdateRequest,
        code="INVALID_PARAMS",
        message="Invalid compliance data",
    )
    require_agency(agency_id)
    data = compliance_service.update_compliance(agency_id, payload.items, admin_id=admin.user_id)
    return _no_store(wrap_response(data, message="Compliance updated successfully"))


@router.post("/verify")
async def verify_compliance(
    agency_id: str,
    request: Request,
    admin: AuthUser = Depends(require_admin),
) -> JSONResponse:
    action = await parse_body(
        request,
        ComplianceVerifyAction,
        code="INVALID_PARAMS",
        message="Invalid verification request",
    )
    data, message = await compliance_service.verify_compliance(
        agency_id, action, admin_id=admin.user_id
    )
    return _no_store(wrap_response(data, message=message))


@router.post("/document")
async def upload_document(
    agency_id: str,
    admin: AuthUser = Depends(require_admin),
    file: UploadFile = File(...),
    compliance_type: ComplianceType = Form(...),
) -> JSONResponse:
    require_agency(agency_id)
    content = await file.read()
    data = compliance_service.attach_document(
        agency_id, compliance_type, content, file.content_type or ""
    )
    return _no_store(wrap_response(data, message="Document uploaded successfully"))


@router.delete("/document")
async def delete_document(
    agency_id: str,
    admin: AuthUser = Depends(require_admin),
    compliance_type: ComplianceType = Query(...),
) -> JSONResponse:
    require_agency(agency_id)
    data = compliance_service.detach_document(agency_id, compliance_type)
    return _no_store(wrap_response(data, message="Document removed successfully"))
