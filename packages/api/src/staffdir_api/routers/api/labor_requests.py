"""Public labor-request submission."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from staffdir_api.responses import wrap_response
from staffdir_api.schemas.labor_requests import LaborRequestCreate
from staffdir_api.services import labor_request_service
from staffdir_api.utils.validation import parse_body

router = APIRouter(prefix="/labor-requests", tags=["labor-requests"])


@router.post("", status_code=201)
async def submit_labor_request(request: Request) -> JSONResponse:
    payload = await parse_body(request, LaborRequestCreate)
    data = labor_request_service.create_labor_request(payload)
    return JSONResponse(status_code=201, content=wrap_response(data))
