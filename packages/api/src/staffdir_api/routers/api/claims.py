"""Agency claim requests from signed-in users."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from staffdir_api.dependencies import AuthUser, require_user
from staffdir_api.responses import wrap_response
from staffdir_api.schemas.claims import ClaimRequestCreate
from staffdir_api.services import claim_service
from staffdir_api.utils.validation import parse_body

router = APIRouter(prefix="/claims", tags=["claims"])


@router.post("/request", status_code=201)
async def submit_claim_request(
    request: Request,
    user: AuthUser = Depends(require_user),
) -> JSONResponse:
    payload = await parse_body(request, ClaimRequestCreate)
    data = await claim_service.submit_claim(payload, user)
    return JSONResponse(
        status_code=201,
        content=wrap_response(data, message="Claim request submitted successfully"),
    )


@router.get("/my-requests")
async def my_claim_requests(user: AuthUser = Depends(require_user)):
    return wrap_response(claim_service.list_my_claims(user.user_id))
