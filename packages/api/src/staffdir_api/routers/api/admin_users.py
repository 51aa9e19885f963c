"""Admin user maintenance."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from staffdir_api.dependencies import AuthUser, require_admin
from staffdir_api.responses import wrap_response
from staffdir_api.schemas.users import UserCleanup
from staffdir_api.services import user_service
from staffdir_api.utils.validation import parse_body

router = APIRouter(prefix="/admin/users", tags=["admin"])


@router.post("/cleanup")
async def cleanup_user(request: Request, admin: AuthUser = Depends(require_admin)):
    payload = await parse_body(request, UserCleanup)
    result = user_service.cleanup_user(payload.email, admin_id=admin.user_id)
    message = "Cleanup completed successfully"
    if result["failed"]:
        message = f"Cleanup completed with errors in: {', '.join(result['failed'])}"
    return wrap_response({"deleted": result["deleted"]}, message=message)
