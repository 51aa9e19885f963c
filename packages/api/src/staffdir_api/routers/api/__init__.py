from fastapi import APIRouter

from staffdir_api.routers.api import (
    admin_agencies,
    admin_claims,
    admin_compliance,
    admin_labor_requests,
    admin_users,
    agencies,
    claims,
    dashboard,
    labor_requests,
)

api_router = APIRouter(prefix="/api")

api_router.include_router(agencies.router)
api_router.include_router(claims.router)
api_router.include_router(labor_requests.router)
api_router.include_router(dashboard.router)
api_router.include_router(admin_agencies.router)
api_router.include_router(admin_compliance.router)
api_router.include_router(admin_claims.router)
api_router.include_router(admin_labor_requests.router)
api_router.include_router(admin_users.router)
