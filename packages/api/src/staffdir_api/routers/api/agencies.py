"""Public directory endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from staffdir_api.responses import build_pagination, wrap_response
from staffdir_api.schemas.agencies import PublicAgenciesQuery
from staffdir_api.services import directory_service
from staffdir_api.utils.validation import parse_model

router = APIRouter(prefix="/agencies", tags=["agencies"])

_LIST_CACHE = {"Cache-Control": "public, max-age=300, must-revalidate"}
_COMPLIANCE_CACHE = {"Cache-Control": "public, s-maxage=300, stale-while-revalidate=60"}


@router.get("")
async def list_agencies(
    search: str | None = Query(None, description="Match against name or description"),
    trades: list[str] = Query([], description="Trade slugs"),
    states: list[str] = Query([], description="Two-letter state codes"),
    limit: str = Query("20"),
    offset: str = Query("0"),
) -> JSONResponse:
    params = parse_model(
        PublicAgenciesQuery,
        {"search": search, "trades": trades, "states": states, "limit": limit, "offset": offset},
        code="INVALID_PARAMS",
        message="Invalid query parameters",
    )
    data, total = directory_service.search_agencies(params)
    body = wrap_response(
        data,
        pagination=build_pagination(
            total, limit=params.limit, offset=params.offset, with_pages=False
        ),
    )
    return JSONResponse(content=body, headers=_LIST_CACHE)


@router.get("/{slug}")
async def get_agency(slug: str):
    return wrap_response(directory_service.get_agency_by_slug(slug))


@router.get("/{slug}/compliance")
async def get_agency_compliance(slug: str) -> JSONResponse:
    data = directory_service.public_compliance(slug)
    return JSONResponse(content=wrap_response(data), headers=_COMPLIANCE_CACHE)
