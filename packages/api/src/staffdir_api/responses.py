"""Standardized API response wrappers."""

from __future__ import annotations

import math
from typing import Any


def build_pagination(
    total: int | None,
    *,
    limit: int,
    offset: int,
    with_pages: bool = True,
) -> dict[str, Any]:
    """Offset pagination block. page is 1-based; totalPages is 0 for an empty result."""
    total = total or 0
    block: dict[str, Any] = {
        "total": total,
        "limit": limit,
        "offset": offset,
        "hasMore": offset + limit < total,
    }
    if with_pages:
        block["page"] = offset // limit + 1
        block["totalPages"] = math.ceil(total / limit) if limit else 0
    return block


def wrap_response(
    data: Any,
    *,
    message: str | None = None,
    pagination: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a standardized success response dict."""
    body: dict[str, Any] = {"data": data}
    if message is not None:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination
    return body


def error_response(
    code: str,
    message: str,
    *,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a standardized error response dict."""
    err: dict[str, Any] = {"code": code, "message": message}
    if details:
        err["details"] = details
    return {"error": err}
