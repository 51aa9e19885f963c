"""Request-body parsing into pydantic schemas with enveloped errors."""

from __future__ import annotations

import json
from typing import Any, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from staffdir_api.errors import ApiError, field_errors

M = TypeVar("M", bound=BaseModel)


async def read_json(request: Request) -> Any:
    """Decode the request body as JSON; malformed bodies are INVALID_PARAMS."""
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ApiError.invalid_params("Invalid JSON in request body") from exc


def parse_model(
    model: type[M],
    payload: Any,
    *,
    code: str = "VALIDATION_ERROR",
    message: str = "Invalid request data",
) -> M:
    """Validate a decoded payload, raising a 400 with field-level details."""
    if not isinstance(payload, dict):
        raise ApiError(code, message, 400, {"_root": ["Expected a JSON object"]})
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ApiError(code, message, 400, field_errors(exc)) from exc


async def parse_body(
    request: Request,
    model: type[M],
    *,
    code: str = "VALIDATION_ERROR",
    message: str = "Invalid request data",
) -> M:
    return parse_model(model, await read_json(request), code=code, message=message)
