"""
errors.py — the API's exception type and the handlers that render every
failure as {"error": {"code", "message", "details?"}}.

Expected failures (auth, validation, missing rows, conflicts) raise ApiError
with the code and message the caller should see. Database and unexpected
failures are logged here and answered with a generic message.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from postgrest.exceptions import APIError as PostgrestAPIError
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from staffdir_shared.db import UNIQUE_VIOLATION

from staffdir_api.responses import error_response

logger = structlog.get_logger(__name__)

STATUS_CODES: dict[int, str] = {
    400: "INVALID_PARAMS",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "INVALID_PARAMS",
    409: "VALIDATION_ERROR",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMIT_EXCEEDED",
}


class ApiError(Exception):
    """An expected failure surfaced to the caller with a specific code."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details

    @classmethod
    def unauthorized(cls, message: str = "Authentication required") -> "ApiError":
        return cls("UNAUTHORIZED", message, 401)

    @classmethod
    def forbidden(cls, message: str = "Admin access required") -> "ApiError":
        return cls("FORBIDDEN", message, 403)

    @classmethod
    def not_found(cls, message: str = "Resource not found", code: str = "NOT_FOUND") -> "ApiError":
        return cls(code, message, 404)

    @classmethod
    def conflict(cls, message: str, details: dict[str, Any] | None = None) -> "ApiError":
        return cls("VALIDATION_ERROR", message, 409, details)

    @classmethod
    def invalid_params(cls, message: str, details: dict[str, Any] | None = None) -> "ApiError":
        return cls("INVALID_PARAMS", message, 400, details)

    @classmethod
    def validation(cls, message: str, details: dict[str, Any] | None = None) -> "ApiError":
        return cls("VALIDATION_ERROR", message, 400, details)

    @classmethod
    def database(cls, message: str = "A database error occurred") -> "ApiError":
        return cls("DATABASE_ERROR", message, 500)


def field_errors(exc: ValidationError | RequestValidationError) -> dict[str, list[str]]:
    """Flatten pydantic errors to {"field.path": [messages]}."""
    fields: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        key = ".".join(loc) or "_root"
        message = err.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        fields.setdefault(key, []).append(message)
    return fields


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("api_error", code=exc.code, message=exc.message, path=request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message, details=exc.details),
    )


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    code = STATUS_CODES.get(exc.status_code, "INTERNAL_ERROR")
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(code, message),
        headers=getattr(exc, "headers", None),
    )


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=error_response(
            "INVALID_PARAMS", "Invalid request parameters", details=field_errors(exc)
        ),
    )


async def _postgrest_error_handler(
    request: Request, exc: PostgrestAPIError
) -> JSONResponse:
    logger.error(
        "database_error",
        path=request.url.path,
        pg_code=exc.code,
        pg_message=exc.message,
        pg_details=exc.details,
    )
    if exc.code == UNIQUE_VIOLATION:
        return JSONResponse(
            status_code=409,
            content=error_response(
                "VALIDATION_ERROR", "A record with these values already exists"
            ),
        )
    return JSONResponse(
        status_code=500,
        content=error_response("DATABASE_ERROR", "A database error occurred"),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content=error_response("INTERNAL_ERROR", "An unexpected error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(PostgrestAPIError, _postgrest_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
