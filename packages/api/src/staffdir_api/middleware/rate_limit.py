"""Role-based rate limiting middleware."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from fastapi import Request, Response
from jose import JWTError, jwt as jose_jwt
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from staffdir_shared.config import settings

from staffdir_api.responses import error_response

PERIOD_SECONDS = 60

# Requests per second on top of the per-minute budget
BURST_LIMITS: dict[str, int] = {
    "anonymous": 5,
    "user": 10,
    "agency_owner": 20,
    "admin": 50,
}

EXEMPT_PATHS = ("/health", "/ready")


def role_limits() -> dict[str, int]:
    return {
        "anonymous": settings.rate_limit_anonymous,
        "user": settings.rate_limit_user,
        "agency_owner": settings.rate_limit_agency_owner,
        "admin": settings.rate_limit_admin,
    }


@dataclass
class RateBucket:
    count: int = 0
    period_start: float = 0.0
    burst_count: int = 0
    burst_second: float = 0.0


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app):
        super().__init__(app)
        self._buckets: dict[str, RateBucket] = {}
        self._lock = threading.Lock()

    def _get_key(self, request: Request, role: str) -> str:
        client = request.client
        ip = client.host if client else "unknown"
        return f"{role}:{ip}"

    def _get_role(self, request: Request) -> str:
        """Role claimed by the bearer token; the profile lookup happens later."""
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return "anonymous"
        try:
            claims = jose_jwt.decode(
                auth_header[7:],
                settings.jwt_secret,
                algorithms=["HS256"],
                audience="authenticated",
            )
        except JWTError:
            return "anonymous"
        role = (claims.get("app_metadata") or {}).get("role") or claims.get("user_role")
        return role if role in BURST_LIMITS else "user"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        role = self._get_role(request)
        key = self._get_key(request, role)
        max_requests = role_limits()[role]
        burst_limit = BURST_LIMITS[role]

        now = time.monotonic()

        with self._lock:
            bucket = self._buckets.setdefault(key, RateBucket(period_start=now, burst_second=now))

            if now - bucket.period_start >= PERIOD_SECONDS:
                bucket.count = 0
                bucket.period_start = now

            if now - bucket.burst_second >= 1.0:
                bucket.burst_count = 0
                bucket.burst_second = now

            if bucket.count >= max_requests:
                reset_at = bucket.period_start + PERIOD_SECONDS
                retry_after = max(1, int(reset_at - now))
                return JSONResponse(
                    status_code=429,
                    content=error_response(
                        "RATE_LIMIT_EXCEEDED",
                        f"Rate limit exceeded. Limit: {max_requests} requests per minute.",
                    ),
                    headers={
                        "Retry-After": str(retry_after),
                        "X-RateLimit-Limit": str(max_requests),
                        "X-RateLimit-Remaining": "0",
                    },
                )

            if bucket.burst_count >= burst_limit:
                return JSONResponse(
                    status_code=429,
                    content=error_response(
                        "BURST_LIMIT_EXCEEDED",
                        f"Burst limit exceeded. Max {burst_limit} requests/second.",
                    ),
                    headers={"Retry-After": "1"},
                )

            bucket.count += 1
            bucket.burst_count += 1
            remaining = max_requests - bucket.count

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
