"""Offset pagination helpers."""

from __future__ import annotations

from typing import Any

from fastapi import Query


def apply_range(query: Any, offset: int, limit: int) -> Any:
    """Apply an inclusive PostgREST range for one page."""
    return query.range(offset, offset + limit - 1)


class PageParams:
    """Dependency for page/limit query params (1-based pages)."""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number, starting at 1"),
        limit: int = Query(20, ge=1, le=100, description="Number of results per page"),
    ) -> None:
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
