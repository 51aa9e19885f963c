"""
models/profiles.py — Pydantic model for the profiles table.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel

from staffdir_shared.constants import ROLE_ADMIN, Role


class Profile(BaseModel):
    """Matches the profiles table row. id equals the auth user id."""

    id: UUID
    role: Role = "user"
    email: str | None = None
    full_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Profile":
        return cls(**row)
