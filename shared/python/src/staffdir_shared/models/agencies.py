"""
models/agencies.py — Pydantic model for the agencies table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class Agency(BaseModel):
    """Matches the agencies table row."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    slug: str
    description: str | None = None
    website: str | None = None
    phone: str | None = None
    email: str | None = None
    headquarters: str | None = None
    founded_year: int | None = None
    employee_count: str | None = None
    company_size: str | None = None
    offers_per_diem: bool = False
    is_union: bool = False
    logo_url: str | None = None
    is_active: bool = True
    is_claimed: bool = False
    claimed_by: UUID | None = None
    claimed_at: datetime | None = None
    profile_completion_percentage: int = 0
    last_edited_by: UUID | None = None
    last_edited_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Agency":
        return cls(**row)

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "website": self.website,
            "phone": self.phone,
            "email": self.email,
            "headquarters": self.headquarters,
            "founded_year": self.founded_year,
            "employee_count": self.employee_count,
            "company_size": self.company_size,
            "offers_per_diem": self.offers_per_diem,
            "is_union": self.is_union,
            "is_active": self.is_active,
            "is_claimed": self.is_claimed,
            "profile_completion_percentage": self.profile_completion_percentage,
        }
