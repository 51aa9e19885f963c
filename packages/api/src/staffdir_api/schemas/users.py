"""Request schemas for admin user maintenance."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, StringConstraints

# Shape check only; orphaned rows may hold addresses EmailStr refuses.
LooseEmail = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=320, pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),
]


class UserCleanup(BaseModel):
    email: LooseEmail
