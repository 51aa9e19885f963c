"""Request schemas for agency claims."""

from __future__ import annotations

import re
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, StringConstraints, field_validator

from staffdir_shared.constants import CLAIM_REJECTION_MIN_LENGTH, VerificationMethod

_PHONE = re.compile(r"^\+?[\d\s\-().]+$")


class ClaimRequestCreate(BaseModel):
    agency_id: UUID
    business_email: EmailStr
    phone_number: Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=20)]
    position_title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
    verification_method: VerificationMethod
    additional_notes: Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)] | None = None

    @field_validator("business_email", mode="before")
    @classmethod
    def _normalise_email(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            if not 5 <= len(v) <= 255:
                raise ValueError("Business email must be between 5 and 255 characters")
        return v

    @field_validator("phone_number")
    @classmethod
    def _phone_shape(cls, v: str) -> str:
        if not _PHONE.match(v) or sum(ch.isdigit() for ch in v) < 10:
            raise ValueError("Please enter a valid phone number")
        return v

    @field_validator("additional_notes")
    @classmethod
    def _empty_notes(cls, v: str | None) -> str | None:
        return v or None


class ClaimRejection(BaseModel):
    rejection_reason: Annotated[
        str,
        StringConstraints(
            strip_whitespace=True, min_length=CLAIM_REJECTION_MIN_LENGTH, max_length=2000
        ),
    ]
