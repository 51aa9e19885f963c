"""
models/compliance.py — Pydantic model for the agency_compliance table.

One row per (agency_id, compliance_type). verified_by and verified_at are
always written together: both set when an admin verifies, both null otherwise.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, model_validator

from staffdir_shared.constants import COMPLIANCE_DISPLAY_NAMES, ComplianceType


class ComplianceItem(BaseModel):
    """Matches the agency_compliance table row."""

    id: UUID | None = None
    agency_id: UUID
    compliance_type: ComplianceType
    is_active: bool = False
    is_verified: bool = False
    verified_by: UUID | None = None
    verified_at: datetime | None = None
    document_url: str | None = None
    expiration_date: date | None = None
    notes: str | None = None
    last_30_day_reminder_sent: datetime | None = None
    last_7_day_reminder_sent: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def _verification_pair(self) -> "ComplianceItem":
        if (self.verified_by is None) != (self.verified_at is None):
            raise ValueError("verified_by and verified_at must be set together")
        return self

    @property
    def display_name(self) -> str:
        return COMPLIANCE_DISPLAY_NAMES.get(self.compliance_type, self.compliance_type)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "ComplianceItem":
        return cls(**row)
