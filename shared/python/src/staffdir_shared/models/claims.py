"""
models/claims.py — Pydantic models for agency_claim_requests and
agency_claim_audit_log.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from staffdir_shared.constants import (
    ACTIVE_CLAIM_STATUSES,
    ClaimAuditAction,
    ClaimStatus,
    VerificationMethod,
)


class ClaimRequest(BaseModel):
    """Matches the agency_claim_requests table row."""

    id: UUID | None = None
    agency_id: UUID
    user_id: UUID
    business_email: str
    phone_number: str
    position_title: str
    verification_method: VerificationMethod
    additional_notes: str | None = None
    email_domain_verified: bool = False
    status: ClaimStatus = "pending"
    rejection_reason: str | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        """pending and under_review claims block a new request for the same agency."""
        return self.status in ACTIVE_CLAIM_STATUSES

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "ClaimRequest":
        return cls(**row)

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "agency_id": str(self.agency_id),
            "user_id": str(self.user_id),
            "business_email": self.business_email,
            "phone_number": self.phone_number,
            "position_title": self.position_title,
            "verification_method": self.verification_method,
            "additional_notes": self.additional_notes,
            "email_domain_verified": self.email_domain_verified,
            "status": self.status,
        }


class ClaimAuditEntry(BaseModel):
    """Matches the agency_claim_audit_log table row."""

    claim_id: UUID
    admin_id: UUID | None = None
    action: ClaimAuditAction
    notes: str | None = None

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "claim_id": str(self.claim_id),
            "admin_id": str(self.admin_id) if self.admin_id else None,
            "action": self.action,
            "notes": self.notes,
        }
