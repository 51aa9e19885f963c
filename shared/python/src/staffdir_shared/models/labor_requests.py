"""
models/labor_requests.py — Pydantic models for labor_requests,
labor_request_crafts and labor_request_notifications.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from staffdir_shared.constants import LaborRequestStatus


class LaborRequest(BaseModel):
    """Matches the labor_requests table row."""

    id: UUID | None = None
    project_name: str
    company_name: str
    contact_email: str
    contact_phone: str
    additional_details: str | None = None
    status: LaborRequestStatus = "pending"
    confirmation_token: str | None = None
    confirmation_token_expires: datetime | None = None
    created_at: datetime | None = None

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "project_name": self.project_name,
            "company_name": self.company_name,
            "contact_email": self.contact_email,
            "contact_phone": self.contact_phone,
            "additional_details": self.additional_details,
            "status": self.status,
            "confirmation_token": self.confirmation_token,
            "confirmation_token_expires": (
                self.confirmation_token_expires.isoformat()
                if self.confirmation_token_expires
                else None
            ),
        }


class LaborRequestCraft(BaseModel):
    """Matches the labor_request_crafts table row."""

    id: UUID | None = None
    labor_request_id: UUID
    trade_id: UUID
    region_id: UUID
    experience_level: str
    worker_count: int
    start_date: date
    duration_days: int
    hours_per_week: int
    notes: str | None = None
    pay_rate_min: Decimal | None = None
    pay_rate_max: Decimal | None = None
    per_diem_rate: Decimal | None = None

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "labor_request_id": str(self.labor_request_id),
            "trade_id": str(self.trade_id),
            "region_id": str(self.region_id),
            "experience_level": self.experience_level,
            "worker_count": self.worker_count,
            "start_date": self.start_date.isoformat(),
            "duration_days": self.duration_days,
            "hours_per_week": self.hours_per_week,
            "notes": self.notes,
            "pay_rate_min": float(self.pay_rate_min) if self.pay_rate_min is not None else None,
            "pay_rate_max": float(self.pay_rate_max) if self.pay_rate_max is not None else None,
            "per_diem_rate": float(self.per_diem_rate) if self.per_diem_rate is not None else None,
        }
