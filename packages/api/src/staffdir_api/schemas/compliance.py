"""
Request schemas for compliance updates and admin verification.

Payloads use camelCase on the wire (isActive, expirationDate, ...); the
models expose snake_case attributes through an alias generator.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

from staffdir_shared.constants import COMPLIANCE_REJECTION_MIN_LENGTH, ComplianceType
from staffdir_shared.time_utils import is_valid_iso_date


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class OwnerComplianceUpdateItem(_CamelModel):
    """An owner may toggle activity and set an expiration date, nothing else."""

    type: ComplianceType
    is_active: StrictBool
    expiration_date: str | None = None

    @field_validator("expiration_date", mode="before")
    @classmethod
    def _real_calendar_date(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        if not isinstance(v, str) or not is_valid_iso_date(v):
            raise ValueError("Expiration date must be a valid date in YYYY-MM-DD format")
        return v


class ComplianceUpdateItem(OwnerComplianceUpdateItem):
    is_verified: StrictBool | None = None
    notes: str | None = Field(default=None, max_length=2000)
    document_url: str | None = None


def _unique_types(items: list[Any]) -> list[Any]:
    seen: set[str] = set()
    for item in items:
        if item.type in seen:
            raise ValueError(f"Duplicate compliance type in request: {item.type}")
        seen.add(item.type)
    return items


class ComplianceUpdateRequest(BaseModel):
    items: list[ComplianceUpdateItem] = Field(min_length=1)

    @field_validator("items")
    @classmethod
    def _one_item_per_type(cls, v: list[ComplianceUpdateItem]) -> list[ComplianceUpdateItem]:
        return _unique_types(v)


class OwnerComplianceUpdateRequest(BaseModel):
    items: list[OwnerComplianceUpdateItem] = Field(min_length=1)

    @field_validator("items")
    @classmethod
    def _one_item_per_type(
        cls, v: list[OwnerComplianceUpdateItem]
    ) -> list[OwnerComplianceUpdateItem]:
        return _unique_types(v)


class ComplianceVerifyAction(_CamelModel):
    compliance_type: ComplianceType
    action: Literal["verify", "reject"]
    reason: str | None = Field(default=None, validate_default=True)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("reason", "notes", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        if v is None:
            return v
        if not isinstance(v, str):
            raise ValueError("Must be a string")
        return v.strip() or None

    @field_validator("reason")
    @classmethod
    def _reason_for_reject(cls, v: str | None, info: ValidationInfo) -> str | None:
        if info.data.get("action") == "reject" and len(v or "") < COMPLIANCE_REJECTION_MIN_LENGTH:
            raise ValueError(
                f"A rejection reason of at least {COMPLIANCE_REJECTION_MIN_LENGTH} "
                "characters is required"
            )
        return v
