"""Request schemas for the public labor-request form."""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from staffdir_shared.constants import MAX_CRAFTS_PER_REQUEST, ExperienceLevel
from staffdir_shared.time_utils import one_year_from, parse_iso_date, utc_today

_PHONE = re.compile(r"^\+?[\d\s\-().]+$")

Rate = Annotated[Decimal, Field(gt=0, le=1000)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CraftRequirement(_CamelModel):
    trade_id: UUID
    region_id: UUID
    experience_level: ExperienceLevel
    worker_count: int = Field(ge=1, le=500)
    start_date: date
    duration_days: int = Field(ge=1, le=365)
    hours_per_week: int = Field(ge=1, le=168)
    notes: Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)] | None = None
    pay_rate_min: Rate | None = None
    pay_rate_max: Rate | None = None
    per_diem_rate: Rate | None = None

    @field_validator("start_date", mode="before")
    @classmethod
    def _start_date_window(cls, v: Any) -> date:
        parsed = parse_iso_date(v) if isinstance(v, str) else None
        if parsed is None:
            raise ValueError("Start date must be a valid date in YYYY-MM-DD format")
        today = utc_today()
        if parsed < today:
            raise ValueError("Start date cannot be in the past")
        if parsed > one_year_from(today):
            raise ValueError("Start date cannot be more than one year in the future")
        return parsed

    @model_validator(mode="after")
    def _pay_band(self) -> "CraftRequirement":
        if (self.pay_rate_min is None) != (self.pay_rate_max is None):
            raise ValueError("Provide both minimum and maximum pay rate, or neither")
        if (
            self.pay_rate_min is not None
            and self.pay_rate_max is not None
            and self.pay_rate_min > self.pay_rate_max
        ):
            raise ValueError("Minimum pay rate cannot exceed maximum pay rate")
        return self


class LaborRequestCreate(_CamelModel):
    project_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=200)]
    company_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=200)]
    contact_email: EmailStr
    contact_phone: Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=20)]
    additional_details: Annotated[str, StringConstraints(strip_whitespace=True, max_length=2000)] | None = None
    crafts: list[CraftRequirement] = Field(min_length=1, max_length=MAX_CRAFTS_PER_REQUEST)

    @field_validator("contact_email", mode="before")
    @classmethod
    def _normalise_email(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            if not 5 <= len(v) <= 100:
                raise ValueError("Contact email must be between 5 and 100 characters")
        return v

    @field_validator("contact_phone")
    @classmethod
    def _phone_shape(cls, v: str) -> str:
        if not _PHONE.match(v) or sum(ch.isdigit() for ch in v) < 10:
            raise ValueError("Please enter a valid phone number")
        return v

    @field_validator("crafts")
    @classmethod
    def _unique_trade_region(cls, v: list[CraftRequirement]) -> list[CraftRequirement]:
        pairs = [(c.trade_id, c.region_id) for c in v]
        if len(pairs) != len(set(pairs)):
            raise ValueError("Each trade and region combination may only appear once")
        return v
