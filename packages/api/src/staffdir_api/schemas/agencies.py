"""Request schemas for agency create/update/status and listing queries."""

from __future__ import annotations

import re
from datetime import date
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    StrictBool,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from staffdir_shared.constants import CompanySize, EmployeeCount, MIN_FOUNDED_YEAR

AgencyName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=200)]

_E164 = re.compile(r"^\+?[1-9]\d{1,14}$")
_YEAR = re.compile(r"^\d{4}$")
_http_url = TypeAdapter(HttpUrl)

OPTIONAL_TEXT_FIELDS = (
    "description",
    "website",
    "phone",
    "email",
    "headquarters",
    "founded_year",
    "employee_count",
    "company_size",
)


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class _AgencyFields(BaseModel):
    model_config = ConfigDict(extra="ignore")

    description: str | None = Field(default=None, max_length=5000)
    website: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    headquarters: str | None = Field(default=None, max_length=200)
    founded_year: int | None = None
    employee_count: EmployeeCount | None = None
    company_size: CompanySize | None = None

    @field_validator(*OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def _empty_is_null(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("website")
    @classmethod
    def _website_is_http(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("Website must start with http:// or https://")
        try:
            _http_url.validate_python(v)
        except ValidationError:
            raise ValueError("Website must be a valid URL") from None
        return v

    @field_validator("phone")
    @classmethod
    def _phone_is_e164(cls, v: str | None) -> str | None:
        if v is not None and not _E164.match(v):
            raise ValueError("Phone must be a valid phone number (e.g. +15551234567)")
        return v

    @field_validator("founded_year", mode="before")
    @classmethod
    def _year_in_range(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        if v is None:
            return v
        if isinstance(v, bool) or not _YEAR.match(str(v)):
            raise ValueError("Founded year must be a 4-digit year")
        year = int(v)
        if not MIN_FOUNDED_YEAR <= year <= date.today().year:
            raise ValueError(
                f"Founded year must be between {MIN_FOUNDED_YEAR} and {date.today().year}"
            )
        return year


class AgencyCreate(_AgencyFields):
    name: AgencyName
    offers_per_diem: StrictBool = False
    is_union: StrictBool = False


class AgencyUpdate(_AgencyFields):
    """Partial update. Fields left out are untouched; empty strings clear a field."""

    name: AgencyName | None = None
    offers_per_diem: StrictBool | None = None
    is_union: StrictBool | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _name_required_when_present(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("Agency name cannot be empty")
        return v

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, mode="json")


class AgencyStatusUpdate(BaseModel):
    active: StrictBool


class PublicAgenciesQuery(BaseModel):
    search: Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)] | None = None
    trades: list[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]] = Field(
        default_factory=list, max_length=10
    )
    states: list[Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=2)]] = Field(
        default_factory=list, max_length=10
    )
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)

    @field_validator("search", mode="before")
    @classmethod
    def _empty_search(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("states")
    @classmethod
    def _upper_states(cls, v: list[str]) -> list[str]:
        return [s.upper() for s in v]
