"""
constants.py — shared constants used across the API and scheduled jobs.

Compliance types, claim statuses, profile roles and the enumerations used
by the agency and labor-request forms are defined here so they stay in
sync between Python packages.
"""

from __future__ import annotations

from typing import Final, Literal, get_args

# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------
Role = Literal["admin", "agency_owner", "user"]

ROLE_ADMIN: Final = "admin"
ROLE_AGENCY_OWNER: Final = "agency_owner"
ROLE_USER: Final = "user"

# ---------------------------------------------------------------------------
# Error codes surfaced in {"error": {"code": ...}}
# ---------------------------------------------------------------------------
ErrorCode = Literal[
    "INVALID_PARAMS",
    "VALIDATION_ERROR",
    "UNAUTHORIZED",
    "FORBIDDEN",
    "NOT_FOUND",
    "AGENCY_NOT_FOUND",
    "AGENCY_ALREADY_CLAIMED",
    "PENDING_CLAIM_EXISTS",
    "DATABASE_ERROR",
    "INTERNAL_ERROR",
    "RATE_LIMIT_EXCEEDED",
    "BURST_LIMIT_EXCEEDED",
]

# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------
ClaimStatus = Literal["pending", "under_review", "approved", "rejected"]
VerificationMethod = Literal["email", "phone", "manual"]
ClaimAuditAction = Literal["submitted", "approved", "rejected"]

CLAIM_STATUSES: Final[tuple[str, ...]] = get_args(ClaimStatus)
ACTIVE_CLAIM_STATUSES: Final[tuple[str, ...]] = ("pending", "under_review")
TERMINAL_CLAIM_STATUSES: Final[tuple[str, ...]] = ("approved", "rejected")

CLAIM_REJECTION_MIN_LENGTH: Final[int] = 20

# ---------------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------------
ComplianceType = Literal[
    "osha_certified",
    "drug_testing",
    "background_checks",
    "workers_comp",
    "general_liability",
    "bonding",
]

COMPLIANCE_TYPES: Final[tuple[str, ...]] = get_args(ComplianceType)

COMPLIANCE_DISPLAY_NAMES: Final[dict[str, str]] = {
    "osha_certified": "OSHA Certified",
    "drug_testing": "Drug Testing Policy",
    "background_checks": "Background Checks",
    "workers_comp": "Workers' Compensation",
    "general_liability": "General Liability Insurance",
    "bonding": "Bonding",
}

ComplianceStatus = Literal["expired", "expiring_soon", "pending_verification", "ok"]

EXPIRING_SOON_DAYS: Final[int] = 30
COMPLIANCE_REJECTION_MIN_LENGTH: Final[int] = 10

# Reminder windows in whole days until expiration: (low, high) inclusive
REMINDER_WINDOW_30_DAY: Final[tuple[int, int]] = (28, 30)
REMINDER_WINDOW_7_DAY: Final[tuple[int, int]] = (5, 7)
REMINDER_COOLDOWN_HOURS: Final[int] = 24

# MIME type -> file extension
COMPLIANCE_DOCUMENT_TYPES: Final[dict[str, str]] = {
    "application/pdf": "pdf",
    "image/png": "png",
    "image/jpeg": "jpg",
}

# ---------------------------------------------------------------------------
# Agencies
# ---------------------------------------------------------------------------
EmployeeCount = Literal["1-10", "11-50", "51-100", "101-200", "201-500", "501-1000", "1001+"]
CompanySize = Literal["Small", "Medium", "Large", "Enterprise"]

EMPLOYEE_COUNT_RANGES: Final[tuple[str, ...]] = get_args(EmployeeCount)

COMPANY_SIZES: Final[tuple[str, ...]] = get_args(CompanySize)

MIN_FOUNDED_YEAR: Final[int] = 1800

# ---------------------------------------------------------------------------
# Labor requests
# ---------------------------------------------------------------------------
ExperienceLevel = Literal[
    "Helper",
    "Apprentice",
    "Journeyman",
    "Foreman",
    "General Foreman",
    "Superintendent",
    "Project Manager",
]

EXPERIENCE_LEVELS: Final[tuple[str, ...]] = get_args(ExperienceLevel)

LaborRequestStatus = Literal["pending", "active", "fulfilled", "cancelled"]
LABOR_REQUEST_STATUSES: Final[tuple[str, ...]] = get_args(LaborRequestStatus)

MAX_CRAFTS_PER_REQUEST: Final[int] = 10
CONFIRMATION_TOKEN_TTL_HOURS: Final[int] = 24

# ---------------------------------------------------------------------------
# Email domains treated as personal (never proof of agency affiliation)
# ---------------------------------------------------------------------------
FREE_EMAIL_DOMAINS: Final[frozenset[str]] = frozenset({
    "gmail.com",
    "yahoo.com",
    "hotmail.com",
    "outlook.com",
    "aol.com",
    "icloud.com",
    "protonmail.com",
    "mail.com",
    "zoho.com",
    "yandex.com",
    "gmx.com",
    "live.com",
    "msn.com",
})
