"""
staffdir_shared.models — Pydantic models matching each database table.

These models are used by:
- packages/api: typed construction of insert payloads
- packages/jobs: typed reads of compliance rows for the reminder job

Most models provide:
  .from_db_row(row: dict) -> Model
  .to_insert_dict() -> dict
"""

from staffdir_shared.models.agencies import Agency
from staffdir_shared.models.claims import ClaimAuditEntry, ClaimRequest
from staffdir_shared.models.compliance import ComplianceItem
from staffdir_shared.models.labor_requests import LaborRequest, LaborRequestCraft
from staffdir_shared.models.profiles import Profile

__all__ = [
    "Agency",
    "ClaimRequest",
    "ClaimAuditEntry",
    "ComplianceItem",
    "LaborRequest",
    "LaborRequestCraft",
    "Profile",
]
