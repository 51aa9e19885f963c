"""
staffdir_shared — shared configuration, database access, models, and email
for the staffing directory.

Usage:
    from staffdir_shared.config import settings
    from staffdir_shared.db import get_supabase_client
    from staffdir_shared.models import Agency, ClaimRequest, ComplianceItem
    from staffdir_shared.constants import COMPLIANCE_TYPES, FREE_EMAIL_DOMAINS
    from staffdir_shared.mailer import send_email, templates
"""

__version__ = "0.1.0"
