"""
staffdir_jobs — scheduled jobs for the staffing directory.

Architecture:
  compliance_reminders  — daily 30/7-day compliance expiration emails
  utils/                — exponential-backoff retry decorator

Quick start:
    from staffdir_jobs.compliance_reminders import run
    import asyncio
    summary = asyncio.run(run(dry_run=True))

CLI:
    staffdir-jobs compliance-reminders --dry-run

Shared code from staffdir_shared:
    from staffdir_shared.config import settings
    from staffdir_shared.db import get_supabase_client
    from staffdir_shared.mailer import send_email, templates
"""

__version__ = "0.1.0"
