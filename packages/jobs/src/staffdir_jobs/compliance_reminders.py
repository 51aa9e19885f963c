"""
compliance_reminders.py — Daily compliance expiration reminder job.

Orchestrates:
  1. Fetch active agency_compliance rows that carry an expiration date
  2. Select rows 28-30 days out (30-day reminder) and 5-7 days out (7-day reminder),
     skipping rows whose matching last_*_reminder_sent stamp is under 24 h old
  3. Group the rows by claimed agency and resolve each owner's profile
  4. Per agency: stamp the tracking column, send one email, and restore the
     previous stamps if the send fails
  5. Return a summary {sent_30_day, sent_7_day, agencies_notified, errors}

Rate-limited sends (HTTP 429) are retried with exponential backoff. Other send
failures are recorded in the summary and the run moves on to the next agency.

Usage:
    from staffdir_jobs.compliance_reminders import run
    summary = await run(dry_run=True)
    print(summary.as_dict())
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

import httpx
from email_validator import EmailNotValidError, validate_email
from postgrest.exceptions import APIError as PostgrestAPIError

from staffdir_shared.config import settings
from staffdir_shared.constants import (
    REMINDER_COOLDOWN_HOURS,
    REMINDER_WINDOW_7_DAY,
    REMINDER_WINDOW_30_DAY,
)
from staffdir_shared.db import get_supabase_client
from staffdir_shared.email_templates import EmailMessage, ExpiringItem
from staffdir_shared.logging import get_logger
from staffdir_shared.mailer import EmailRateLimited, EmailSendError, send_email, templates
from staffdir_shared.models import ComplianceItem
from staffdir_shared.time_utils import days_until, hours_since, utc_now

from staffdir_jobs.utils.retry import with_retry

log = get_logger(__name__, job="compliance_reminders")

COMPLIANCE_COLUMNS = (
    "id, agency_id, compliance_type, is_active, expiration_date, "
    "last_30_day_reminder_sent, last_7_day_reminder_sent"
)

# Pause between agencies to stay under the provider's request rate
AGENCY_SEND_DELAY_SECONDS = 0.1

# 429 handling: first attempt plus 3 retries, 1 s doubling to 30 s
SEND_MAX_ATTEMPTS = 4
RETRY_BASE_DELAY_SECONDS = 1.0
RETRY_MAX_DELAY_SECONDS = 30.0


@dataclass(frozen=True)
class ReminderWindow:
    days: int
    low: int
    high: int

    @property
    def column(self) -> str:
        return f"last_{self.days}_day_reminder_sent"

    def contains(self, remaining: int) -> bool:
        return self.low <= remaining <= self.high


WINDOW_30_DAY = ReminderWindow(30, *REMINDER_WINDOW_30_DAY)
WINDOW_7_DAY = ReminderWindow(7, *REMINDER_WINDOW_7_DAY)
WINDOWS: tuple[ReminderWindow, ...] = (WINDOW_30_DAY, WINDOW_7_DAY)


@dataclass
class AgencyReminder:
    agency_id: str
    agency_name: str
    owner_id: str
    owner_email: str
    items: list[ComplianceItem] = field(default_factory=list)


@dataclass
class ReminderSummary:
    sent_30_day: int = 0
    sent_7_day: int = 0
    notified: set[str] = field(default_factory=set)
    errors: list[str] = field(default_factory=list)
    dry_run: bool = False

    def record_sent(self, window: ReminderWindow, reminder: AgencyReminder) -> None:
        if window.days == 30:
            self.sent_30_day += len(reminder.items)
        else:
            self.sent_7_day += len(reminder.items)
        self.notified.add(reminder.agency_id)

    def as_dict(self) -> dict[str, Any]:
        return {
            "sent_30_day": self.sent_30_day,
            "sent_7_day": self.sent_7_day,
            "agencies_notified": len(self.notified),
            "errors": list(self.errors),
        }


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def select_due_items(
    items: list[ComplianceItem],
    window: ReminderWindow,
    *,
    now: datetime,
) -> list[ComplianceItem]:
    """Rows whose expiration falls inside the window and were not reminded in the last day."""
    today = now.date()
    due: list[ComplianceItem] = []
    for item in items:
        if item.expiration_date is None:
            continue
        if not window.contains(days_until(item.expiration_date, today=today)):
            continue
        elapsed = hours_since(getattr(item, window.column), now=now)
        if elapsed is not None and elapsed < REMINDER_COOLDOWN_HOURS:
            continue
        due.append(item)
    return due


def _fetch_expiring_items(supabase: Any) -> list[ComplianceItem]:
    result = (
        supabase.table("agency_compliance")
        .select(COMPLIANCE_COLUMNS)
        .eq("is_active", True)
        .not_.is_("expiration_date", "null")
        .execute()
    )
    return [ComplianceItem.from_db_row(row) for row in result.data or []]


def _valid_email(raw: Any) -> str | None:
    if not isinstance(raw, str):
        return None
    try:
        return validate_email(raw, check_deliverability=False).normalized
    except EmailNotValidError:
        return None


def group_by_agency(
    supabase: Any, items: list[ComplianceItem]
) -> dict[str, AgencyReminder]:
    """
    Group due rows by their claimed agency, resolving owners in two bulk queries.

    Rows are dropped when the agency is unclaimed or its owner has no profile
    with a valid email.
    """
    if not items:
        return {}

    agency_ids = sorted({str(item.agency_id) for item in items})
    agencies = (
        supabase.table("agencies")
        .select("id, name, slug, claimed_by")
        .in_("id", agency_ids)
        .not_.is_("claimed_by", "null")
        .execute()
    ).data or []
    agency_map = {a["id"]: a for a in agencies if a.get("claimed_by")}
    if not agency_map:
        return {}

    owner_ids = sorted({a["claimed_by"] for a in agency_map.values()})
    profiles = (
        supabase.table("profiles")
        .select("id, email, full_name")
        .in_("id", owner_ids)
        .execute()
    ).data or []
    profile_map = {p["id"]: p for p in profiles}

    grouped: dict[str, AgencyReminder] = {}
    for item in items:
        agency = agency_map.get(str(item.agency_id))
        if agency is None:
            continue
        profile = profile_map.get(agency["claimed_by"])
        if profile is None:
            continue
        email = _valid_email(profile.get("email"))
        if email is None:
            log.warning("owner_email_invalid", agency_id=agency["id"], owner_id=profile["id"])
            continue
        reminder = grouped.setdefault(
            agency["id"],
            AgencyReminder(
                agency_id=agency["id"],
                agency_name=agency["name"],
                owner_id=profile["id"],
                owner_email=email,
            ),
        )
        reminder.items.append(item)
    return grouped


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------

def _render(reminder: AgencyReminder, window: ReminderWindow, today: date) -> EmailMessage:
    expiring = []
    for item in reminder.items:
        expiring.append(
            ExpiringItem(
                display_name=item.display_name,
                expiration_date=item.expiration_date,
                days_remaining=days_until(item.expiration_date, today=today),
            )
        )
    return templates.compliance_expiring(
        agency_name=reminder.agency_name, items=expiring, window_days=window.days
    )


def _restore_stamps(
    supabase: Any, window: ReminderWindow, originals: dict[str, datetime | None]
) -> None:
    for item_id, previous in originals.items():
        value = previous.isoformat() if previous else None
        try:
            (
                supabase.table("agency_compliance")
                .update({window.column: value})
                .eq("id", item_id)
                .execute()
            )
        except PostgrestAPIError as exc:
            log.error(
                "reminder_stamp_restore_failed",
                item_id=item_id,
                column=window.column,
                error=exc.message,
            )


async def send_agency_reminder(
    supabase: Any,
    reminder: AgencyReminder,
    window: ReminderWindow,
    *,
    now: datetime,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """
    Stamp, then send one reminder email for an agency.

    The stamp is written first so an overlapping run cannot send the same
    reminder twice; a failed send puts every row's previous stamp back.
    Returns True when the provider accepted the email.
    """
    item_ids = [str(item.id) for item in reminder.items]
    originals = {
        str(item.id): getattr(item, window.column) for item in reminder.items
    }

    try:
        (
            supabase.table("agency_compliance")
            .update({window.column: now.isoformat()})
            .in_("id", item_ids)
            .execute()
        )
    except PostgrestAPIError as exc:
        log.error(
            "reminder_stamp_failed",
            agency_id=reminder.agency_id,
            column=window.column,
            error=exc.message,
        )
        return False

    message = _render(reminder, window, now.date())
    idempotency_key = (
        f"{reminder.agency_id}-{reminder.owner_id}-{window.days}day-{now.date().isoformat()}"
    )
    send = with_retry(
        max_attempts=SEND_MAX_ATTEMPTS,
        base_delay=RETRY_BASE_DELAY_SECONDS,
        max_delay=RETRY_MAX_DELAY_SECONDS,
        retry_on=EmailRateLimited,
    )(send_email)

    try:
        sent = await send(
            to=reminder.owner_email,
            message=message,
            idempotency_key=idempotency_key,
            client=client,
        )
    except EmailSendError as exc:
        log.error(
            "reminder_send_failed",
            agency_id=reminder.agency_id,
            window=window.days,
            status_code=exc.status_code,
            error=str(exc),
        )
        sent = False

    if not sent:
        _restore_stamps(supabase, window, originals)
        return False

    log.info(
        "reminder_sent",
        agency_id=reminder.agency_id,
        window=window.days,
        items=len(reminder.items),
    )
    return True


async def _process_window(
    supabase: Any,
    grouped: dict[str, AgencyReminder],
    window: ReminderWindow,
    summary: ReminderSummary,
    *,
    now: datetime,
    client: httpx.AsyncClient | None,
) -> None:
    reminders = list(grouped.values())
    for index, reminder in enumerate(reminders):
        if summary.dry_run:
            log.info(
                "dry_run_reminder",
                agency_id=reminder.agency_id,
                window=window.days,
                items=[item.compliance_type for item in reminder.items],
            )
            summary.record_sent(window, reminder)
            continue

        if await send_agency_reminder(supabase, reminder, window, now=now, client=client):
            summary.record_sent(window, reminder)
        else:
            summary.errors.append(
                f"Failed to send {window.days}-day reminder for agency {reminder.agency_id}"
            )

        if index < len(reminders) - 1:
            await asyncio.sleep(AGENCY_SEND_DELAY_SECONDS)


async def run(*, dry_run: bool = False, now: datetime | None = None) -> ReminderSummary:
    """
    Run the reminder job once.

    Args:
        dry_run: If True, select and group reminders but neither stamp rows
                 nor send email. The summary counts what would be sent.
        now:     Override the current time (UTC).

    Raises:
        RuntimeError:      RESEND_API_KEY is not set for a live run.
        PostgrestAPIError: the compliance, agency or profile lookups failed.
    """
    if not dry_run and not settings.resend_api_key:
        raise RuntimeError("RESEND_API_KEY is not set. Set it in .env before sending reminders.")

    now = now or utc_now()
    summary = ReminderSummary(dry_run=dry_run)
    supabase = get_supabase_client(service_role=True)

    items = _fetch_expiring_items(supabase)
    due = {window.days: select_due_items(items, window, now=now) for window in WINDOWS}
    log.info(
        "reminders_selected",
        active_items=len(items),
        due_30_day=len(due[30]),
        due_7_day=len(due[7]),
        dry_run=dry_run,
    )

    async with httpx.AsyncClient(timeout=15.0) as client:
        for window in WINDOWS:
            grouped = group_by_agency(supabase, due[window.days])
            await _process_window(supabase, grouped, window, summary, now=now, client=client)

    log.info("reminders_complete", **summary.as_dict(), dry_run=dry_run)
    return summary
