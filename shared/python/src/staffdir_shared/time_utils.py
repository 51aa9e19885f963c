"""
time_utils.py — Date parsing and day-count utilities.

Expiration dates are stored as plain calendar dates (YYYY-MM-DD) and every
day count is computed against the current UTC date, so the API and the
reminder job agree regardless of the host timezone.

Usage:
    from staffdir_shared.time_utils import parse_iso_date, days_until, utc_today

    parse_iso_date("2026-02-28")      # date(2026, 2, 28)
    parse_iso_date("2026-02-30")      # None (not a real calendar date)
    days_until(date(2026, 3, 1), today=date(2026, 2, 28))   # 1
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone

from dateutil.relativedelta import relativedelta

_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string (the format written to timestamptz columns)."""
    return utc_now().isoformat()


def utc_today() -> date:
    return utc_now().date()


def parse_iso_date(raw: str | None) -> date | None:
    """
    Parse a strict YYYY-MM-DD string into a date.

    Returns None when the string has the wrong shape or does not name a real
    calendar day. Rolled-over dates such as "2026-02-30" are rejected: the
    components must survive construction unchanged.
    """
    if not isinstance(raw, str) or not _ISO_DATE_RE.fullmatch(raw):
        return None
    year, month, day = (int(part) for part in raw.split("-"))
    try:
        parsed = date(year, month, day)
    except ValueError:
        return None
    if (parsed.year, parsed.month, parsed.day) != (year, month, day):
        return None
    return parsed


def is_valid_iso_date(raw: str | None) -> bool:
    return parse_iso_date(raw) is not None


def days_until(target: date, *, today: date | None = None) -> int:
    """Whole calendar days from today (UTC) to target; negative once past."""
    return (target - (today or utc_today())).days


def one_year_from(d: date) -> date:
    return d + relativedelta(years=1)


def hours_since(stamp: datetime | None, *, now: datetime | None = None) -> float | None:
    """Hours elapsed since a stored timestamp, or None if it is unset. Naive values are UTC."""
    if stamp is None:
        return None
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return ((now or utc_now()) - stamp).total_seconds() / 3600
