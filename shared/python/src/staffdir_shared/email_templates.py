"""Plain-text and HTML bodies for transactional email."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from html import escape

from staffdir_shared.config import settings


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    html: str
    text: str


@dataclass(frozen=True)
class ExpiringItem:
    display_name: str
    expiration_date: date
    days_remaining: int


def _html(paragraphs: list[str]) -> str:
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    return f'<div style="font-family: sans-serif; line-height: 1.5">{body}</div>'


def claim_submitted(*, agency_name: str, full_name: str | None = None) -> EmailMessage:
    greeting = f"Hi {full_name}," if full_name else "Hi,"
    lines = [
        greeting,
        f"We received your request to claim the {agency_name} listing.",
        "Our team reviews claims within two business days. "
        "You can follow its status from your account.",
    ]
    return EmailMessage(
        subject=f"We received your claim for {agency_name}",
        text="\n\n".join(lines),
        html=_html([escape(line) for line in lines]),
    )


def claim_approved(*, agency_name: str, full_name: str | None = None) -> EmailMessage:
    dashboard_url = f"{settings.site_url}/dashboard"
    greeting = f"Hi {full_name}," if full_name else "Hi,"
    lines = [
        greeting,
        f"Your claim for {agency_name} has been approved.",
        "You can now manage the listing and its compliance documents from your dashboard:",
    ]
    return EmailMessage(
        subject=f"Your claim for {agency_name} was approved",
        text="\n\n".join([*lines, dashboard_url]),
        html=_html(
            [escape(line) for line in lines]
            + [f'<a href="{escape(dashboard_url)}">{escape(dashboard_url)}</a>']
        ),
    )


def claim_rejected(
    *, agency_name: str, reason: str, full_name: str | None = None
) -> EmailMessage:
    greeting = f"Hi {full_name}," if full_name else "Hi,"
    lines = [
        greeting,
        f"We could not approve your claim for {agency_name}.",
        f"Reason: {reason}",
        "You are welcome to submit a new claim with updated details.",
    ]
    return EmailMessage(
        subject=f"Update on your claim for {agency_name}",
        text="\n\n".join(lines),
        html=_html([escape(line) for line in lines]),
    )


def compliance_rejected(
    *, agency_name: str, compliance_name: str, reason: str
) -> EmailMessage:
    lines = [
        f"The {compliance_name} document uploaded for {agency_name} was rejected.",
        f"Reason: {reason}",
        "Please upload a corrected document from your dashboard.",
    ]
    return EmailMessage(
        subject=f"{compliance_name} document rejected for {agency_name}",
        text="\n\n".join([*lines, f"{settings.site_url}/dashboard/compliance"]),
        html=_html([escape(line) for line in lines]),
    )


def compliance_expiring(
    *, agency_name: str, items: list[ExpiringItem], window_days: int
) -> EmailMessage:
    rows = [
        f"{item.display_name}: expires {item.expiration_date.isoformat()} "
        f"({item.days_remaining} days)"
        for item in items
    ]
    intro = (
        f"The following compliance documents for {agency_name} expire "
        f"within {window_days} days:"
    )
    outro = "Upload renewed documents to keep your listing's compliance badges."
    html_list = "<ul>" + "".join(f"<li>{escape(r)}</li>" for r in rows) + "</ul>"
    return EmailMessage(
        subject=f"{len(items)} compliance document(s) expiring soon for {agency_name}",
        text="\n".join([intro, "", *rows, "", outro]),
        html=_html([escape(intro), html_list, escape(outro)]),
    )
