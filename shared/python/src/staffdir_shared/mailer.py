"""
mailer.py — Transactional email via the Resend HTTP API.

Usage:
    from staffdir_shared.mailer import send_email, templates

    message = templates.claim_submitted(agency_name="Acme Staffing", ...)
    sent = await send_email(to="owner@acme.com", message=message)

When RESEND_API_KEY is not configured sending is skipped (logged) and
send_email() returns False, so local development never needs credentials.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from staffdir_shared import email_templates as templates
from staffdir_shared.config import settings
from staffdir_shared.email_templates import EmailMessage

log = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(15.0, connect=5.0)


class EmailSendError(Exception):
    """Raised when the email provider rejects or fails a send."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmailRateLimited(EmailSendError):
    """HTTP 429 from the provider; safe to retry after a backoff."""


async def send_email(
    *,
    to: str,
    message: EmailMessage,
    idempotency_key: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """
    Send one email through Resend.

    Args:
        to:              Recipient address.
        message:         Rendered subject/html/text.
        idempotency_key: Forwarded as the Idempotency-Key header so a retried
                         send is delivered at most once.
        client:          Optional shared AsyncClient (the jobs CLI reuses one).

    Returns:
        True if the provider accepted the message, False if sending is disabled.

    Raises:
        EmailRateLimited: provider returned 429.
        EmailSendError:   any other non-2xx response or transport failure.
    """
    if not settings.resend_api_key:
        log.warning("email_skipped_no_api_key", to=to, subject=message.subject)
        return False

    payload: dict[str, Any] = {
        "from": settings.email_sender,
        "to": [to],
        "subject": message.subject,
        "html": message.html,
        "text": message.text,
    }
    headers = {"Authorization": f"Bearer {settings.resend_api_key}"}
    if idempotency_key:
        headers["Idempotency-Key"] = idempotency_key

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)
    try:
        response = await http.post(
            f"{settings.resend_api_url}/emails", json=payload, headers=headers
        )
    except httpx.HTTPError as exc:
        raise EmailSendError(f"Email transport failed: {exc}") from exc
    finally:
        if owns_client:
            await http.aclose()

    if response.status_code == 429:
        raise EmailRateLimited("Email provider rate limit hit", status_code=429)
    if response.is_error:
        raise EmailSendError(
            f"Email provider returned {response.status_code}: {response.text[:200]}",
            status_code=response.status_code,
        )

    log.info("email_sent", to=to, subject=message.subject, provider_id=_provider_id(response))
    return True


def _provider_id(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("id") if isinstance(body, dict) else None


async def send_email_best_effort(*, to: str | None, message: EmailMessage) -> bool:
    """Send an email, logging instead of raising. Used by request handlers."""
    if not to:
        log.warning("email_skipped_no_recipient", subject=message.subject)
        return False
    try:
        return await send_email(to=to, message=message)
    except EmailSendError as exc:
        log.warning(
            "email_send_failed",
            to=to,
            subject=message.subject,
            status_code=exc.status_code,
            error=str(exc),
        )
        return False


__all__ = [
    "EmailMessage",
    "EmailRateLimited",
    "EmailSendError",
    "send_email",
    "send_email_best_effort",
    "templates",
]
