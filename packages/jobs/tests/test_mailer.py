"""
tests/test_mailer.py — Unit tests for the Resend mailer and email templates.

All provider calls go through the respx router; no network access required.
"""

from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from staffdir_shared.config import settings
from staffdir_shared.email_templates import ExpiringItem
from staffdir_shared.mailer import (
    EmailRateLimited,
    EmailSendError,
    send_email,
    send_email_best_effort,
    templates,
)


@pytest.fixture
def message():
    return templates.claim_submitted(agency_name="Acme Staffing", full_name="Pat Lee")


@pytest.fixture
def emails_url():
    return f"{settings.resend_api_url}/emails"


class TestSendEmail:
    @pytest.mark.asyncio
    async def test_posts_message_to_resend(self, resend_key, mock_http, emails_url, message):
        route = mock_http.post(emails_url).mock(
            return_value=httpx.Response(200, json={"id": "em_1"})
        )

        assert await send_email(to="pat@acmestaffing.com", message=message, idempotency_key="k-1")

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer re_test_key"
        assert request.headers["Idempotency-Key"] == "k-1"
        payload = json.loads(request.content)
        assert payload["to"] == ["pat@acmestaffing.com"]
        assert payload["subject"] == "We received your claim for Acme Staffing"
        assert payload["from"] == settings.email_sender

    @pytest.mark.asyncio
    async def test_without_api_key_skips_send(self, monkeypatch, mock_http, emails_url, message):
        monkeypatch.setattr(settings, "resend_api_key", "")
        route = mock_http.post(emails_url)

        assert await send_email(to="pat@acmestaffing.com", message=message) is False
        assert not route.called

    @pytest.mark.asyncio
    async def test_429_raises_rate_limited(self, resend_key, mock_http, emails_url, message):
        mock_http.post(emails_url).mock(return_value=httpx.Response(429, json={}))

        with pytest.raises(EmailRateLimited) as exc:
            await send_email(to="pat@acmestaffing.com", message=message)
        assert exc.value.status_code == 429

    @pytest.mark.asyncio
    async def test_server_error_raises_send_error(self, resend_key, mock_http, emails_url, message):
        mock_http.post(emails_url).mock(return_value=httpx.Response(500, text="oops"))

        with pytest.raises(EmailSendError) as exc:
            await send_email(to="pat@acmestaffing.com", message=message)
        assert not isinstance(exc.value, EmailRateLimited)
        assert exc.value.status_code == 500

    @pytest.mark.asyncio
    async def test_transport_error_raises_send_error(self, resend_key, mock_http, emails_url, message):
        mock_http.post(emails_url).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(EmailSendError):
            await send_email(to="pat@acmestaffing.com", message=message)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [httpx.Response(200, text="OK"), httpx.Response(200, json=["em_1"]), httpx.Response(202)],
    )
    async def test_accepted_send_without_json_id(
        self, resend_key, mock_http, emails_url, message, response
    ):
        mock_http.post(emails_url).mock(return_value=response)
        assert await send_email(to="pat@acmestaffing.com", message=message) is True


class TestSendEmailBestEffort:
    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, resend_key, mock_http, emails_url, message):
        mock_http.post(emails_url).mock(return_value=httpx.Response(503))
        assert await send_email_best_effort(to="pat@acmestaffing.com", message=message) is False

    @pytest.mark.asyncio
    async def test_plain_text_success_body(self, resend_key, mock_http, emails_url, message):
        mock_http.post(emails_url).mock(return_value=httpx.Response(200, text="OK"))
        assert await send_email_best_effort(to="pat@acmestaffing.com", message=message) is True

    @pytest.mark.asyncio
    async def test_missing_recipient(self, resend_key, mock_http, emails_url, message):
        route = mock_http.post(emails_url)
        assert await send_email_best_effort(to=None, message=message) is False
        assert not route.called


class TestTemplates:
    def test_values_are_html_escaped(self):
        msg = templates.claim_rejected(
            agency_name="A&B <Staffing>", reason="Domain mismatch", full_name="Pat"
        )
        assert "A&amp;B &lt;Staffing&gt;" in msg.html
        assert "A&B <Staffing>" in msg.text

    def test_compliance_expiring_lists_every_item(self):
        msg = templates.compliance_expiring(
            agency_name="Acme Staffing",
            items=[
                ExpiringItem("OSHA Certified", date(2026, 3, 30), 29),
                ExpiringItem("Bonding", date(2026, 3, 29), 28),
            ],
            window_days=30,
        )
        assert msg.subject == "2 compliance document(s) expiring soon for Acme Staffing"
        assert "OSHA Certified: expires 2026-03-30 (29 days)" in msg.text
        assert msg.html.count("<li>") == 2

    def test_claim_approved_links_dashboard(self):
        msg = templates.claim_approved(agency_name="Acme Staffing")
        assert f"{settings.site_url}/dashboard" in msg.text
