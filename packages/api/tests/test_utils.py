"""Tests for search sanitising, slugs and email-domain checks."""

from __future__ import annotations

import pytest

from staffdir_api.utils.email_domain import (
    extract_email_domain,
    extract_website_domain,
    is_free_email_domain,
    verify_email_domain,
)
from staffdir_api.utils.filtering import escape_like, sanitize_search_input
from staffdir_api.utils.slugs import first_free_slug, slug_candidates, slugify
from staffdir_shared.time_utils import is_valid_iso_date, parse_iso_date


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("  Acme   Staffing ", "Acme Staffing"),
        ("O'Brien & Sons", "O'Brien & Sons"),
        ("acme'; DROP TABLE agencies; --", "acme' TABLE agencies"),
        ("<script>alert(1)</script>", "1"),
        ("tab\there", "tabhere"),
        ("x" * 150, "x" * 100),
    ],
)
def test_sanitize_search_input(raw, expected):
    assert sanitize_search_input(raw) == expected


def test_escape_like_escapes_backslash_first():
    assert escape_like("100%_a\\b") == "100\\%\\_a\\\\b"


@pytest.mark.parametrize(
    ("name", "slug"),
    [
        ("Acme Staffing", "acme-staffing"),
        ("  Société Générale  ", "societe-generale"),
        ("A&B -- Labor, Inc.", "a-b-labor-inc"),
        ("!!!", ""),
    ],
)
def test_slugify(name, slug):
    assert slugify(name) == slug


def test_slug_candidates():
    assert list(slug_candidates("acme", 3)) == ["acme", "acme-2", "acme-3"]


def test_first_free_slug():
    taken = {"acme", "acme-2"}
    assert first_free_slug("acme", 5, taken.__contains__) == "acme-3"
    assert first_free_slug("acme", 2, taken.__contains__) is None


def test_extract_domains():
    assert extract_email_domain(" Pat@AcmeStaffing.com ") == "acmestaffing.com"
    assert extract_website_domain("https://www.AcmeStaffing.com:8443/about?x=1") == "acmestaffing.com"
    assert extract_website_domain("acmestaffing.com") == "acmestaffing.com"
    with pytest.raises(ValueError, match="Invalid email format"):
        extract_email_domain("no-at-sign")
    with pytest.raises(ValueError, match="Invalid URL format"):
        extract_website_domain("https://")


@pytest.mark.parametrize(
    ("email", "website", "expected"),
    [
        ("pat@acmestaffing.com", "https://www.acmestaffing.com", True),
        ("pat@www.acmestaffing.com", "acmestaffing.com", True),
        ("pat@mail.acmestaffing.com", "https://acmestaffing.com", False),
        ("pat@gmail.com", "https://acmestaffing.com", False),
        ("pat@gmail.com", "https://www.gmail.com", False),
        ("pat@acmestaffing.com", None, False),
        ("pat@acmestaffing.com", "not a url", False),
    ],
)
def test_verify_email_domain(email, website, expected):
    assert verify_email_domain(email, website) is expected


def test_is_free_email_domain():
    assert is_free_email_domain("someone@gmail.com")
    assert not is_free_email_domain("pat@acmestaffing.com")
    assert not is_free_email_domain("garbage")


def test_parse_iso_date():
    assert parse_iso_date("2026-02-28").isoformat() == "2026-02-28"
    assert parse_iso_date("2024-02-29") is not None


@pytest.mark.parametrize(
    "raw",
    ["2026-02-30", "2026-2-28", "2026-02-28\n", " 2026-02-28", "2026-02-28T00:00", "２０２６-02-28", None],
)
def test_parse_iso_date_rejects_malformed(raw):
    assert parse_iso_date(raw) is None
    assert not is_valid_iso_date(raw)
