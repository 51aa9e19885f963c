"""
Business-email domain checks for agency claims.

A claim's email_domain_verified flag is True when the business email's
domain equals the agency website's domain (ignoring scheme, "www.", port,
path, query and fragment) and is not a free-mail provider. It is advisory:
admins still review every claim.
"""

from __future__ import annotations

import re

from staffdir_shared.constants import FREE_EMAIL_DOMAINS

_EMAIL_RE = re.compile(r"^[^\s@]+@([^\s@]+\.[^\s@]+)$")
_DOMAIN_RE = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?(\.[a-z0-9]([a-z0-9-]*[a-z0-9])?)+$")


def extract_email_domain(email: str) -> str:
    match = _EMAIL_RE.match(email.strip().lower())
    if not match:
        raise ValueError("Invalid email format")
    return match.group(1)


def extract_website_domain(website: str) -> str:
    domain = website.strip().lower()
    domain = re.sub(r"^[a-z][a-z0-9+.-]*://", "", domain)
    domain = re.split(r"[/?#]", domain, maxsplit=1)[0]
    domain = domain.split(":", 1)[0]
    if domain.startswith("www."):
        domain = domain[4:]
    if not domain or not _DOMAIN_RE.match(domain):
        raise ValueError("Invalid URL format")
    return domain


def verify_email_domain(email: str, website: str | None) -> bool:
    if not website or is_free_email_domain(email):
        return False
    try:
        email_domain = extract_email_domain(email)
        website_domain = extract_website_domain(website)
    except ValueError:
        return False
    if email_domain.startswith("www."):
        email_domain = email_domain[4:]
    return email_domain == website_domain


def is_free_email_domain(email: str) -> bool:
    try:
        return extract_email_domain(email) in FREE_EMAIL_DOMAINS
    except ValueError:
        return False
