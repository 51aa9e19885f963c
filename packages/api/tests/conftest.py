"""Shared test fixtures for staffdir-api."""

from __future__ import annotations

from contextlib import ExitStack
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError as PostgrestAPIError

from staffdir_shared.config import settings

from staffdir_api.middleware.auth import AuthUser, get_current_user

CHAIN_METHODS = (
    "select", "eq", "neq", "gt", "gte", "lt", "lte",
    "ilike", "in_", "or_", "is_", "filter", "contains",
    "order", "limit", "range", "single", "maybe_single",
    "insert", "update", "upsert", "delete",
)

# Every module that resolves its own Supabase client
SUPABASE_MODULES = (
    "staffdir_api.middleware.auth",
    "staffdir_api.services.agency_service",
    "staffdir_api.services.claim_service",
    "staffdir_api.services.compliance_service",
    "staffdir_api.services.directory_service",
    "staffdir_api.services.labor_request_service",
    "staffdir_api.services.storage_service",
    "staffdir_api.services.user_service",
)

ADMIN_ID = "00000000-0000-0000-0000-0000000000ad"
USER_ID = "00000000-0000-0000-0000-0000000000b0"


def _executor(results):
    """execute() side effect: consume results in order, repeating the last one.

    Each result is a (data, count) tuple or an Exception instance to raise.
    """
    queue = list(results)

    def execute():
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        data, count = item
        return MagicMock(data=data, count=count)

    return execute


def make_chain(data=None, count=0, results=None):
    """Create a chainable mock that returns given data on execute().

    results: optional list of sequential results (see _executor).
    """
    chain = MagicMock()
    chain.execute.side_effect = _executor(results or [(data or [], count)])
    for method in CHAIN_METHODS:
        getattr(chain, method).return_value = chain
    return chain


def make_supabase(table_data=None):
    """Create a mock Supabase client.

    table_data: optional dict mapping table name -> (data, count), or to a
    list of such tuples / exceptions consumed one execute() at a time.
    All unmapped tables return empty results. Each table's chain is created
    once and kept on client.tables so tests can inspect the writes.
    """
    client = MagicMock()
    td = table_data or {}
    client.tables = {}

    def _table(name):
        if name not in client.tables:
            canned = td.get(name, ([], 0))
            if isinstance(canned, list):
                client.tables[name] = make_chain(results=canned)
            else:
                client.tables[name] = make_chain(*canned)
        return client.tables[name]

    client.table.side_effect = _table
    for name in td:
        _table(name)
    client.rpc.return_value.execute.return_value = MagicMock(data=[], count=None)

    bucket = client.storage.from_.return_value
    bucket.create_signed_url.return_value = {"signedURL": "https://storage.test/signed?token=abc"}
    bucket.remove.return_value = []
    bucket.upload.return_value = MagicMock(path="uploaded")

    client.auth.admin.list_users.return_value = []
    return client


def db_error(message="boom", code="XX000"):
    return PostgrestAPIError({"message": message, "code": code, "details": None, "hint": None})


@pytest.fixture()
def supabase():
    """Default mock client; replace with use_supabase() for canned data."""
    return make_supabase()


@pytest.fixture()
def use_supabase(supabase):
    """Patch get_supabase_client in every module to return the given mock."""
    with ExitStack() as stack:

        def _use(mock):
            for module in SUPABASE_MODULES:
                stack.enter_context(patch(f"{module}.get_supabase_client", return_value=mock))
            return mock

        _use(supabase)
        yield _use


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    """Generous rate limits and no outbound email during tests."""
    monkeypatch.setattr(settings, "resend_api_key", "")
    monkeypatch.setattr(settings, "rate_limit_anonymous", 10_000)
    monkeypatch.setattr(settings, "rate_limit_user", 10_000)
    monkeypatch.setattr(settings, "rate_limit_agency_owner", 10_000)
    monkeypatch.setattr(settings, "rate_limit_admin", 10_000)
    monkeypatch.setattr(
        "staffdir_api.middleware.rate_limit.BURST_LIMITS",
        {"anonymous": 10_000, "user": 10_000, "agency_owner": 10_000, "admin": 10_000},
    )


@pytest.fixture()
def app(use_supabase):
    """Create test FastAPI app with mocked Supabase."""
    from staffdir_api.app import create_app
    return create_app()


@pytest.fixture()
def client(app):
    """HTTP test client."""
    return TestClient(app)


@pytest.fixture()
def login(app):
    """Authenticate subsequent requests as the given user (None = anonymous)."""

    def _login(user: AuthUser | None):
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    yield _login
    app.dependency_overrides.clear()


@pytest.fixture()
def as_admin(login):
    return login(AuthUser(user_id=ADMIN_ID, role="admin", email="admin@staffdir.test"))


@pytest.fixture()
def as_user(login):
    return login(
        AuthUser(user_id=USER_ID, role="user", email="pat@acmestaffing.com", full_name="Pat Lee")
    )


@pytest.fixture()
def sample_agency():
    return {
        "id": str(uuid4()),
        "name": "Acme Staffing",
        "slug": "acme-staffing",
        "website": "https://www.acmestaffing.com",
        "is_active": True,
        "is_claimed": False,
        "claimed_by": None,
        "claimed_at": None,
        "created_at": "2026-01-05T10:00:00+00:00",
        "profile_completion_percentage": 40,
    }


@pytest.fixture()
def sample_claim(sample_agency):
    return {
        "id": str(uuid4()),
        "agency_id": sample_agency["id"],
        "user_id": USER_ID,
        "business_email": "pat@acmestaffing.com",
        "phone_number": "(555) 123-4567",
        "position_title": "Operations Manager",
        "verification_method": "email",
        "email_domain_verified": True,
        "status": "pending",
        "rejection_reason": None,
        "reviewed_by": None,
        "reviewed_at": None,
        "created_at": "2026-03-01T12:00:00+00:00",
    }
