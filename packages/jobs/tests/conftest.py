"""
tests/conftest.py — Shared pytest fixtures for the jobs test suite.

Provides:
  mock_supabase_client()  — MagicMock of the Supabase client with per-table chains
  mock_supabase()         — patches the reminder job's client lookup
  resend_key()            — configures a Resend API key for live sends
  mock_http               — configured respx router for faking HTTP responses
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import respx

from staffdir_shared.config import settings

CHAIN_METHODS = ("select", "eq", "in_", "is_", "order", "update")


def _table_chain(results: list) -> MagicMock:
    """Chainable query builder; execute() consumes results, repeating the last."""
    queue = list(results)

    def execute():
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return MagicMock(data=item, count=len(item))

    chain = MagicMock()
    chain.execute.side_effect = execute
    chain.not_ = chain
    for method in CHAIN_METHODS:
        getattr(chain, method).return_value = chain
    return chain


# ---------------------------------------------------------------------------
# Supabase client mock
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_supabase_client() -> MagicMock:
    """
    A MagicMock that simulates the supabase.Client interface.

    Every table returns empty data by default. Configure a table with
    client.set_table("profiles", [rows], ...): each positional argument is
    the data of one execute() call (or an exception to raise). Chains are
    kept on client.tables so tests can inspect the writes.
    """
    client = MagicMock()
    client.tables = {}
    configured: dict[str, list] = {}

    def set_table(name: str, *results) -> None:
        configured[name] = list(results)

    def table(name: str) -> MagicMock:
        if name not in client.tables:
            client.tables[name] = _table_chain(configured.get(name, [[]]))
        return client.tables[name]

    client.set_table.side_effect = set_table
    client.table.side_effect = table
    return client


@pytest.fixture
def mock_supabase(mock_supabase_client: MagicMock):
    """
    Patch the reminder job's get_supabase_client() to return the mock client.
    Yields the mock client so tests can configure tables and inspect calls.
    """
    with patch(
        "staffdir_jobs.compliance_reminders.get_supabase_client",
        return_value=mock_supabase_client,
    ):
        yield mock_supabase_client


@pytest.fixture
def resend_key(monkeypatch):
    monkeypatch.setattr(settings, "resend_api_key", "re_test_key")
    return "re_test_key"


@pytest.fixture(autouse=True)
def _no_delays(monkeypatch):
    """Skip inter-agency pauses and retry backoff."""
    monkeypatch.setattr("staffdir_jobs.compliance_reminders.AGENCY_SEND_DELAY_SECONDS", 0)
    monkeypatch.setattr("staffdir_jobs.compliance_reminders.RETRY_BASE_DELAY_SECONDS", 0)


# ---------------------------------------------------------------------------
# respx HTTP mock router
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_http():
    """
    Activate the respx mock router for all httpx requests.

    Usage in tests:
        def test_something(mock_http):
            mock_http.post("https://...").mock(return_value=httpx.Response(200, json={...}))
    """
    with respx.mock(assert_all_called=False) as router:
        yield router
