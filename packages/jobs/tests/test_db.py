"""
tests/test_db.py — Unit tests for the Supabase client singletons.

create_client is patched; no Supabase instance required.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from staffdir_shared import db
from staffdir_shared.config import settings


@pytest.fixture
def fresh_clients(monkeypatch):
    monkeypatch.setattr(settings, "supabase_anon_key", "anon-key")
    monkeypatch.setattr(settings, "supabase_service_key", "service-key")
    db.reset_supabase_clients()
    with patch.object(db, "create_client", side_effect=lambda url, key: MagicMock(key=key)) as factory:
        yield factory
    db.reset_supabase_clients()


class TestSupabaseClients:
    def test_one_client_per_role(self, fresh_clients):
        anon = db.get_supabase_client()
        service = db.get_supabase_client(service_role=True)

        assert db.get_supabase_client() is anon
        assert db.get_supabase_client(service_role=True) is service
        assert anon.key == "anon-key"
        assert service.key == "service-key"
        assert fresh_clients.call_count == 2

    def test_reset_builds_new_clients(self, fresh_clients):
        first = db.get_supabase_client(service_role=True)
        db.reset_supabase_clients()
        second = db.get_supabase_client(service_role=True)

        assert second is not first
        assert fresh_clients.call_count == 2

    def test_missing_service_key(self, fresh_clients, monkeypatch):
        monkeypatch.setattr(settings, "supabase_service_key", "")
        with pytest.raises(RuntimeError, match="SUPABASE_SERVICE_KEY"):
            db.get_supabase_client(service_role=True)
        fresh_clients.assert_not_called()
