"""
db.py — Supabase client singletons.

Usage:
    from staffdir_shared.db import get_supabase_client, reset_supabase_clients

    supabase = get_supabase_client()                    # anon key (RLS reads)
    supabase = get_supabase_client(service_role=True)   # service key (writes, admin)
    reset_supabase_clients()                            # forget both clients
"""

from __future__ import annotations

import threading
from typing import Any, Optional

import structlog
from supabase import Client, create_client

from staffdir_shared.config import settings

logger = structlog.get_logger(__name__)

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"

# ---------------------------------------------------------------------------
# Supabase: one client per role per process, guarded by a lock
# ---------------------------------------------------------------------------
_supabase_lock = threading.Lock()
_supabase_anon: Optional[Client] = None
_supabase_service: Optional[Client] = None


def get_supabase_client(*, service_role: bool = False) -> Client:
    """
    Return a singleton Supabase client.

    Args:
        service_role: If True, uses the service role key (bypasses RLS).
                      If False (default), uses the anon key (RLS applies).

    Returns:
        supabase.Client instance.
    """
    global _supabase_anon, _supabase_service

    with _supabase_lock:
        if service_role:
            if _supabase_service is None:
                if not settings.supabase_service_key:
                    raise RuntimeError(
                        "SUPABASE_SERVICE_KEY is not set. "
                        "Set it in .env before using service_role=True."
                    )
                _supabase_service = create_client(
                    settings.supabase_url,
                    settings.supabase_service_key,
                )
                logger.info("supabase_client_created", role="service_role")
            return _supabase_service
        else:
            if _supabase_anon is None:
                if not settings.supabase_anon_key:
                    raise RuntimeError(
                        "SUPABASE_ANON_KEY is not set. Set it in .env."
                    )
                _supabase_anon = create_client(
                    settings.supabase_url,
                    settings.supabase_anon_key,
                )
                logger.info("supabase_client_created", role="anon")
            return _supabase_anon


def reset_supabase_clients() -> None:
    """Drop both cached clients so the next call builds fresh ones (tests, key rotation)."""
    global _supabase_anon, _supabase_service

    with _supabase_lock:
        _supabase_anon = None
        _supabase_service = None


def first_row(result: Any) -> dict[str, Any] | None:
    """Return the first row of an execute() result, or None when empty."""
    data = getattr(result, "data", None)
    if isinstance(data, list):
        return data[0] if data else None
    return data or None
