"""Search-input sanitising and Supabase filter builders."""

from __future__ import annotations

import re
from typing import Any

MAX_SEARCH_LENGTH = 100

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_SQL_COMMENTS = re.compile(r"--|/\*|\*/")
_KEYWORDS = re.compile(
    r"\b(select|insert|update|delete|drop|union|exec|execute|script|"
    r"javascript|vbscript|onload|onerror|onclick|alert)\b",
    re.IGNORECASE,
)
_DISALLOWED = re.compile(r"[^a-zA-Z0-9\s\-_.,'&]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_search_input(raw: str) -> str:
    """Reduce free-text search input to a safe subset of characters.

    Strips control characters, SQL comment markers and script/SQL keywords,
    keeps letters, digits, whitespace and - _ . , ' &, collapses whitespace
    and truncates to MAX_SEARCH_LENGTH.
    """
    text = _CONTROL_CHARS.sub("", raw.strip())
    text = _SQL_COMMENTS.sub("", text)
    text = _KEYWORDS.sub("", text)
    text = _DISALLOWED.sub("", text)
    text = _WHITESPACE.sub(" ", text).strip()
    return text[:MAX_SEARCH_LENGTH]


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value matches literally. Backslash first."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def apply_text_search(
    query: Any,
    column: str,
    search_term: str | None,
) -> Any:
    """Apply a sanitised, wildcard-escaped substring match using ilike."""
    if not search_term:
        return query
    term = sanitize_search_input(search_term)
    if not term:
        return query
    return query.ilike(column, f"%{escape_like(term)}%")


def apply_multi_column_search(
    query: Any,
    columns: list[str],
    search_term: str | None,
) -> Any:
    """Substring match against any of several columns (PostgREST or filter)."""
    if not search_term:
        return query
    term = sanitize_search_input(search_term)
    if not term:
        return query
    # commas separate or-conditions, so they cannot appear inside the pattern
    pattern = escape_like(term).replace(",", " ")
    return query.or_(",".join(f"{col}.ilike.%{pattern}%" for col in columns))


def apply_tristate_filter(
    query: Any,
    column: str,
    value: str,
    *,
    true_value: str,
    false_value: str,
) -> Any:
    """Map an {true_value, false_value, all} query param onto a boolean column."""
    if value == true_value:
        return query.eq(column, True)
    if value == false_value:
        return query.eq(column, False)
    return query
