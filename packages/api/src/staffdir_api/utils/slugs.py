"""URL slug helpers."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Callable, Iterator

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Lower-case ASCII slug: diacritics dropped, non-alphanumeric runs become '-'."""
    ascii_value = (
        unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    )
    return _NON_ALNUM.sub("-", ascii_value.strip().lower()).strip("-")


def slug_candidates(base: str, max_attempts: int) -> Iterator[str]:
    """base, base-2, base-3, ... for max_attempts candidates in total."""
    yield base
    for suffix in range(2, max_attempts + 1):
        yield f"{base}-{suffix}"


def first_free_slug(
    base: str,
    max_attempts: int,
    is_taken: Callable[[str], bool],
) -> str | None:
    """Return the first candidate not taken, or None when every candidate is."""
    for candidate in slug_candidates(base, max_attempts):
        if not is_taken(candidate):
            return candidate
    return None
