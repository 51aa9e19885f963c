"""
Compliance documents in the private Supabase Storage bucket.

Rows store the object path ({agency_id}/{compliance_type}/{timestamp}.{ext});
readable links are signed on every read and never persisted. Older rows may
hold a full storage URL instead of a path, so every helper accepts either.
"""

from __future__ import annotations

from urllib.parse import unquote

import structlog

from staffdir_shared.config import settings
from staffdir_shared.constants import COMPLIANCE_DOCUMENT_TYPES
from staffdir_shared.db import get_supabase_client
from staffdir_shared.time_utils import utc_now

from staffdir_api.errors import ApiError

logger = structlog.get_logger(__name__)


def extract_storage_path(document_url: str | None) -> str | None:
    """Object path inside the bucket, from a stored path or a full storage URL."""
    if not document_url:
        return None
    marker = f"/{settings.compliance_bucket}/"
    if marker in document_url:
        path = document_url.split(marker, 1)[1]
    elif "://" in document_url:
        return None
    else:
        path = document_url
    path = path.split("?", 1)[0].lstrip("/")
    return unquote(path) or None


def create_signed_url(document_url: str | None, *, expires_in: int | None = None) -> str | None:
    """Signed link for a stored document; None if there is none or signing fails."""
    path = extract_storage_path(document_url)
    if path is None:
        return None
    supabase = get_supabase_client(service_role=True)
    try:
        signed = supabase.storage.from_(settings.compliance_bucket).create_signed_url(
            path, expires_in or settings.signed_url_ttl_seconds
        )
    except Exception as exc:
        logger.warning("signed_url_failed", path=path, error=str(exc))
        return None
    return signed.get("signedURL") or signed.get("signedUrl")


def remove_document(document_url: str | None) -> bool:
    """Best-effort delete; failures are logged and reported as False."""
    path = extract_storage_path(document_url)
    if path is None:
        return False
    supabase = get_supabase_client(service_role=True)
    try:
        supabase.storage.from_(settings.compliance_bucket).remove([path])
    except Exception as exc:
        logger.warning("document_remove_failed", path=path, error=str(exc))
        return False
    logger.info("document_removed", path=path)
    return True


def validate_document(content: bytes, content_type: str | None) -> str:
    """Check type and size; returns the file extension to store under."""
    extension = COMPLIANCE_DOCUMENT_TYPES.get((content_type or "").lower())
    if extension is None:
        raise ApiError.invalid_params(
            "Invalid file type. Allowed types: PDF, PNG, JPEG",
            {"allowedTypes": sorted(COMPLIANCE_DOCUMENT_TYPES)},
        )
    if not content:
        raise ApiError.invalid_params("Uploaded file is empty")
    if len(content) > settings.max_document_bytes:
        raise ApiError.invalid_params(
            f"File too large. Maximum size is {settings.max_document_bytes // (1024 * 1024)}MB"
        )
    return extension


def upload_document(
    agency_id: str,
    compliance_type: str,
    content: bytes,
    content_type: str,
) -> str:
    """Upload a validated document and return its object path."""
    extension = validate_document(content, content_type)
    timestamp = int(utc_now().timestamp() * 1000)
    path = f"{agency_id}/{compliance_type}/{timestamp}.{extension}"

    supabase = get_supabase_client(service_role=True)
    try:
        supabase.storage.from_(settings.compliance_bucket).upload(
            path,
            content,
            file_options={"content-type": content_type, "upsert": "true"},
        )
    except Exception as exc:
        logger.error("document_upload_failed", path=path, error=str(exc))
        raise ApiError("INTERNAL_ERROR", "Failed to upload document", 500) from exc
    logger.info("document_uploaded", path=path, size=len(content))
    return path
