"""Supabase Storage adapter for client documents and progress photos.
"""

from typing import Optional
import logging

from supabase import create_client, Client

from app.exceptions import ExternalServiceError

logger = logging.getLogger("nutriflow.storage")

_client: Optional[Client] = None
_bucket: str = "documents"


def connect(url: Optional[str], service_role_key: Optional[str], bucket: str = "documents"):
    global _client, _bucket
    _bucket = bucket
    if not url or not service_role_key:
        _client = None
        logger.warning("Supabase storage not configured; document transfer is disabled")
        return
    try:
        _client = create_client(url, service_role_key)
        logger.info("Connected to Supabase storage %s (bucket: %s)", url, bucket)
    except Exception as exc:
        _client = None
        logger.warning("Could not initialize Supabase client: %s", exc)


def close():
    global _client
    _client = None


def is_configured() -> bool:
    return _client is not None


def _bucket_api():
    if _client is None:
        raise ExternalServiceError("Storage service not configured")
    return _client.storage.from_(_bucket)


def upload(path: str, data: bytes, content_type: str) -> str:
    """Store bytes at ``path`` (no overwrite) and return the path."""
    bucket = _bucket_api()
    try:
        bucket.upload(
            path,
            data,
            {"content-type": content_type, "cache-control": "3600", "upsert": "false"},
        )
    except Exception as exc:
        logger.error("Upload of %s failed: %s", path, exc)
        raise ExternalServiceError("Failed to upload file") from exc
    return path


def download(path: str) -> bytes:
    bucket = _bucket_api()
    try:
        return bucket.download(path)
    except Exception as exc:
        logger.error("Download of %s failed: %s", path, exc)
        raise ExternalServiceError("Failed to download file") from exc


def remove(path: str) -> None:
    """Best-effort removal; failures are logged, not raised."""
    try:
        _bucket_api().remove([path])
    except Exception:
        logger.exception("Could not remove stored object %s", path)
