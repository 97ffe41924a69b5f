"""Helpers for displaying stored credential material."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

MASK_CHAR = "•"
VISIBLE_SUFFIX = 4


def mask_secret(value: Any) -> Any:
    """Mask a secret, keeping at most its last four characters visible."""

    if not isinstance(value, str):
        return value
    if len(value) <= VISIBLE_SUFFIX * 2:
        return MASK_CHAR * len(value)
    return MASK_CHAR * (len(value) - VISIBLE_SUFFIX) + value[-VISIBLE_SUFFIX:]


def mask_credentials(payload: Any) -> Any:
    """Recursively mask every string leaf of an opaque credentials payload."""

    if isinstance(payload, Mapping):
        return {key: mask_credentials(value) for key, value in payload.items()}
    if isinstance(payload, list):
        return [mask_credentials(item) for item in payload]
    return mask_secret(payload)


def is_expired(credential: Mapping[str, Any], now: datetime | None = None) -> bool:
    expires_at = credential.get("expires_at")
    if expires_at is None:
        return False
    if isinstance(expires_at, str):
        expires_at = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    now = now or datetime.now(tz=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return expires_at <= now


__all__ = ["mask_secret", "mask_credentials", "is_expired"]
