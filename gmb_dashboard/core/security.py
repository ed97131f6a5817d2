"""GMB Dashboard: Tokens and one-time codes."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import jwt

from gmb_dashboard.config import settings


def create_access_token(
    payload: Mapping[str, Any],
    *,
    expires_in_minutes: int | None = None,
) -> str:
    ttl = expires_in_minutes or settings.access_token_ttl_minutes
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=max(1, int(ttl)))
    claims = dict(payload)
    claims.setdefault("iat", int(now.timestamp()))
    claims.setdefault("exp", int(exp.timestamp()))
    return jwt.encode(
        claims,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.PyJWTError:
        return None


def generate_otp() -> str:
    """Six random digits."""
    return f"{secrets.randbelow(1_000_000):06d}"


def generate_reset_token() -> str:
    return secrets.token_hex(32)


def utcnow() -> datetime:
    """Naive UTC now; SQLite drops tzinfo so stored expiries are compared naive."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
