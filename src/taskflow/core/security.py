"""JWT helpers for the bearer identity assertion."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

from jose import JWTError, jwt

from .config import Settings


@dataclass(slots=True)
class GeneratedToken:
    """A signed token together with its expiry."""

    token: str
    expires_at: datetime


def create_access_token(
    *,
    subject: str | int,
    roles: Sequence[str],
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> GeneratedToken:
    """Create a signed JWT access token carrying the user id and global role."""

    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload: dict[str, Any] = {
        "sub": str(subject),
        "iat": now,
        "exp": expire,
        "roles": list(dict.fromkeys(roles)),
    }
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return GeneratedToken(token=token, expires_at=expire)


def decode_token(*, token: str, settings: Settings) -> dict[str, Any]:
    """Decode and verify a JWT; raises ``JWTError`` on any failure."""

    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


__all__ = ["GeneratedToken", "JWTError", "create_access_token", "decode_token"]
