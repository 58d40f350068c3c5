"""Share tokens, password hashing and expiry for public note links."""

import secrets
from datetime import datetime, timedelta, timezone

import bcrypt

BCRYPT_ROUNDS = 10


def new_share_token() -> str:
    """128-bit random token, hex encoded."""
    return secrets.token_hex(16)


def hash_share_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode()


def verify_share_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Malformed stored hash
        return False


def share_expiry(expires_in_days: int | None, now: datetime | None = None) -> datetime | None:
    if not expires_in_days or expires_in_days <= 0:
        return None
    now = now or datetime.now(timezone.utc)
    return now + timedelta(days=expires_in_days)


def is_expired(expires_at: datetime | str | None, now: datetime | None = None) -> bool:
    if not expires_at:
        return False
    if isinstance(expires_at, str):
        expires_at = datetime.fromisoformat(expires_at)
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at < (now or datetime.now(timezone.utc))


def share_url(frontend_url: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}/share/{token}"
