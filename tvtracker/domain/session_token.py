from __future__ import annotations

import base64
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

TOKEN_BYTES = 24
TOKEN_TTL = timedelta(hours=1)


@dataclass(frozen=True)
class SessionToken:
    value: str | None
    issued_at: datetime | None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(ts: datetime) -> datetime:
    """Naive timestamps are stored in UTC."""
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts


def generate_token() -> str:
    """24 random bytes from the OS CSPRNG, URL-safe base64 encoded (32 chars)."""
    return base64.urlsafe_b64encode(secrets.token_bytes(TOKEN_BYTES)).decode("ascii")


def issue(now: datetime | None = None) -> SessionToken:
    """
    Fresh token stamped with the issuance time.

    Login and refresh both call this; the caller persists the result in place
    of whatever token the account held before.
    """
    return SessionToken(generate_token(), _as_utc(now or utcnow()))


def expires_at(token: SessionToken) -> datetime | None:
    if token.issued_at is None:
        return None
    return _as_utc(token.issued_at) + TOKEN_TTL


def is_valid(stored: SessionToken | None, presented: str | None, now: datetime | None = None) -> bool:
    """
    True when `presented` is exactly the stored token and the stored token was
    issued less than an hour before `now`. Validity is measured from issuance,
    not from last use.
    """
    if stored is None or stored.value is None or stored.issued_at is None:
        return False
    if presented is None or not secrets.compare_digest(stored.value.encode("utf-8"), presented.encode("utf-8")):
        return False
    return _as_utc(now or utcnow()) < expires_at(stored)
