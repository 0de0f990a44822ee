from __future__ import annotations

import base64
import binascii
from datetime import datetime, timedelta, timezone
import hashlib
import hmac
import json
import secrets
from typing import Any


class SessionTokenError(ValueError):
    """Raised when a session token is malformed, tampered with, or expired."""


def _sign(raw: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw, hashlib.sha256).hexdigest()


def issue_session_token(
    user_id: int,
    *,
    secret: str,
    ttl_hours: int,
    now: datetime | None = None,
) -> str:
    # Sign session payloads so the user id cannot be altered client-side.
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "uid": user_id,
        "exp": int((issued_at + timedelta(hours=ttl_hours)).timestamp()),
        "nonce": secrets.token_hex(8),
    }
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    encoded = base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")
    return f"{encoded}.{_sign(raw, secret)}"


def read_session_token(token: str, *, secret: str, now: datetime | None = None) -> int:
    """Verify a session token and return the user id it was issued for."""
    try:
        encoded, signature = token.split(".", 1)
    except ValueError as exc:
        raise SessionTokenError("Invalid session format") from exc
    padded = encoded + "=" * (-len(encoded) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("utf-8"))
    except (ValueError, binascii.Error) as exc:
        raise SessionTokenError("Invalid session encoding") from exc
    if not hmac.compare_digest(_sign(raw, secret), signature):
        raise SessionTokenError("Invalid session signature")
    try:
        payload: Any = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SessionTokenError("Invalid session payload") from exc
    if not isinstance(payload, dict):
        raise SessionTokenError("Invalid session payload")
    user_id = payload.get("uid")
    expires_at = payload.get("exp")
    if not isinstance(user_id, int) or not isinstance(expires_at, int):
        raise SessionTokenError("Invalid session payload")
    current = now or datetime.now(timezone.utc)
    if current.timestamp() >= expires_at:
        raise SessionTokenError("Session expired")
    return user_id
