from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from clientportal.services.auth.passwords import hash_password, verify_password
from clientportal.services.auth.sessions import (
    SessionTokenError,
    issue_session_token,
    read_session_token,
)


def test_password_hash_verifies_and_is_salted() -> None:
    first = hash_password("s3cret-value")
    second = hash_password("s3cret-value")
    assert first != second
    assert "s3cret-value" not in first
    assert verify_password("s3cret-value", first)
    assert verify_password("s3cret-value", second)
    assert not verify_password("wrong-value", first)


def test_malformed_password_hash_never_verifies() -> None:
    assert not verify_password("anything", "not-a-hash")
    assert not verify_password("anything", "md5$1$2$3$abc$def")


def test_password_hash_uses_modular_crypt_scrypt_format() -> None:
    stored = hash_password("s3cret-value")
    assert stored.startswith("$scrypt$ln=14,r=8,p=1$")
    assert verify_password("s3cret-value", stored)


def test_session_token_roundtrip() -> None:
    token = issue_session_token(42, secret="secret", ttl_hours=1)
    assert read_session_token(token, secret="secret") == 42


def test_session_token_rejects_other_secret() -> None:
    token = issue_session_token(42, secret="secret", ttl_hours=1)
    with pytest.raises(SessionTokenError):
        read_session_token(token, secret="other")


def test_session_token_rejects_tampered_payload() -> None:
    token = issue_session_token(1, secret="secret", ttl_hours=1)
    other = issue_session_token(2, secret="secret", ttl_hours=1)
    forged = f"{other.split('.', 1)[0]}.{token.split('.', 1)[1]}"
    with pytest.raises(SessionTokenError):
        read_session_token(forged, secret="secret")


def test_session_token_expires() -> None:
    issued = datetime(2026, 1, 1, tzinfo=timezone.utc)
    token = issue_session_token(7, secret="secret", ttl_hours=2, now=issued)
    assert read_session_token(token, secret="secret", now=issued + timedelta(hours=1)) == 7
    with pytest.raises(SessionTokenError):
        read_session_token(token, secret="secret", now=issued + timedelta(hours=2))


@pytest.mark.parametrize("token", ["", "no-dot", "!!!.abc", "e30.deadbeef"])
def test_session_token_rejects_garbage(token: str) -> None:
    with pytest.raises(SessionTokenError):
        read_session_token(token, secret="secret")
