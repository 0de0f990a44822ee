from __future__ import annotations

from passlib.hash import scrypt


# Cost factor 2**14 keeps one hash well under hashlib's default memory cap.
_hasher = scrypt.using(rounds=14)


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, stored: str) -> bool:
    try:
        return _hasher.verify(password, stored)
    except (ValueError, TypeError):
        # Malformed or foreign-scheme hashes never verify.
        return False
