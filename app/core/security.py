"""Password hashing and verification (bcrypt)."""

import bcrypt

from app.core.config import settings

# bcrypt only reads the first 72 bytes; longer passwords are refused, never truncated.
BCRYPT_MAX_BYTES = 72


def password_byte_length(plain_password: str) -> int:
    """Length of the password as bcrypt sees it (UTF-8 bytes)."""
    return len(plain_password.encode("utf-8"))


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """
    Hash a plain-text password for storage with a fresh salt. Do not store plain passwords.
    Raises ValueError when the password is longer than 72 UTF-8 bytes.
    """
    pw_bytes = plain_password.encode("utf-8")
    if len(pw_bytes) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password exceeds {BCRYPT_MAX_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash (constant-time compare inside bcrypt)."""
    pw_bytes = plain_password.encode("utf-8")
    # No stored hash covers more than 72 bytes, so a longer input cannot be the password.
    if len(pw_bytes) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Compared against when the username is unknown so both failure paths cost one bcrypt check.
_DUMMY_HASHES: dict[int, str] = {}


def dummy_verify(plain_password: str, rounds: int | None = None) -> None:
    """Burn one bcrypt verification at the given cost; result is discarded."""
    cost = rounds or settings.BCRYPT_ROUNDS
    if cost not in _DUMMY_HASHES:
        _DUMMY_HASHES[cost] = hash_password("dummy-password-for-timing", rounds=cost)
    verify_password(plain_password, _DUMMY_HASHES[cost])
