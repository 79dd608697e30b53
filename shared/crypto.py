"""
Cryptographic helpers: password and one-time-code hashing.

Uses argon2id (via argon2-cffi) for both: a slow, salted, memory-hard hash,
so neither passwords nor OTPs are ever stored in a form that is cheap to
brute-force.
"""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_password_hasher = PasswordHasher()


def hash_password(plain_password: str) -> str:
    """Hash *plain_password* with argon2id.

    Returns:
        Argon2 hash string (includes algorithm parameters and salt).
    """
    return _password_hasher.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify *plain_password* against an argon2 *password_hash*.

    Returns:
        ``True`` if the password matches, ``False`` for any failure
        (wrong password, invalid hash, etc.).
    """
    if not password_hash:
        return False
    try:
        return _password_hasher.verify(password_hash, plain_password)
    except (VerificationError, InvalidHashError):
        return False


def hash_otp(otp_code: str) -> str:
    """Hash a one-time code before it is written to the ephemeral store."""
    return _password_hasher.hash(otp_code)


def verify_otp(otp_code: str, hashed_otp: str) -> bool:
    return verify_password(otp_code, hashed_otp)
