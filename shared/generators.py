"""
Random code and token generators: pure, side-effect-free functions.

All generators use the ``secrets`` module (cryptographically secure source).
"""

from __future__ import annotations

import secrets

OTP_MIN = 100000
OTP_MAX = 999999


def generate_otp_code() -> str:
    """Generate a 6-digit numeric OTP, uniform over [100000, 999999].

    Returns:
        String of six decimal digits; never starts with ``0``.
    """
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure URL-safe random token.

    Args:
        length: Number of random bytes before base64 encoding (default 32).
            The resulting string will be longer than *length* characters.

    Returns:
        URL-safe base64-encoded token string.
    """
    return secrets.token_urlsafe(length)


def generate_record_id() -> str:
    """Short random hex id used to tag ephemeral records."""
    return secrets.token_hex(8)
