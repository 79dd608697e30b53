"""
Password recovery: forgot-password → OTP → verify OTP → reset password.

Per email the flow moves NoRequest → OtpIssued → OtpVerified (reset token
minted) → Consumed; any non-terminal state expires with its key's TTL.

Ephemeral key layout:

    otp:<email>                     OtpRecord JSON, otp_ttl_seconds
    otpAttempts:<email>:<record id> failed-attempt counter, same remaining TTL
    otpVerified:<email>:<record id> claim taken by the one verification that
                                    mints a reset token, same remaining TTL
    rate:<email>                    rate-limit marker, rate_limit_seconds
    resetToken:<token>              email, reset_token_ttl_seconds, single use

There is no in-process locking. Every step whose correctness depends on
ordering is a single store operation: admission is set_if_absent, failed
attempts go through increment_with_expiry, verification is claimed with
set_if_absent before a reset token is minted, and redemption is
get_and_delete. The rate-limit marker is released again when the OTP mail
is not delivered.

argon2 hashing and verification run in worker threads (asyncio.to_thread).
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import NoReturn, Optional

from config import RecoverySettings
from errors import NotFoundError, ValidationError
from infrastructure.cache.ephemeral_store import EphemeralStore
from infrastructure.email.protocol import Notifier
from infrastructure.persistence.user_directory import UserDirectory
from schemas.models.otp import OtpRecord
from shared.crypto import hash_otp, hash_password, verify_otp
from shared.generators import (
    generate_otp_code,
    generate_record_id,
    generate_secure_token,
)
from shared.logging import get_logger

log = get_logger(__name__)

OTP_PREFIX = "otp:"
ATTEMPTS_PREFIX = "otpAttempts:"
VERIFIED_PREFIX = "otpVerified:"
RATE_PREFIX = "rate:"
RESET_TOKEN_PREFIX = "resetToken:"

MSG_OTP_SENT = "OTP sent to your email"
MSG_USER_NOT_FOUND = "User with this email does not exist"
MSG_INVALID_OTP = "Invalid or expired OTP"
MSG_TOO_MANY_ATTEMPTS = "Too many attempts. Request new OTP"
MSG_OTP_USED = "OTP already used"
MSG_OTP_VERIFIED = "OTP verified successfully"
MSG_PASSWORD_MISMATCH = "Passwords do not match"
MSG_INVALID_RESET_TOKEN = "Invalid or expired reset token"
MSG_RESET_USER_MISSING = "User not found"
MSG_PASSWORD_RESET = "Password reset successfully"


def otp_key(email: str) -> str:
    return f"{OTP_PREFIX}{email}"


def attempts_key(email: str, record_id: str) -> str:
    return f"{ATTEMPTS_PREFIX}{email}:{record_id}"


def verified_key(email: str, record_id: str) -> str:
    return f"{VERIFIED_PREFIX}{email}:{record_id}"


def rate_key(email: str) -> str:
    return f"{RATE_PREFIX}{email}"


def reset_token_key(token: str) -> str:
    return f"{RESET_TOKEN_PREFIX}{token}"


class RecoveryFlow:
    def __init__(
        self,
        store: EphemeralStore,
        user_directory: UserDirectory,
        notifier: Notifier,
        settings: Optional[RecoverySettings] = None,
        reveal_account_existence: bool = True,
    ) -> None:
        self._store = store
        self._users = user_directory
        self._notifier = notifier
        self._settings = settings or RecoverySettings()
        self._reveal_account_existence = reveal_account_existence

    # ── Step 1: issue ────────────────────────────────────────────────────────

    async def forgot_password(self, email: str) -> str:
        """Issue a fresh OTP for *email* and mail it. Returns the ack message."""
        user = await self._users.find_by_email(email)
        if user is None:
            log.info("otp_request_unknown_email")
            if self._reveal_account_existence:
                raise NotFoundError(MSG_USER_NOT_FOUND)
            return MSG_OTP_SENT

        admitted = await self._store.set_if_absent(
            rate_key(email), "blocked", self._settings.rate_limit_seconds
        )
        if not admitted:
            remaining = max(await self._store.ttl(rate_key(email)), 1)
            log.info("otp_request_rate_limited", user_id=user.user_id, retry_after=remaining)
            raise ValidationError(
                f"Wait {remaining} seconds before requesting again",
                details={"retry_after": remaining},
            )

        otp_code = generate_otp_code()
        record = OtpRecord(
            id=generate_record_id(),
            hashed_otp=await asyncio.to_thread(hash_otp, otp_code),
            created_at=datetime.now(timezone.utc),
        )
        # Overwrites any previous record: one live OTP per email
        await self._store.set_with_expiry(
            otp_key(email), record.model_dump_json(), self._settings.otp_ttl_seconds
        )

        sent = await self._notifier.send_otp_email(
            email, user.full_name, otp_code, self._settings.otp_ttl_minutes
        )
        if not sent:
            await self._store.delete(rate_key(email))
            log.warning("otp_delivery_failed", user_id=user.user_id, record_id=record.id)
        log.info("otp_issued", user_id=user.user_id, record_id=record.id, sent=sent)
        return MSG_OTP_SENT

    # ── Step 2: verify ───────────────────────────────────────────────────────

    async def _load(self, email: str) -> Optional[OtpRecord]:
        raw = await self._store.get(otp_key(email))
        if raw is None:
            return None
        record = OtpRecord.model_validate_json(raw)
        count = await self._store.get(attempts_key(email, record.id))
        record.attempts = int(count) if count else 0
        return record

    async def _discard(self, email: str, record: OtpRecord) -> None:
        await self._store.delete(
            otp_key(email),
            attempts_key(email, record.id),
            verified_key(email, record.id),
        )

    async def _find_by_value(self, otp: str) -> Optional[tuple[str, OtpRecord]]:
        """Scan every live OTP record for one whose hash matches *otp*."""
        for key in await self._store.keys_by_prefix(OTP_PREFIX):
            email = key[len(OTP_PREFIX):]
            record = await self._load(email)
            if record is not None and await asyncio.to_thread(
                verify_otp, otp, record.hashed_otp
            ):
                return email, record
        return None

    async def _register_failure(self, email: str, record: OtpRecord) -> NoReturn:
        remaining_ttl = await self._store.ttl(otp_key(email))
        if remaining_ttl <= 0:
            raise ValidationError(MSG_INVALID_OTP)

        failures = await self._store.increment_with_expiry(
            attempts_key(email, record.id), remaining_ttl
        )
        max_attempts = self._settings.otp_max_attempts
        if failures >= max_attempts:
            await self._discard(email, record)
            log.warning("otp_attempts_exhausted", record_id=record.id)
            raise ValidationError(MSG_TOO_MANY_ATTEMPTS)

        left = max_attempts - failures
        log.info("otp_mismatch", record_id=record.id, attempts_left=left)
        raise ValidationError(
            f"Invalid OTP. {left} attempt{'s' if left != 1 else ''} remaining",
            details={"attempts_remaining": left},
        )

    async def verify_otp(self, otp: str, email: Optional[str] = None) -> str:
        """Check *otp* and return a single-use reset token.

        With *email* the record is looked up directly and a mismatch counts
        as a failed attempt. Without it, every live record is scanned; a
        value that matches nothing cannot be attributed to any record.
        """
        if email is None:
            found = await self._find_by_value(otp)
            if found is None:
                raise ValidationError(MSG_INVALID_OTP)
            email, record = found
            hash_checked = True
        else:
            record = await self._load(email)
            if record is None:
                raise ValidationError(MSG_INVALID_OTP)
            hash_checked = False

        if record.attempts >= self._settings.otp_max_attempts:
            await self._discard(email, record)
            raise ValidationError(MSG_TOO_MANY_ATTEMPTS)

        if record.verified:
            raise ValidationError(MSG_OTP_USED)

        if not hash_checked and not await asyncio.to_thread(
            verify_otp, otp, record.hashed_otp
        ):
            await self._register_failure(email, record)

        remaining_ttl = await self._store.ttl(otp_key(email))
        if remaining_ttl <= 0:
            raise ValidationError(MSG_INVALID_OTP)
        # Only one caller per record gets past this point
        if not await self._store.set_if_absent(
            verified_key(email, record.id), "1", remaining_ttl
        ):
            raise ValidationError(MSG_OTP_USED)

        record.verified = True
        if not await self._store.replace_keep_ttl(
            otp_key(email), record.model_copy(update={"attempts": 0}).model_dump_json()
        ):
            # Expired between the read and the write
            raise ValidationError(MSG_INVALID_OTP)

        reset_token = generate_secure_token()
        await self._store.set_with_expiry(
            reset_token_key(reset_token), email, self._settings.reset_token_ttl_seconds
        )
        log.info("otp_verified", record_id=record.id)
        return reset_token

    # ── Step 3: reset ────────────────────────────────────────────────────────

    async def reset_password(
        self, new_password: str, confirm_password: str, reset_token: str
    ) -> str:
        if new_password != confirm_password:
            raise ValidationError(MSG_PASSWORD_MISMATCH, field="confirm_password")
        if not reset_token:
            raise ValidationError(MSG_INVALID_RESET_TOKEN)

        # Claimed atomically: a replayed or concurrent redemption finds nothing
        email = await self._store.get_and_delete(reset_token_key(reset_token))
        if email is None:
            raise ValidationError(MSG_INVALID_RESET_TOKEN)

        user = await self._users.find_by_email(email)
        if user is None:
            raise ValidationError(MSG_RESET_USER_MISSING)

        password_hash = await asyncio.to_thread(hash_password, new_password)
        await self._users.update_password(user.user_id, password_hash)

        record = await self._load(email)
        if record is not None:
            await self._discard(email, record)

        sent = await self._notifier.send_notification(
            email, "Password Reset", "Your password has been reset successfully."
        )
        log.info("password_reset", user_id=user.user_id, notified=sent)
        return MSG_PASSWORD_RESET
