"""
Signup, email verification, login and token refresh.

Collaborators are injected: a UserDirectory for durable records, a
TokenIssuer for the three JWT classes, and a Notifier for outgoing mail.
A failed verification email does not roll back the signup; the account stays
unverified and /auth/resend is the recovery path.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone

from errors import AuthenticationError, ConflictError, ForbiddenError, NotFoundError
from infrastructure.email.protocol import Notifier
from infrastructure.persistence.user_directory import UserDirectory
from schemas.dto.responses.auth import UserResponse
from schemas.models.user import UserDoc
from services.auth.token_issuer import TokenClass, TokenIssuer, TokenPair
from shared.crypto import hash_password, verify_password
from shared.logging import get_logger

log = get_logger(__name__)

MSG_EMAIL_IN_USE = "Email already in use"
MSG_USER_NOT_FOUND = "User not found"
MSG_ALREADY_VERIFIED = "User already verified"
MSG_INVALID_VERIFICATION = "Invalid or expired verification token"
MSG_NO_SUCH_USER = "There is no user with this email"
MSG_INVALID_PASSWORD = "Invalid password"
MSG_INVALID_CREDENTIALS = "Invalid email or password"
MSG_UNVERIFIED = "Please verify your email to login. Check your inbox."
MSG_INVALID_REFRESH = "Invalid refresh token"


@dataclass(frozen=True)
class SignupResult:
    user: UserResponse
    verification_sent: bool


class IdentityService:
    def __init__(
        self,
        user_directory: UserDirectory,
        token_issuer: TokenIssuer,
        notifier: Notifier,
        client_url: str,
        reveal_account_existence: bool = True,
    ) -> None:
        self._users = user_directory
        self._tokens = token_issuer
        self._notifier = notifier
        self._client_url = client_url.rstrip("/")
        self._reveal_account_existence = reveal_account_existence

    def verification_link(self, token: str) -> str:
        return f"{self._client_url}/auth/verify/{token}"

    async def _send_verification(self, user: UserDoc) -> bool:
        token = self._tokens.issue(TokenClass.VERIFICATION, user.user_id, user.email)
        sent = await self._notifier.send_verification_email(
            user.email, user.full_name, self.verification_link(token)
        )
        if not sent:
            log.warning("verification_email_not_sent", user_id=user.user_id)
        return sent

    async def sign_up(self, email: str, password: str, full_name: str) -> SignupResult:
        if await self._users.find_by_email(email) is not None:
            raise ConflictError(MSG_EMAIL_IN_USE, field="email")

        user = await self._users.create(
            UserDoc(
                email=email,
                password_hash=await asyncio.to_thread(hash_password, password),
                full_name=full_name,
                is_verified=False,
                verification_sent_at=datetime.now(timezone.utc),
            )
        )
        log.info("user_signed_up", user_id=user.user_id)

        sent = await self._send_verification(user)
        return SignupResult(user=UserResponse.from_doc(user), verification_sent=sent)

    async def verify_email(self, token: str) -> UserResponse:
        payload = self._tokens.verify(
            TokenClass.VERIFICATION,
            token,
            error=AuthenticationError,
            message=MSG_INVALID_VERIFICATION,
        )

        user = await self._users.find_by_id(payload.subject)
        if user is None:
            raise NotFoundError(MSG_USER_NOT_FOUND)
        if user.is_verified:
            raise ConflictError(MSG_ALREADY_VERIFIED)

        # Conditional update: a concurrent verification may have won
        if not await self._users.mark_verified(user.user_id):
            raise ConflictError(MSG_ALREADY_VERIFIED)

        user.is_verified = True
        log.info("email_verified", user_id=user.user_id)
        return UserResponse.from_doc(user)

    async def resend_verification_email(self, email: str) -> bool:
        user = await self._users.find_by_email(email)
        if user is None:
            raise NotFoundError(MSG_USER_NOT_FOUND)
        if user.is_verified:
            raise ConflictError(MSG_ALREADY_VERIFIED)

        await self._users.touch_verification_sent(
            user.user_id, datetime.now(timezone.utc)
        )
        return await self._send_verification(user)

    async def login(self, email: str, password: str) -> TokenPair:
        user = await self._users.find_by_email(email, include_password=True)
        if user is None:
            log.info("login_failed", reason="unknown_email")
            raise ForbiddenError(
                MSG_NO_SUCH_USER
                if self._reveal_account_existence
                else MSG_INVALID_CREDENTIALS
            )

        if not await asyncio.to_thread(
            verify_password, password, user.password_hash or ""
        ):
            log.info("login_failed", user_id=user.user_id, reason="bad_credentials")
            raise ForbiddenError(
                MSG_INVALID_PASSWORD
                if self._reveal_account_existence
                else MSG_INVALID_CREDENTIALS
            )

        if not user.is_verified:
            log.info("login_failed", user_id=user.user_id, reason="unverified")
            raise ForbiddenError(MSG_UNVERIFIED)

        log.info("login_succeeded", user_id=user.user_id)
        return self._tokens.issue_pair(user.user_id, user.email)

    async def refresh(self, refresh_token: str) -> TokenPair:
        payload = self._tokens.verify(
            TokenClass.REFRESH,
            refresh_token,
            error=ForbiddenError,
            message=MSG_INVALID_REFRESH,
        )

        user = await self._users.find_by_id(payload.subject)
        if user is None:
            raise NotFoundError(MSG_USER_NOT_FOUND)

        return self._tokens.issue_pair(user.user_id, user.email)
