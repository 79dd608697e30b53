"""Unit tests for IdentityService: signup, verification, login and refresh."""

import threading

import pytest

from errors import AuthenticationError, ConflictError, ForbiddenError, NotFoundError
from services.auth.identity_service import (
    MSG_ALREADY_VERIFIED,
    MSG_INVALID_CREDENTIALS,
    MSG_INVALID_PASSWORD,
    MSG_INVALID_REFRESH,
    MSG_NO_SUCH_USER,
    MSG_UNVERIFIED,
    IdentityService,
)
from services.auth.token_issuer import TokenClass
from shared import crypto
from shared.crypto import verify_password

CLIENT_URL = "http://client.local"

EMAIL = "user@mail.com"
PASSWORD = "password123"


# ── sign_up ───────────────────────────────────────────────────────────────────


class TestSignUp:
    async def test_creates_unverified_user_with_hashed_password(
        self, identity_service, users
    ):
        result = await identity_service.sign_up(EMAIL, PASSWORD, "Test User")

        assert result.user.email == EMAIL
        assert result.user.is_verified is False
        assert result.verification_sent is True

        stored = await users.find_by_email(EMAIL, include_password=True)
        assert stored.password_hash != PASSWORD
        assert verify_password(PASSWORD, stored.password_hash)
        assert stored.verification_sent_at is not None

    async def test_mails_verification_link_for_new_user(
        self, identity_service, notifier, token_issuer
    ):
        result = await identity_service.sign_up(EMAIL, PASSWORD, "Test User")

        message = notifier.last("verification")
        assert message["email"] == EMAIL
        assert message["link"].startswith(f"{CLIENT_URL}/auth/verify/")
        payload = token_issuer.verify(
            TokenClass.VERIFICATION, notifier.last_verification_token()
        )
        assert payload.subject == result.user.id

    async def test_duplicate_email_conflicts(self, identity_service, users):
        users.add(EMAIL)
        with pytest.raises(ConflictError) as exc_info:
            await identity_service.sign_up(EMAIL, PASSWORD, "Someone")
        assert exc_info.value.field == "email"

    async def test_mail_failure_keeps_account(self, identity_service, users, notifier):
        notifier.succeed = False
        result = await identity_service.sign_up(EMAIL, PASSWORD, "Test User")
        assert result.verification_sent is False
        assert await users.find_by_email(EMAIL) is not None


# ── verify_email ──────────────────────────────────────────────────────────────


class TestVerifyEmail:
    async def test_marks_user_verified(self, identity_service, users, notifier):
        await identity_service.sign_up(EMAIL, PASSWORD, "Test User")
        user = await identity_service.verify_email(notifier.last_verification_token())
        assert user.is_verified is True
        assert (await users.find_by_email(EMAIL)).is_verified is True

    async def test_second_verification_conflicts(self, identity_service, notifier):
        await identity_service.sign_up(EMAIL, PASSWORD, "Test User")
        token = notifier.last_verification_token()
        await identity_service.verify_email(token)
        with pytest.raises(ConflictError) as exc_info:
            await identity_service.verify_email(token)
        assert exc_info.value.message == MSG_ALREADY_VERIFIED

    async def test_lost_race_conflicts(self, identity_service, users, notifier, mocker):
        await identity_service.sign_up(EMAIL, PASSWORD, "Test User")
        mocker.patch.object(users, "mark_verified", return_value=False)
        with pytest.raises(ConflictError):
            await identity_service.verify_email(notifier.last_verification_token())

    async def test_access_token_is_not_a_verification_token(
        self, identity_service, token_issuer, users
    ):
        user = users.add(EMAIL, verified=False)
        token = token_issuer.issue(TokenClass.ACCESS, user.user_id, EMAIL)
        with pytest.raises(AuthenticationError):
            await identity_service.verify_email(token)

    async def test_garbage_token(self, identity_service):
        with pytest.raises(AuthenticationError):
            await identity_service.verify_email("garbage")

    async def test_deleted_user(self, identity_service, users, notifier):
        await identity_service.sign_up(EMAIL, PASSWORD, "Test User")
        users.remove(EMAIL)
        with pytest.raises(NotFoundError):
            await identity_service.verify_email(notifier.last_verification_token())


# ── resend_verification_email ─────────────────────────────────────────────────


class TestResendVerification:
    async def test_unknown_email(self, identity_service):
        with pytest.raises(NotFoundError):
            await identity_service.resend_verification_email("nobody@mail.com")

    async def test_already_verified(self, identity_service, users):
        users.add(EMAIL, verified=True)
        with pytest.raises(ConflictError):
            await identity_service.resend_verification_email(EMAIL)

    async def test_sends_new_link_and_records_time(
        self, identity_service, users, notifier
    ):
        user = users.add(EMAIL, verified=False)
        assert await identity_service.resend_verification_email(EMAIL) is True
        assert notifier.last("verification")["email"] == EMAIL
        assert users.users[user.user_id].verification_sent_at is not None

    async def test_reports_mail_failure(self, identity_service, users, notifier):
        users.add(EMAIL, verified=False)
        notifier.succeed = False
        assert await identity_service.resend_verification_email(EMAIL) is False


# ── login ─────────────────────────────────────────────────────────────────────


class TestLogin:
    async def test_returns_token_pair(self, identity_service, users, token_issuer):
        user = users.add(EMAIL, PASSWORD)
        pair = await identity_service.login(EMAIL, PASSWORD)
        assert token_issuer.verify(TokenClass.ACCESS, pair.access_token).subject == (
            user.user_id
        )
        assert token_issuer.verify(TokenClass.REFRESH, pair.refresh_token).subject == (
            user.user_id
        )

    async def test_unknown_email(self, identity_service):
        with pytest.raises(ForbiddenError) as exc_info:
            await identity_service.login("nobody@mail.com", PASSWORD)
        assert exc_info.value.message == MSG_NO_SUCH_USER

    async def test_wrong_password(self, identity_service, users):
        users.add(EMAIL, PASSWORD)
        with pytest.raises(ForbiddenError) as exc_info:
            await identity_service.login(EMAIL, "wrong")
        assert exc_info.value.message == MSG_INVALID_PASSWORD

    async def test_unverified(self, identity_service, users):
        users.add(EMAIL, PASSWORD, verified=False)
        with pytest.raises(ForbiddenError) as exc_info:
            await identity_service.login(EMAIL, PASSWORD)
        assert exc_info.value.message == MSG_UNVERIFIED

    async def test_password_checked_before_verification(self, identity_service, users):
        users.add(EMAIL, PASSWORD, verified=False)
        with pytest.raises(ForbiddenError) as exc_info:
            await identity_service.login(EMAIL, "wrong")
        assert exc_info.value.message == MSG_INVALID_PASSWORD

    async def test_hidden_existence_uses_one_message(
        self, users, token_issuer, notifier
    ):
        service = IdentityService(
            users,
            token_issuer,
            notifier,
            client_url=CLIENT_URL,
            reveal_account_existence=False,
        )
        users.add(EMAIL, PASSWORD)
        with pytest.raises(ForbiddenError) as unknown:
            await service.login("nobody@mail.com", PASSWORD)
        with pytest.raises(ForbiddenError) as wrong:
            await service.login(EMAIL, "wrong")
        assert unknown.value.message == wrong.value.message == MSG_INVALID_CREDENTIALS

    async def test_password_checked_off_the_event_loop(
        self, identity_service, users, mocker
    ):
        users.add(EMAIL, PASSWORD)
        threads = []

        def recording_verify(plain, hashed):
            threads.append(threading.get_ident())
            return crypto.verify_password(plain, hashed)

        mocker.patch(
            "services.auth.identity_service.verify_password",
            side_effect=recording_verify,
        )
        await identity_service.login(EMAIL, PASSWORD)
        assert threads and threading.get_ident() not in threads


# ── refresh ───────────────────────────────────────────────────────────────────


class TestRefresh:
    async def test_rotates_pair(self, identity_service, users, token_issuer):
        users.add(EMAIL, PASSWORD)
        first = await identity_service.login(EMAIL, PASSWORD)
        second = await identity_service.refresh(first.refresh_token)
        assert second.refresh_token != first.refresh_token
        assert second.access_token != first.access_token
        token_issuer.verify(TokenClass.ACCESS, second.access_token)

    async def test_access_token_rejected(self, identity_service, users):
        users.add(EMAIL, PASSWORD)
        pair = await identity_service.login(EMAIL, PASSWORD)
        with pytest.raises(ForbiddenError) as exc_info:
            await identity_service.refresh(pair.access_token)
        assert exc_info.value.message == MSG_INVALID_REFRESH

    async def test_deleted_user(self, identity_service, users):
        users.add(EMAIL, PASSWORD)
        pair = await identity_service.login(EMAIL, PASSWORD)
        users.remove(EMAIL)
        with pytest.raises(NotFoundError):
            await identity_service.refresh(pair.refresh_token)
