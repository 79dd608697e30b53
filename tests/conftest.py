"""
Shared fixtures.

The auth services are tested against in-memory collaborators: a dict-backed
user directory, a notifier that records every message instead of sending it,
and InMemoryEphemeralStore driven by a controllable clock.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import pytest
from bson import ObjectId

from config import JWTSettings, RecoverySettings
from errors import ConflictError
from infrastructure.cache.memory_store import InMemoryEphemeralStore
from schemas.models.user import Role, UserDoc
from services.auth.access_guard import AccessGuard
from services.auth.identity_service import IdentityService
from services.auth.recovery_flow import RecoveryFlow
from services.auth.token_issuer import TokenIssuer
from shared.crypto import hash_password

CLIENT_URL = "http://client.local"


# ── Fakes ─────────────────────────────────────────────────────────────────────


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUserDirectory:
    """Dict-backed UserDirectory with the same projection rules as Mongo."""

    def __init__(self) -> None:
        self.users: dict[str, UserDoc] = {}

    def add(
        self,
        email: str,
        password: str = "password123",
        *,
        full_name: str = "Test User",
        verified: bool = True,
        roles: Optional[list[Role]] = None,
    ) -> UserDoc:
        """Insert a user synchronously; for arranging test state."""
        user = UserDoc(
            _id=ObjectId(),
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
            roles=roles or [Role.USER],
            is_verified=verified,
            created_at=datetime.now(timezone.utc),
        )
        self.users[user.user_id] = user
        return self._out(user, include_password=False)

    def remove(self, email: str) -> None:
        for user_id, user in list(self.users.items()):
            if user.email == email:
                del self.users[user_id]

    @staticmethod
    def _out(user: UserDoc, include_password: bool) -> UserDoc:
        copy = user.model_copy(deep=True)
        if not include_password:
            copy.password_hash = None
        return copy

    async def create(self, user: UserDoc) -> UserDoc:
        if any(u.email == user.email for u in self.users.values()):
            raise ConflictError("Email already in use", field="email")
        user.id = ObjectId()
        user.created_at = user.created_at or datetime.now(timezone.utc)
        self.users[user.user_id] = user.model_copy(deep=True)
        return user

    async def find_by_email(
        self, email: str, include_password: bool = False
    ) -> Optional[UserDoc]:
        for user in self.users.values():
            if user.email == email:
                return self._out(user, include_password)
        return None

    async def find_by_id(self, user_id: str) -> Optional[UserDoc]:
        user = self.users.get(str(user_id))
        return self._out(user, include_password=False) if user else None

    async def mark_verified(self, user_id: str) -> bool:
        user = self.users.get(str(user_id))
        if user is None or user.is_verified:
            return False
        user.is_verified = True
        return True

    async def touch_verification_sent(self, user_id: str, sent_at: datetime) -> None:
        user = self.users.get(str(user_id))
        if user is not None:
            user.verification_sent_at = sent_at

    async def update_password(self, user_id: str, password_hash: str) -> None:
        user = self.users.get(str(user_id))
        if user is not None:
            user.password_hash = password_hash

    async def list_users(self, page: int, limit: int) -> tuple[list[UserDoc], int]:
        ordered = list(self.users.values())
        start = (max(page, 1) - 1) * limit
        chunk = ordered[start : start + limit]
        return [self._out(u, include_password=False) for u in chunk], len(ordered)

    async def ping(self) -> bool:
        return True


class RecordingNotifier:
    """Notifier that keeps every message; ``succeed`` controls the result."""

    def __init__(self) -> None:
        self.succeed = True
        self.sent: list[tuple[str, dict]] = []

    async def send_verification_email(
        self, email: str, full_name: Optional[str], verification_link: str
    ) -> bool:
        self.sent.append(
            ("verification", {"email": email, "link": verification_link})
        )
        return self.succeed

    async def send_otp_email(
        self,
        email: str,
        full_name: Optional[str],
        otp_code: str,
        expires_in_minutes: int,
    ) -> bool:
        self.sent.append(
            (
                "otp",
                {
                    "email": email,
                    "otp_code": otp_code,
                    "expires_in_minutes": expires_in_minutes,
                },
            )
        )
        return self.succeed

    async def send_notification(self, email: str, subject: str, message: str) -> bool:
        self.sent.append(
            ("notification", {"email": email, "subject": subject, "message": message})
        )
        return self.succeed

    def of_kind(self, kind: str) -> list[dict]:
        return [data for k, data in self.sent if k == kind]

    def last(self, kind: str) -> dict:
        messages = self.of_kind(kind)
        assert messages, f"no {kind} message was sent"
        return messages[-1]

    def last_verification_token(self) -> str:
        return self.last("verification")["link"].rsplit("/", 1)[1]


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryEphemeralStore:
    return InMemoryEphemeralStore(clock=clock)


@pytest.fixture
def users() -> FakeUserDirectory:
    return FakeUserDirectory()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def jwt_settings() -> JWTSettings:
    return JWTSettings(
        jwt_access_secret="access-secret-for-tests",
        jwt_refresh_secret="refresh-secret-for-tests",
        jwt_verification_secret="verification-secret-for-tests",
    )


@pytest.fixture
def recovery_settings() -> RecoverySettings:
    return RecoverySettings(
        otp_ttl_seconds=600,
        otp_max_attempts=3,
        rate_limit_seconds=120,
        reset_token_ttl_seconds=600,
    )


@pytest.fixture
def token_issuer(jwt_settings) -> TokenIssuer:
    return TokenIssuer(jwt_settings)


@pytest.fixture
def identity_service(users, token_issuer, notifier) -> IdentityService:
    return IdentityService(users, token_issuer, notifier, client_url=CLIENT_URL)


@pytest.fixture
def recovery_flow(store, users, notifier, recovery_settings) -> RecoveryFlow:
    return RecoveryFlow(store, users, notifier, settings=recovery_settings)


@pytest.fixture
def access_guard(token_issuer, users) -> AccessGuard:
    return AccessGuard(token_issuer, users)
