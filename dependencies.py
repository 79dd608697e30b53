"""
FastAPI dependency providers.

Components are built once in the app lifespan (see app.wire_services) and
kept on app.state; these providers only hand them out.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from fastapi import Depends, Header, Request

from config import AppSettings
from infrastructure.cache.ephemeral_store import EphemeralStore
from infrastructure.persistence.user_directory import UserDirectory
from schemas.models.user import UserDoc
from services.auth.access_guard import AccessGuard, bearer_token
from services.auth.identity_service import IdentityService
from services.auth.recovery_flow import RecoveryFlow


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_user_directory(request: Request) -> UserDirectory:
    return request.app.state.user_directory


def get_ephemeral_store(request: Request) -> EphemeralStore:
    return request.app.state.ephemeral_store


def get_identity_service(request: Request) -> IdentityService:
    return request.app.state.identity_service


def get_recovery_flow(request: Request) -> RecoveryFlow:
    return request.app.state.recovery_flow


def get_access_guard(request: Request) -> AccessGuard:
    return request.app.state.access_guard


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    guard: AccessGuard = Depends(get_access_guard),
) -> UserDoc:
    """Resolve the bearer token to a user, or raise AuthenticationError."""
    user = await guard.authenticate(bearer_token(authorization))
    request.state.user_id = user.user_id
    return user


def require_operation(operation: str) -> Callable[..., Awaitable[UserDoc]]:
    """Dependency factory: authenticate, then check OPERATION_ROLES[operation]."""

    async def _dependency(
        user: UserDoc = Depends(get_current_user),
        guard: AccessGuard = Depends(get_access_guard),
    ) -> UserDoc:
        return guard.authorize(operation, user)

    return _dependency
