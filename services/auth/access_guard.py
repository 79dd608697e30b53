"""
Bearer-token authentication and the static operation → roles table.

AccessGuard turns an access token into the user it was issued for.
Authorization is a flat lookup: OPERATION_ROLES names the roles an operation
requires, and a caller is admitted when its roles intersect that set (an
empty set admits any authenticated user). Operations missing from the table
are denied.
"""

from __future__ import annotations

from typing import Iterable, Optional

from errors import AuthenticationError, ForbiddenError
from infrastructure.persistence.user_directory import UserDirectory
from schemas.models.user import Role, UserDoc
from services.auth.token_issuer import TokenClass, TokenIssuer

MSG_MISSING_TOKEN = "missing access token"
MSG_INVALID_TOKEN = "invalid or expired token"
MSG_USER_NOT_FOUND = "User not found"
MSG_ACCESS_DENIED = "Access denied: you do not have access to this resource"

OPERATION_ROLES: dict[str, frozenset[Role]] = {
    "user:me": frozenset(),
    "user:get": frozenset(),
    "user:list": frozenset({Role.ADMIN}),
}


def is_authorized(operation: str, roles: Iterable[Role]) -> bool:
    required = OPERATION_ROLES.get(operation)
    if required is None:
        return False
    if not required:
        return True
    return bool(required & frozenset(roles))


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


class AccessGuard:
    def __init__(self, token_issuer: TokenIssuer, user_directory: UserDirectory) -> None:
        self._tokens = token_issuer
        self._users = user_directory

    async def authenticate(self, token: Optional[str]) -> UserDoc:
        if not token:
            raise AuthenticationError(MSG_MISSING_TOKEN)
        payload = self._tokens.verify(
            TokenClass.ACCESS, token, error=AuthenticationError, message=MSG_INVALID_TOKEN
        )
        user = await self._users.find_by_id(payload.subject)
        if user is None:
            raise AuthenticationError(MSG_USER_NOT_FOUND)
        return user

    def authorize(self, operation: str, user: UserDoc) -> UserDoc:
        if not is_authorized(operation, user.role_set):
            raise ForbiddenError(MSG_ACCESS_DENIED)
        return user
