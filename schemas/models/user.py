"""
User document model.

Maps to the `users` MongoDB collection.

password_hash is projected out of every read unless the caller explicitly
asks for it, so on most instances it is None.
is_verified only ever moves from False to True.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from schemas.models.base import MongoDocument


class Role(str, Enum):
    USER = "USER"
    INSTRUCTOR = "INSTRUCTOR"
    ADMIN = "ADMIN"


class UserDoc(MongoDocument):
    """Document model for the `users` collection."""

    email: str
    password_hash: Optional[str] = None
    full_name: str
    roles: list[Role] = Field(default_factory=lambda: [Role.USER])
    is_verified: bool = False
    verification_sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def user_id(self) -> str:
        return str(self.id) if self.id is not None else ""

    @property
    def role_set(self) -> frozenset[Role]:
        return frozenset(self.roles)
