"""
Response DTOs for /user endpoints.

UserListResponse - GET /user (ADMIN)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from schemas.dto.responses.auth import UserResponse
from schemas.dto.responses.common import PaginationMeta


class UserListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    users: list[UserResponse]
    pagination: PaginationMeta
