"""
User endpoints behind the access guard.

GET /user/me    - the authenticated user
GET /user/{id}  - any user, for authenticated callers
GET /user       - paginated listing, ADMIN only
"""

from __future__ import annotations

import math

from fastapi import APIRouter, Depends, Query

from dependencies import get_user_directory, require_operation
from errors import NotFoundError
from infrastructure.persistence.user_directory import UserDirectory
from schemas.dto.responses.auth import UserResponse
from schemas.dto.responses.common import PaginationMeta
from schemas.dto.responses.user import UserListResponse
from schemas.models.user import UserDoc

router = APIRouter(prefix="/user", tags=["user"])


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    _admin: UserDoc = Depends(require_operation("user:list")),
    users: UserDirectory = Depends(get_user_directory),
) -> UserListResponse:
    docs, total = await users.list_users(page, limit)
    return UserListResponse(
        users=[UserResponse.from_doc(doc) for doc in docs],
        pagination=PaginationMeta(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if total else 0,
        ),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    user: UserDoc = Depends(require_operation("user:me")),
) -> UserResponse:
    return UserResponse.from_doc(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    _caller: UserDoc = Depends(require_operation("user:get")),
    users: UserDirectory = Depends(get_user_directory),
) -> UserResponse:
    user = await users.find_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return UserResponse.from_doc(user)
