"""Unit tests for the demo-user seeding script."""

from unittest.mock import AsyncMock, MagicMock

from schemas.models.user import Role
from seed import SEED_USERS, build_seed_users, clear_users, seed_users
from shared.crypto import verify_password


def _directory(count: int = 0):
    directory = MagicMock()
    directory.count = AsyncMock(return_value=count)
    directory.create = AsyncMock(side_effect=lambda user: user)
    directory.delete_all = AsyncMock(return_value=4)
    return directory


def test_seed_users_are_hashed_and_cover_every_role():
    built = build_seed_users()
    assert len(built) == len(SEED_USERS)
    for user, entry in zip(built, SEED_USERS):
        assert user.password_hash != entry["password"]
        assert verify_password(entry["password"], user.password_hash)
    roles = {role for user in built for role in user.roles}
    assert roles == {Role.USER, Role.INSTRUCTOR, Role.ADMIN}


async def test_seed_inserts_into_empty_collection():
    directory = _directory(count=0)
    assert await seed_users(directory) == len(SEED_USERS)
    assert directory.create.await_count == len(SEED_USERS)


async def test_seed_skips_populated_collection():
    directory = _directory(count=1)
    assert await seed_users(directory) == 0
    directory.create.assert_not_awaited()


async def test_clear_removes_everything():
    directory = _directory()
    assert await clear_users(directory) == 4
