#!/usr/bin/env python3
"""
User seeding script.

Inserts a handful of demo users when the users collection is empty, or
removes every user with --clear.

Run with:
    python seed.py           # seed
    python seed.py --clear   # wipe
"""

import argparse
import asyncio
import sys

from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import DatabaseSettings
from infrastructure.persistence.user_directory import MongoUserDirectory
from schemas.models.user import Role, UserDoc
from shared.crypto import hash_password
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)

SEED_USERS = [
    {
        "full_name": "John Doe",
        "email": "john@example.com",
        "password": "password123",
        "roles": [Role.USER],
        "is_verified": True,
    },
    {
        "full_name": "Jane Smith",
        "email": "jane@example.com",
        "password": "securepass456",
        "roles": [Role.INSTRUCTOR],
        "is_verified": True,
    },
    {
        "full_name": "Bob Johnson",
        "email": "bob@example.com",
        "password": "mypassword789",
        "roles": [Role.USER],
        "is_verified": False,
    },
    {
        "full_name": "Alice Wilson",
        "email": "alice@example.com",
        "password": "alicepass101",
        "roles": [Role.ADMIN],
        "is_verified": True,
    },
]


def build_seed_users() -> list[UserDoc]:
    return [
        UserDoc(
            email=entry["email"],
            password_hash=hash_password(entry["password"]),
            full_name=entry["full_name"],
            roles=entry["roles"],
            is_verified=entry["is_verified"],
        )
        for entry in SEED_USERS
    ]


async def seed_users(directory: MongoUserDirectory) -> int:
    """Insert the demo users unless the collection already has users."""
    if await directory.count() > 0:
        log.info("seed_skipped", reason="users_exist")
        return 0

    for user in build_seed_users():
        await directory.create(user)
    log.info("seed_completed", count=len(SEED_USERS))
    return len(SEED_USERS)


async def clear_users(directory: MongoUserDirectory) -> int:
    deleted = await directory.delete_all()
    log.info("seed_cleared", count=deleted)
    return deleted


async def run(clear: bool) -> None:
    settings = DatabaseSettings()
    client: AsyncMongoClient = AsyncMongoClient(settings.mongodb_uri)
    try:
        directory = MongoUserDirectory(client[settings.db_name])
        await directory.ensure_indexes()
        if clear:
            await clear_users(directory)
        else:
            await seed_users(directory)
    finally:
        await client.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed or clear demo users.")
    parser.add_argument(
        "--clear", action="store_true", help="delete all users instead of seeding"
    )
    args = parser.parse_args()

    setup_logging()
    try:
        asyncio.run(run(args.clear))
    except KeyboardInterrupt:
        print("\nSeeding interrupted")
    except Exception as e:
        log.error("seed_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    main()
