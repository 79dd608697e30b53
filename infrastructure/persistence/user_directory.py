"""UserDirectory protocol and its MongoDB implementation.

Services depend on the protocol, not the concrete class. The Mongo
implementation owns two invariants:

- email uniqueness (unique index; a duplicate insert raises ConflictError)
- is_verified is monotonic (mark_verified only matches unverified users)

password_hash is projected out of every read unless include_password=True.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Protocol

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from errors import ConflictError
from schemas.models.user import UserDoc
from shared.logging import get_logger

log = get_logger(__name__)

USERS_COLLECTION = "users"
_WITHOUT_PASSWORD = {"password_hash": 0}


class UserDirectory(Protocol):
    async def create(self, user: UserDoc) -> UserDoc: ...

    async def find_by_email(
        self, email: str, include_password: bool = False
    ) -> Optional[UserDoc]: ...

    async def find_by_id(self, user_id: str) -> Optional[UserDoc]: ...

    async def mark_verified(self, user_id: str) -> bool: ...

    async def touch_verification_sent(self, user_id: str, sent_at: datetime) -> None: ...

    async def update_password(self, user_id: str, password_hash: str) -> None: ...

    async def list_users(self, page: int, limit: int) -> tuple[list[UserDoc], int]: ...

    async def ping(self) -> bool: ...


def _object_id(user_id: str) -> Optional[ObjectId]:
    if isinstance(user_id, ObjectId):
        return user_id
    if isinstance(user_id, str) and ObjectId.is_valid(user_id):
        return ObjectId(user_id)
    return None


class MongoUserDirectory:
    def __init__(self, db: AsyncDatabase) -> None:
        self._db = db
        self._users = db[USERS_COLLECTION]

    async def ensure_indexes(self) -> None:
        await self._users.create_index([("email", ASCENDING)], unique=True)

    async def create(self, user: UserDoc) -> UserDoc:
        now = datetime.now(timezone.utc)
        user.created_at = user.created_at or now
        user.updated_at = now
        try:
            result = await self._users.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            raise ConflictError("Email already in use", field="email") from e
        user.id = result.inserted_id
        log.info("user_created", user_id=str(result.inserted_id))
        return user

    async def find_by_email(
        self, email: str, include_password: bool = False
    ) -> Optional[UserDoc]:
        projection = None if include_password else _WITHOUT_PASSWORD
        doc = await self._users.find_one({"email": email}, projection)
        return UserDoc.from_mongo(doc)

    async def find_by_id(self, user_id: str) -> Optional[UserDoc]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        doc = await self._users.find_one({"_id": oid}, _WITHOUT_PASSWORD)
        return UserDoc.from_mongo(doc)

    async def mark_verified(self, user_id: str) -> bool:
        oid = _object_id(user_id)
        if oid is None:
            return False
        result = await self._users.update_one(
            {"_id": oid, "is_verified": False},
            {
                "$set": {
                    "is_verified": True,
                    "updated_at": datetime.now(timezone.utc),
                }
            },
        )
        return result.modified_count == 1

    async def touch_verification_sent(self, user_id: str, sent_at: datetime) -> None:
        oid = _object_id(user_id)
        if oid is None:
            return
        await self._users.update_one(
            {"_id": oid},
            {"$set": {"verification_sent_at": sent_at, "updated_at": sent_at}},
        )

    async def update_password(self, user_id: str, password_hash: str) -> None:
        oid = _object_id(user_id)
        if oid is None:
            return
        await self._users.update_one(
            {"_id": oid},
            {
                "$set": {
                    "password_hash": password_hash,
                    "updated_at": datetime.now(timezone.utc),
                }
            },
        )

    async def list_users(self, page: int, limit: int) -> tuple[list[UserDoc], int]:
        page = max(page, 1)
        limit = max(limit, 1)
        cursor = (
            self._users.find({}, _WITHOUT_PASSWORD)
            .sort("created_at", DESCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        docs = await cursor.to_list(length=limit)
        total = await self._users.count_documents({})
        return [UserDoc.from_mongo(d) for d in docs], total

    async def count(self) -> int:
        return await self._users.count_documents({})

    async def delete_all(self) -> int:
        result = await self._users.delete_many({})
        return result.deleted_count

    async def ping(self) -> bool:
        await self._db.command("ping")
        return True
