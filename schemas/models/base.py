"""
Shared base for documents stored in MongoDB.

ObjectIdField accepts a bson ObjectId or its 24-hex string form and renders
as a string in JSON. MongoDocument exposes the Mongo `_id` as `id` and
converts between model instances and raw pymongo dicts.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, PlainValidator


def to_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError(f"Invalid ObjectId: {value!r}")


ObjectIdField = Annotated[
    ObjectId,
    PlainValidator(to_object_id),
    PlainSerializer(str, return_type=str, when_used="json"),
]


def _bson_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_bson_value(item) for item in value]
    return value


class MongoDocument(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: Optional[ObjectIdField] = Field(default=None, alias="_id")

    def to_mongo(self) -> dict:
        """Dict for insert/update: enums stored by value, unset `_id` left out."""
        data = {
            key: _bson_value(value)
            for key, value in self.model_dump(by_alias=True).items()
        }
        if data.get("_id") is None:
            data.pop("_id", None)
        return data

    @classmethod
    def from_mongo(cls, data: Optional[dict]) -> Optional["MongoDocument"]:
        if data is None:
            return None
        return cls.model_validate(data)
