"""
Shared base for the MongoDB document models.

Documents keep their ``_id`` as a real ObjectId in Python (``model_dump()``)
and render it as a hex string only in JSON mode, so created_by edges and
``$in`` filters compare ObjectIds, never strings.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, TypeVar

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler
from pydantic_core import core_schema

DocT = TypeVar("DocT", bound="MongoBaseModel")


class PyObjectId(ObjectId):
    """ObjectId field type: accepts an ObjectId or its 24-char hex form."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls.coerce,
            serialization=core_schema.to_string_ser_schema(when_used="json-unless-none"),
        )

    @classmethod
    def coerce(cls, value: Any) -> ObjectId:
        if isinstance(value, ObjectId):
            return value
        if isinstance(value, str) and ObjectId.is_valid(value):
            return ObjectId(value)
        raise ValueError(f"not an ObjectId: {value!r}")


class MongoBaseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: Optional[PyObjectId] = Field(default=None, alias="_id")

    def to_mongo(self) -> dict:
        """Document dict for insert_one; an unset id is left for the server to assign."""
        data = self.model_dump(by_alias=True)
        if data.get("_id") is None:
            del data["_id"]
        return data

    @classmethod
    def from_mongo(cls: type[DocT], raw: Optional[dict]) -> Optional[DocT]:
        return None if raw is None else cls.model_validate(raw)

    @classmethod
    def from_cursor(cls: type[DocT], cursor: Iterable[dict]) -> list[DocT]:
        return [cls.model_validate(raw) for raw in cursor]
