"""
Base Pydantic schemas shared by every API model.

Python attributes are snake_case; JSON on the wire is camelCase.
"""

from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema that reads ORM objects and speaks camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict:
        """Serialize the way API clients receive it."""
        return self.model_dump(mode="json", by_alias=True)


class TimestampedRead(CamelModel):
    """
    Base schema for reading stored rows.

    Includes the auto-generated id and timestamps.
    """

    id: str
    created_at: datetime
    updated_at: datetime


class ApiResponse(CamelModel, Generic[T]):
    """Success envelope: {success: true, data, message?}."""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class MessageResponse(CamelModel):
    """Success envelope for endpoints that return no data."""

    success: bool = True
    message: str
