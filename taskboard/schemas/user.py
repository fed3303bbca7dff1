from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

from taskboard.utils.timestamps import format_timestamp

# ISO-8601, UTC, millisecond precision, "Z" suffix
Timestamp = Annotated[datetime, PlainSerializer(format_timestamp, return_type=str, when_used="json")]


class UserCreate(BaseModel):
    email: str | None = None
    password: str | None = None


class SessionCreate(BaseModel):
    email: str | None = None
    password: str | None = None


class Token(BaseModel):
    token: str


class UserUpdate(BaseModel):
    password: str | None = None


class UserResponse(BaseModel):
    id: int
    username: str
    created_at: Timestamp = Field(alias="createdAt")
    updated_at: Timestamp = Field(alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True
