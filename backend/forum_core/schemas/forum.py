import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .base import reject_null


class ForumCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: str = Field(..., min_length=1, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    parent_id: uuid.UUID | None = None
    sort_order: int = Field(0, ge=0)


class ForumUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    parent_id: uuid.UUID | None = None
    sort_order: int | None = Field(None, ge=0)

    @field_validator("title", "slug", "sort_order", mode="before")
    @classmethod
    def require_value(cls, value: Any) -> Any:
        return reject_null(value)


class TopicCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    forum_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255)


class TopicUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255)
    closed: bool | None = None

    @field_validator("title", "slug", "closed", mode="before")
    @classmethod
    def require_value(cls, value: Any) -> Any:
        return reject_null(value)
