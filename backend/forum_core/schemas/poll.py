import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .base import reject_null


def clean_options(options: list[str] | None) -> list[str] | None:
    if options is None:
        return None
    cleaned = [option.strip() for option in options]
    if any(not option for option in cleaned):
        raise ValueError("Poll options must not be empty")
    if len(set(cleaned)) != len(cleaned):
        raise ValueError("Poll options must be unique")
    return cleaned


class PollCreate(BaseModel):
    """Fields accepted when attaching a poll to a topic."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    topic_id: uuid.UUID
    question: str = Field(..., min_length=1, max_length=255)
    options: list[str] = Field(..., min_length=2)
    is_closed: bool = False
    is_multiple: bool = False
    is_public: bool = False
    max_options: int = Field(0, ge=0)
    end_at: datetime | None = None

    @field_validator("options")
    @classmethod
    def validate_options(cls, value: list[str]) -> list[str]:
        return clean_options(value)

    @model_validator(mode="after")
    def check_max_options(self) -> "PollCreate":
        if self.max_options > len(self.options):
            raise ValueError("max_options cannot exceed the number of options")
        return self


class PollUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    question: str | None = Field(None, min_length=1, max_length=255)
    options: list[str] | None = Field(None, min_length=2)
    is_closed: bool | None = None
    is_multiple: bool | None = None
    is_public: bool | None = None
    max_options: int | None = Field(None, ge=0)
    end_at: datetime | None = None

    @field_validator("options")
    @classmethod
    def validate_options(cls, value: list[str] | None) -> list[str] | None:
        return clean_options(value)

    @field_validator(
        "question", "options", "is_closed", "is_multiple", "is_public", "max_options",
        mode="before",
    )
    @classmethod
    def require_value(cls, value: Any) -> Any:
        return reject_null(value)


class PollVoteCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vote: list[int] = Field(..., min_length=1)
