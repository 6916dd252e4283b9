from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .base import reject_null


class UserCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password_hash: str | None = Field(None, max_length=255)


class UserUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    password_hash: str | None = Field(None, max_length=255)
    last_visit: datetime | None = None
    last_page: str | None = Field(None, max_length=255)

    @field_validator("name", "email", mode="before")
    @classmethod
    def require_value(cls, value: Any) -> Any:
        return reject_null(value)
