from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from app.schemas.common import BaseReadModel, CamelModel, strip_required


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = None
    icon: str | None = Field(default=None, max_length=64)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return strip_required(value)


class CategoryUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    icon: str | None = Field(default=None, max_length=64)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str | None) -> str | None:
        return strip_required(value) if value is not None else None


class CategoryRead(BaseReadModel):
    id: int
    name: str
    description: str | None = None
    icon: str | None = None
    created_at: datetime
