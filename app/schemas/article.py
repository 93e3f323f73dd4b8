from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from app.schemas.common import BaseReadModel, CamelModel, strip_required


class ArticleCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    category_id: int | None = None
    is_published: bool = True

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return strip_required(value)


class ArticleUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = Field(default=None, min_length=1)
    category_id: int | None = None
    is_published: bool | None = None

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return strip_required(value) if value is not None else None


class ArticleRead(BaseReadModel):
    id: int
    title: str
    content: str
    author_id: int | None = None
    category_id: int | None = None
    is_published: bool
    view_count: int
    created_at: datetime
    updated_at: datetime
