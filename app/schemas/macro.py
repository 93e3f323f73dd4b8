from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from app.schemas.common import BaseReadModel, CamelModel, strip_required


class MacroCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return strip_required(value)


class MacroRead(BaseReadModel):
    id: int
    title: str
    content: str
    created_by_id: int
    created_at: datetime
