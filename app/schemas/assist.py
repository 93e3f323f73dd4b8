from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from app.schemas.common import BaseReadModel, CamelModel, strip_required


class AssistRequest(CamelModel):
    query: str = Field(min_length=1, max_length=4000)
    session_id: str | None = Field(default=None, max_length=128)

    @field_validator("query")
    @classmethod
    def strip_query(cls, value: str) -> str:
        return strip_required(value)


class AssistResponse(CamelModel):
    response: str
    session_id: str | None = None


class ChatMessageRead(BaseReadModel):
    id: int
    content: str
    is_from_user: bool
    created_at: datetime
