from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from app.core.enums import TicketPriority, TicketStatus
from app.schemas.common import BaseReadModel, CamelModel, strip_required
from app.schemas.user import AuthorRead


class TicketCreate(CamelModel):
    subject: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    priority: TicketPriority = TicketPriority.NORMAL
    order_number: str | None = Field(default=None, max_length=64)

    @field_validator("subject", "description")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return strip_required(value)


class TicketStatusUpdate(CamelModel):
    status: TicketStatus


class TicketAssign(CamelModel):
    assignee_id: int | None


class TicketMessageCreate(CamelModel):
    content: str = Field(min_length=1)
    is_from_ai: bool = Field(default=False, alias="isFromAI")

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        return strip_required(value)


class TicketFileCreate(CamelModel):
    filename: str = Field(min_length=1, max_length=255)
    file_url: str = Field(min_length=1)
    file_size: int = Field(ge=0)
    mime_type: str = Field(min_length=1, max_length=127)


class TicketRead(BaseReadModel):
    id: int
    subject: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    requester_id: int
    assignee_id: int | None = None
    order_number: str | None = None
    created_at: datetime
    updated_at: datetime


class TicketMessageRead(BaseReadModel):
    id: int
    ticket_id: int
    author_id: int | None = None
    content: str
    is_from_ai: bool = Field(alias="isFromAI")
    created_at: datetime
    author: AuthorRead | None = None


class TicketFileRead(BaseReadModel):
    id: int
    ticket_id: int
    filename: str
    file_url: str
    file_size: int
    mime_type: str
    created_at: datetime
