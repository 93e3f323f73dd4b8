from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from app.core.enums import TicketStatus
from app.schemas.common import CamelModel, strip_required


class ClientFrame(CamelModel):
    event: str = Field(min_length=1, max_length=64)
    data: Any = None


class TicketRoomEvent(CamelModel):
    ticket_id: int


class TicketMessageEvent(CamelModel):
    ticket_id: int
    content: str = Field(min_length=1)
    is_from_ai: bool = Field(default=False, alias="isFromAI")

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        return strip_required(value)


class TicketStatusEvent(CamelModel):
    ticket_id: int
    status: TicketStatus


class AIMessageEvent(CamelModel):
    message: str = Field(min_length=1, max_length=4000)
    session_id: str | None = Field(default=None, max_length=128)

    @field_validator("message")
    @classmethod
    def strip_message(cls, value: str) -> str:
        return strip_required(value)
