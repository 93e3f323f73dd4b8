from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_agent, get_current_user, get_db_session
from app.core.enums import TicketStatus
from app.core.exceptions import ValidationAppError
from app.core.responses import success_response
from app.models import User
from app.schemas.ticket import (
    TicketAssign,
    TicketCreate,
    TicketFileCreate,
    TicketFileRead,
    TicketMessageCreate,
    TicketRead,
    TicketStatusUpdate,
)
from app.services.tickets import TicketService

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.get("")
async def list_tickets(
    request: Request,
    status_filter: TicketStatus | None = Query(default=None, alias="status"),
    assignee: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    if assignee is not None and assignee != "me":
        raise ValidationAppError(
            "Unsupported assignee filter",
            details={"errors": [{"loc": ["query", "assignee"], "msg": "only 'me' is supported"}]},
        )
    tickets = await TicketService(session).list_for(
        current_user,
        status=status_filter,
        assigned_to_me=assignee == "me",
    )
    return success_response(data=[TicketRead.model_validate(item) for item in tickets], request=request)


@router.get("/{ticket_id}")
async def get_ticket(
    ticket_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    ticket = await TicketService(session).get_for_read(current_user, ticket_id)
    return success_response(data=TicketRead.model_validate(ticket), request=request)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    ticket = await TicketService(session).create(current_user, payload)
    return success_response(data=TicketRead.model_validate(ticket), request=request)


@router.patch("/{ticket_id}/status")
async def update_ticket_status(
    ticket_id: int,
    payload: TicketStatusUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    ticket = await TicketService(session).set_status(current_user, ticket_id, payload.status)
    return success_response(data=TicketRead.model_validate(ticket), request=request)


@router.patch("/{ticket_id}/assign")
async def assign_ticket(
    ticket_id: int,
    payload: TicketAssign,
    request: Request,
    agent: User = Depends(get_current_agent),
    session: AsyncSession = Depends(get_db_session),
):
    ticket = await TicketService(session).assign(agent, ticket_id, payload.assignee_id)
    return success_response(data=TicketRead.model_validate(ticket), request=request)


@router.get("/{ticket_id}/messages")
async def list_ticket_messages(
    ticket_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    service = TicketService(session)
    messages = await service.list_messages(current_user, ticket_id)
    return success_response(data=await service.enrich_messages(messages), request=request)


@router.post("/{ticket_id}/messages", status_code=status.HTTP_201_CREATED)
async def post_ticket_message(
    ticket_id: int,
    payload: TicketMessageCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    service = TicketService(session)
    _, message = await service.post_message(current_user, ticket_id, payload.content, is_from_ai=payload.is_from_ai)
    (enriched,) = await service.enrich_messages([message])
    return success_response(data=enriched, request=request)


@router.get("/{ticket_id}/files")
async def list_ticket_files(
    ticket_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    files = await TicketService(session).list_files(current_user, ticket_id)
    return success_response(data=[TicketFileRead.model_validate(item) for item in files], request=request)


@router.post("/{ticket_id}/files", status_code=status.HTTP_201_CREATED)
async def add_ticket_file(
    ticket_id: int,
    payload: TicketFileCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    item = await TicketService(session).add_file(current_user, ticket_id, payload)
    return success_response(data=TicketFileRead.model_validate(item), request=request)
