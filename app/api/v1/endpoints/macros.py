from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_agent, get_db_session
from app.core.exceptions import NotFoundError
from app.core.responses import success_response
from app.models import User
from app.repositories.macro import MacroRepository
from app.schemas.macro import MacroCreate, MacroRead

router = APIRouter(prefix="/macros", tags=["Macros"])


@router.get("")
async def list_macros(
    request: Request,
    _agent: User = Depends(get_current_agent),
    session: AsyncSession = Depends(get_db_session),
):
    macros = await MacroRepository(session).list_all()
    return success_response(data=[MacroRead.model_validate(item) for item in macros], request=request)


@router.get("/{macro_id}")
async def get_macro(
    macro_id: int,
    request: Request,
    _agent: User = Depends(get_current_agent),
    session: AsyncSession = Depends(get_db_session),
):
    macro = await MacroRepository(session).get_by_id(macro_id)
    if macro is None:
        raise NotFoundError("Macro not found")
    return success_response(data=MacroRead.model_validate(macro), request=request)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_macro(
    payload: MacroCreate,
    request: Request,
    agent: User = Depends(get_current_agent),
    session: AsyncSession = Depends(get_db_session),
):
    macro = await MacroRepository(session).create(title=payload.title, content=payload.content, created_by_id=agent.id)
    await session.commit()
    return success_response(data=MacroRead.model_validate(macro), request=request)
