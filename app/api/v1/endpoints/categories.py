from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_content_editor, get_db_session
from app.core.exceptions import NotFoundError
from app.core.responses import success_response
from app.repositories.category import CategoryRepository
from app.schemas.category import CategoryCreate, CategoryRead, CategoryUpdate

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("")
async def list_categories(request: Request, session: AsyncSession = Depends(get_db_session)):
    categories = await CategoryRepository(session).list_all()
    return success_response(data=[CategoryRead.model_validate(item) for item in categories], request=request)


@router.get("/{category_id}")
async def get_category(category_id: int, request: Request, session: AsyncSession = Depends(get_db_session)):
    category = await CategoryRepository(session).get_by_id(category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return success_response(data=CategoryRead.model_validate(category), request=request)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    request: Request,
    _agent=Depends(get_content_editor),
    session: AsyncSession = Depends(get_db_session),
):
    category = await CategoryRepository(session).create(**payload.model_dump())
    await session.commit()
    return success_response(data=CategoryRead.model_validate(category), request=request)


@router.patch("/{category_id}")
async def update_category(
    category_id: int,
    payload: CategoryUpdate,
    request: Request,
    _agent=Depends(get_content_editor),
    session: AsyncSession = Depends(get_db_session),
):
    repo = CategoryRepository(session)
    category = await repo.get_by_id(category_id)
    if category is None:
        raise NotFoundError("Category not found")
    values = payload.model_dump(exclude_unset=True)
    if values.get("name", "") is None:
        values.pop("name")
    category = await repo.update(category, **values)
    await session.commit()
    return success_response(data=CategoryRead.model_validate(category), request=request)
