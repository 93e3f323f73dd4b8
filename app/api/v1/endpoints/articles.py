from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.deps import get_content_editor, get_db_session, get_optional_user, get_provider, get_session_factory
from app.core.responses import success_response
from app.models import User
from app.schemas.article import ArticleCreate, ArticleRead, ArticleUpdate
from app.services.ai.providers import AIProvider
from app.services.ai.similarity import refresh_article_embedding
from app.services.articles import ArticleService

router = APIRouter(prefix="/articles", tags=["Articles"])


def _read_many(articles) -> list[ArticleRead]:
    return [ArticleRead.model_validate(item) for item in articles]


@router.get("")
async def list_articles(
    request: Request,
    include_drafts: bool = Query(default=False, alias="includeDrafts"),
    user: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_db_session),
):
    articles = await ArticleService(session).list_articles(user, include_drafts=include_drafts)
    return success_response(data=_read_many(articles), request=request)


# Literal paths go before /{article_id} so they are not parsed as ids.
@router.get("/search")
async def search_articles(
    request: Request,
    q: str | None = Query(default=None),
    session: AsyncSession = Depends(get_db_session),
):
    articles = await ArticleService(session).search(q)
    return success_response(data=_read_many(articles), request=request)


@router.get("/category/{category_id}")
async def list_articles_by_category(
    category_id: int,
    request: Request,
    session: AsyncSession = Depends(get_db_session),
):
    articles = await ArticleService(session).list_by_category(category_id)
    return success_response(data=_read_many(articles), request=request)


@router.get("/{article_id}")
async def get_article(
    article_id: int,
    request: Request,
    user: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_db_session),
):
    article = await ArticleService(session).view(user, article_id)
    return success_response(data=ArticleRead.model_validate(article), request=request)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_article(
    payload: ArticleCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    agent: User = Depends(get_content_editor),
    session: AsyncSession = Depends(get_db_session),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    provider: AIProvider = Depends(get_provider),
):
    article = await ArticleService(session).create(agent, payload)
    background_tasks.add_task(refresh_article_embedding, session_factory, provider, article.id)
    return success_response(data=ArticleRead.model_validate(article), request=request)


@router.patch("/{article_id}")
async def update_article(
    article_id: int,
    payload: ArticleUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    _agent: User = Depends(get_content_editor),
    session: AsyncSession = Depends(get_db_session),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    provider: AIProvider = Depends(get_provider),
):
    article, embedding_stale = await ArticleService(session).update(article_id, payload)
    if embedding_stale:
        background_tasks.add_task(refresh_article_embedding, session_factory, provider, article.id)
    return success_response(data=ArticleRead.model_validate(article), request=request)
