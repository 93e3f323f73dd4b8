from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.deps import get_db_session, get_optional_user, get_provider, get_session_factory
from app.core.exceptions import ValidationAppError
from app.core.responses import success_response
from app.models import User
from app.schemas.assist import AssistRequest, AssistResponse, ChatMessageRead
from app.services.ai.providers import AIProvider
from app.services.assist import AssistService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Assist"])

SSE_DONE = "data: [DONE]\n\n"


def sse_data(text: str) -> str:
    return f"data: {json.dumps({'text': text}, ensure_ascii=False)}\n\n"


@router.post("/assist")
async def assist(
    payload: AssistRequest,
    request: Request,
    user: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_db_session),
    provider: AIProvider = Depends(get_provider),
):
    reply = await AssistService(session, provider).answer(payload.query, session_id=payload.session_id, user=user)
    return success_response(data=AssistResponse(response=reply, session_id=payload.session_id), request=request)


@router.get("/assist/stream")
async def assist_stream(
    q: str | None = Query(default=None, max_length=4000),
    session_id: str | None = Query(default=None, alias="sessionId", max_length=128),
    user: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_db_session),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    provider: AIProvider = Depends(get_provider),
):
    query = (q or "").strip()
    if not query:
        raise ValidationAppError(
            "Query is required",
            details={"errors": [{"loc": ["query", "q"], "msg": "field required"}]},
        )
    # Ownership is settled before the response starts so a refusal is still a 403.
    await AssistService(session, provider).check_access(session_id, user)

    async def events():
        try:
            # The request-scoped session is gone once streaming starts.
            async with session_factory() as stream_session:
                service = AssistService(stream_session, provider)
                async for chunk in service.stream(query, session_id=session_id, user=user):
                    if chunk.text:
                        yield sse_data(chunk.text)
        except Exception:
            logger.exception("Assist stream aborted")
        yield SSE_DONE

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/chat/sessions/{session_id}/messages")
async def chat_history(
    session_id: str,
    request: Request,
    user: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_db_session),
    provider: AIProvider = Depends(get_provider),
):
    messages = await AssistService(session, provider).history(session_id, user)
    return success_response(data=[ChatMessageRead.model_validate(item) for item in messages], request=request)
