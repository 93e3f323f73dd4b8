from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_current_user
from app.core.responses import success_response
from app.models import User
from app.schemas.user import UserRead

router = APIRouter(tags=["Users"])


@router.get("/user")
async def get_me(request: Request, current_user: User = Depends(get_current_user)):
    return success_response(data=UserRead.model_validate(current_user), request=request)
