from __future__ import annotations

from datetime import datetime

from app.core.enums import UserRole
from app.schemas.common import BaseReadModel


class UserRead(BaseReadModel):
    id: int
    email: str
    name: str
    role: UserRole
    external_auth_id: str
    created_at: datetime


class AuthorRead(BaseReadModel):
    id: int
    name: str
    role: UserRole
