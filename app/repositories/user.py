from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import UserRole
from app.models import User


class UserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id)
        return await self.session.scalar(stmt)

    async def get_by_external_auth_id(self, external_auth_id: str) -> User | None:
        stmt = select(User).where(User.external_auth_id == external_auth_id)
        return await self.session.scalar(stmt)

    async def get_many(self, user_ids: set[int]) -> dict[int, User]:
        if not user_ids:
            return {}
        result = await self.session.scalars(select(User).where(User.id.in_(user_ids)))
        return {user.id: user for user in result.all()}

    async def create(
        self,
        *,
        email: str,
        name: str,
        external_auth_id: str,
        role: UserRole = UserRole.VISITOR,
    ) -> User:
        user = User(
            email=email.strip().lower(),
            name=name.strip() or email.split("@")[0],
            external_auth_id=external_auth_id,
            role=role,
        )
        self.session.add(user)
        await self.session.flush()
        return user
