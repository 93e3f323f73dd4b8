from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UnauthorizedError
from app.core.security import decode_identity_token
from app.models import User
from app.repositories.user import UserRepository

logger = logging.getLogger(__name__)


async def resolve_user(
    session: AsyncSession,
    *,
    external_id: str | None = None,
    token: str | None = None,
) -> User | None:
    """Map a caller credential to a User record.

    A raw external id (trusted header set by the auth proxy) must match an
    existing user. A signed token whose subject is unknown provisions a
    visitor on first sight, provided it carries an email claim.
    """
    repo = UserRepository(session)
    if token:
        claims = decode_identity_token(token)
        subject = claims["sub"].strip()
        user = await repo.get_by_external_auth_id(subject)
        if user is not None:
            return user
        email = str(claims.get("email") or "").strip()
        if not email:
            raise UnauthorizedError("User not found")
        try:
            user = await repo.create(email=email, name=str(claims.get("name") or ""), external_auth_id=subject)
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise UnauthorizedError("User could not be provisioned") from exc
        logger.info("Provisioned visitor %s for subject %s", user.id, subject)
        return user

    if external_id and external_id.strip():
        return await repo.get_by_external_auth_id(external_id.strip())
    return None
