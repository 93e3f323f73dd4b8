from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.enums import UserRole
from app.db.base import Base, db_enum
from app.models.mixins import CreatedAtMixin, IntegerPrimaryKeyMixin


class User(Base, IntegerPrimaryKeyMixin, CreatedAtMixin):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        db_enum(UserRole, "user_role"),
        default=UserRole.VISITOR,
        nullable=False,
        server_default=UserRole.VISITOR.value,
    )
    external_auth_id: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
