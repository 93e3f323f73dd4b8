from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, text, true
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import IntegerPrimaryKeyMixin, TimestampMixin


class Article(Base, IntegerPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "articles"
    __table_args__ = (
        Index("ix_articles_category_id", "category_id"),
        Index("ix_articles_is_published", "is_published"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)  # markdown
    author_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    category_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("categories.id"), nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true(), nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"), nullable=False)

    @property
    def embedding_text(self) -> str:
        return f"{self.title} {self.content}"
