from __future__ import annotations

from sqlalchemy import JSON, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import CreatedAtMixin, IntegerPrimaryKeyMixin


class ArticleEmbedding(Base, IntegerPrimaryKeyMixin, CreatedAtMixin):
    __tablename__ = "article_embeddings"

    # One live embedding per article; upserts replace the row in place.
    article_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("articles.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    embedding: Mapped[list[float]] = mapped_column(JSON, nullable=False)
