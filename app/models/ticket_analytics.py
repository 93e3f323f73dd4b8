from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, Float, Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import CreatedAtMixin, IntegerPrimaryKeyMixin


class TicketAnalytics(Base, IntegerPrimaryKeyMixin, CreatedAtMixin):
    __tablename__ = "ticket_analytics"

    # Rows are written by the reporting job, one per day.
    date: Mapped[dt.date] = mapped_column(Date, index=True, nullable=False)
    ticket_volume: Mapped[int] = mapped_column(Integer, nullable=False)
    avg_resolution_time: Mapped[float | None] = mapped_column(Float, nullable=True)  # hours
