from __future__ import annotations
import datetime as dt

from sqlalchemy import Date, ForeignKey, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from extensions import db


class Availability(db.Model):
    __tablename__ = "availability"

    # av-{teacher_id}-{YYYY-MM-DD}
    id: Mapped[str] = mapped_column(String(96), primary_key=True)
    teacher_id: Mapped[str] = mapped_column(ForeignKey("teacher.id", ondelete="CASCADE"), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    # [{"start": "HH:MM", "end": "HH:MM"}, ...] sorted by start
    time_slots: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    teacher = relationship("Teacher")

    __table_args__ = (
        UniqueConstraint("teacher_id", "date", name="uq_availability_teacher_date"),
    )
