from __future__ import annotations
import datetime as dt

from sqlalchemy import Boolean, Date, ForeignKey, Float, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from extensions import db


class Lesson(db.Model):
    __tablename__ = "lesson"

    # YYYYMMDDNNN, see blueprints/booking/services/identifiers.py
    id: Mapped[str] = mapped_column(String(16), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(128))
    lesson_type: Mapped[str] = mapped_column(String(64), nullable=False, default="PRIVATE")
    teacher_id: Mapped[str | None] = mapped_column(ForeignKey("teacher.id", ondelete="SET NULL"), nullable=True)
    student_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    cost: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    lesson_plan: Mapped[str] = mapped_column(Text, nullable=False, default="")
    student_notes: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    teacher = relationship("Teacher")

    __table_args__ = (
        Index("ix_lesson_teacher_date", "teacher_id", "date"),
        Index("ix_lesson_date", "date"),
    )

    def __repr__(self):
        return f"<Lesson {self.id} {self.title}>"
