from __future__ import annotations
from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column

from extensions import db


class Teacher(db.Model):
    __tablename__ = "teacher"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    # percentage of the lesson price owed to the teacher, e.g. 60 for 60%
    commission_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    color: Mapped[str | None] = mapped_column(String(32))

    def __repr__(self):
        return f"<Teacher {self.name}>"
