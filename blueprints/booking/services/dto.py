# blueprints/booking/services/dto.py
from __future__ import annotations
from dataclasses import asdict, dataclass, field, replace
from datetime import date
from typing import Any, Dict, Optional, Tuple

from blueprints.core.timeutils import end_time, to_minutes

DEFAULT_DURATION = 60
DEFAULT_LESSON_TYPE = "PRIVATE"


@dataclass(frozen=True)
class TimeSlot:
    start: str  # HH:MM
    end: str    # HH:MM

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end)

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class AvailabilityRecord:
    id: str
    teacher_id: str
    date: date
    time_slots: Tuple[TimeSlot, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "teacher_id": self.teacher_id,
            "date": self.date.isoformat(),
            "time_slots": [s.to_dict() for s in self.time_slots],
        }


@dataclass(frozen=True)
class TeacherInfo:
    id: str
    name: str
    commission_rate: float = 0
    phone: str = ""
    email: Optional[str] = None
    color: Optional[str] = None


@dataclass(frozen=True)
class StudentInfo:
    id: str
    name: str


@dataclass(frozen=True)
class LessonDraft:
    """A lesson being edited; every field the form may leave empty is optional."""

    title: Optional[str] = None
    subject: Optional[str] = None
    lesson_type: str = DEFAULT_LESSON_TYPE
    teacher_id: Optional[str] = None
    student_ids: Tuple[str, ...] = ()
    date: Optional[date] = None
    start_time: Optional[str] = None
    duration_minutes: int = DEFAULT_DURATION
    price: Optional[float] = None
    cost: Optional[float] = None
    is_completed: bool = False
    lesson_plan: str = ""
    student_notes: Dict[str, str] = field(default_factory=dict)
    id: Optional[str] = None

    def with_changes(self, **changes) -> "LessonDraft":
        if "student_ids" in changes and changes["student_ids"] is not None:
            changes["student_ids"] = tuple(changes["student_ids"])
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["student_ids"] = list(self.student_ids)
        out["date"] = self.date.isoformat() if self.date else None
        return out


@dataclass(frozen=True)
class Lesson:
    id: str
    title: str
    teacher_id: Optional[str]
    date: date
    start_time: str
    duration_minutes: int
    price: float
    cost: float
    subject: Optional[str] = None
    lesson_type: str = DEFAULT_LESSON_TYPE
    student_ids: Tuple[str, ...] = ()
    is_completed: bool = False
    lesson_plan: str = ""
    student_notes: Dict[str, str] = field(default_factory=dict)

    @property
    def end_time(self) -> str:
        return end_time(self.start_time, self.duration_minutes)

    def to_draft(self) -> LessonDraft:
        return LessonDraft(
            id=self.id, title=self.title, subject=self.subject, lesson_type=self.lesson_type,
            teacher_id=self.teacher_id, student_ids=self.student_ids, date=self.date,
            start_time=self.start_time, duration_minutes=self.duration_minutes,
            price=self.price, cost=self.cost, is_completed=self.is_completed,
            lesson_plan=self.lesson_plan, student_notes=dict(self.student_notes),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["student_ids"] = list(self.student_ids)
        out["date"] = self.date.isoformat()
        out["end_time"] = self.end_time
        return out
