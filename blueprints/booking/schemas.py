from __future__ import annotations
import datetime as dt
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from blueprints.core.timeutils import is_hhmm
from .services.errors import LessonValidationError

HHMM_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"


class _In(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ---------- Lessons ----------
class DraftIn(_In):
    """Partial draft update; only the fields present in the payload change."""

    title: Optional[str] = Field(None, max_length=255)
    subject: Optional[str] = Field(None, max_length=128)
    lesson_type: Optional[str] = Field(None, min_length=1, max_length=64)
    teacher_id: Optional[str] = Field(None, max_length=64)
    student_ids: Optional[List[str]] = None
    date: Optional[dt.date] = None
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    price: Optional[float] = Field(None, ge=0)
    cost: Optional[float] = Field(None, ge=0)
    lesson_plan: Optional[str] = None
    student_notes: Optional[Dict[str, str]] = None

    def changes(self) -> Dict:
        return self.model_dump(exclude_unset=True)


class ProgressIn(_In):
    is_completed: Optional[bool] = None
    lesson_plan: Optional[str] = None
    student_notes: Optional[Dict[str, str]] = None


# ---------- Sessions ----------
class SlotIn(_In):
    start: str = Field(pattern=HHMM_PATTERN)
    end: str = Field(pattern=HHMM_PATTERN)


class SessionOpenIn(_In):
    mode: Literal["create", "edit", "slot"] = "create"
    date: Optional[dt.date] = None
    teacher_id: Optional[str] = None
    lesson_id: Optional[str] = None
    slot: Optional[SlotIn] = None

    @model_validator(mode="after")
    def _mode_fields(self):
        if self.mode == "edit" and not self.lesson_id:
            raise ValueError("lesson_id is required to edit a lesson")
        if self.mode == "slot" and not (self.teacher_id and self.date and self.slot):
            raise ValueError("teacher_id, date and slot are required to book into a slot")
        return self


class RecurringIn(_In):
    enabled: bool


class PreviewIn(_In):
    start_date: Optional[dt.date] = None
    months: int = Field(1, ge=1)


class TeacherAssignIn(_In):
    teacher_id: str = ""

    @field_validator("teacher_id")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()


# ---------- Availability ----------
class SlotWriteIn(SlotIn):
    # index of the slot being edited; absent when adding
    index: Optional[int] = Field(None, ge=0)


# ---------- Queries ----------
class AvailabilityCheckArgs(_In):
    teacher_id: str
    date: dt.date
    start_time: str
    duration_minutes: int = Field(60, gt=0)

    @field_validator("start_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        if not is_hhmm(v):
            raise ValueError("start_time must be HH:MM")
        return v


class LessonQueryArgs(_In):
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None
    teacher_id: Optional[str] = None


class TeacherSearchArgs(_In):
    q: str = ""
    index: Optional[int] = Field(None, ge=0)


def parse_date(value: Optional[str], field: str = "date") -> dt.date:
    try:
        return dt.date.fromisoformat(str(value))
    except ValueError:
        raise LessonValidationError(f"{field} must be an ISO date (YYYY-MM-DD)", fields=[field]) from None
