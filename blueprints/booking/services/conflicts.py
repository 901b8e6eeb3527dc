# blueprints/booking/services/conflicts.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from blueprints.core.timeutils import lesson_interval, overlaps
from .dto import Lesson

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    teacher_id: Optional[str]
    date: Optional[date]
    start_time: Optional[str]
    duration_minutes: int

    @property
    def key(self) -> Tuple:
        return (self.teacher_id, self.date, self.start_time, self.duration_minutes)

    @classmethod
    def of(cls, lesson) -> "Candidate":
        return cls(
            teacher_id=lesson.teacher_id,
            date=lesson.date,
            start_time=lesson.start_time,
            duration_minutes=lesson.duration_minutes,
        )


@dataclass
class ConflictWarning:
    """Non-fatal: the same candidate saved again goes through."""

    teacher_id: str
    teacher_name: str
    conflicting_ids: List[str]
    code: str = "TEACHER_CONFLICT"
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return (f"{self.teacher_name} already has a lesson in this time range; "
                f"save again to book anyway")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": {
                "teacher_id": self.teacher_id,
                "teacher_name": self.teacher_name,
                "conflicting_ids": list(self.conflicting_ids),
                **self.details,
            },
        }


def find_conflicts(candidate: Candidate, lessons: Iterable[Lesson], exclude_id: Optional[str] = None) -> List[Lesson]:
    """Same-teacher, same-date lessons whose interval overlaps the candidate."""
    if not candidate.teacher_id or not candidate.date or not candidate.start_time:
        return []
    new_start, new_end = lesson_interval(candidate.start_time, candidate.duration_minutes)
    hits = []
    for lesson in lessons or ():
        if exclude_id is not None and lesson.id == exclude_id:
            continue
        if lesson.teacher_id != candidate.teacher_id or lesson.date != candidate.date:
            continue
        start, end = lesson_interval(lesson.start_time, lesson.duration_minutes)
        if overlaps(new_start, new_end, start, end):
            hits.append(lesson)
    return hits


def has_conflict(candidate: Candidate, lessons: Iterable[Lesson], exclude_id: Optional[str] = None) -> bool:
    return bool(find_conflicts(candidate, lessons, exclude_id))


class ConflictState(str, Enum):
    CLEAN = "CLEAN"
    WARNING_ISSUED = "WARNING_ISSUED"


class ConflictDetector:
    """Two-phase double-booking guard.

    The first save of a colliding candidate returns a warning and flips to
    WARNING_ISSUED; saving the very same candidate again is let through.
    Changing teacher, date, start time or duration starts over.
    """

    def __init__(self):
        self.state = ConflictState.CLEAN
        self._warned_key: Optional[Tuple] = None

    def reset(self) -> None:
        self.state = ConflictState.CLEAN
        self._warned_key = None

    def candidate_changed(self, candidate: Candidate) -> None:
        if self._warned_key is not None and candidate.key != self._warned_key:
            self.reset()

    def check(self, candidate: Candidate, lessons: Iterable[Lesson], *,
              exclude_id: Optional[str] = None, teacher_name: Optional[str] = None) -> Optional[ConflictWarning]:
        self.candidate_changed(candidate)
        if self.state is ConflictState.WARNING_ISSUED:
            log.info("conflict override confirmed for teacher %s on %s %s",
                     candidate.teacher_id, candidate.date, candidate.start_time)
            return None

        hits = find_conflicts(candidate, lessons, exclude_id)
        if not hits:
            return None

        self.state = ConflictState.WARNING_ISSUED
        self._warned_key = candidate.key
        log.info("conflict warning for teacher %s on %s %s: %s",
                 candidate.teacher_id, candidate.date, candidate.start_time, [h.id for h in hits])
        return ConflictWarning(
            teacher_id=candidate.teacher_id,
            teacher_name=teacher_name or candidate.teacher_id,
            conflicting_ids=[h.id for h in hits],
            details={
                "date": candidate.date.isoformat(),
                "start_time": candidate.start_time,
                "duration_minutes": candidate.duration_minutes,
            },
        )

    def mark_saved(self) -> None:
        self.reset()
