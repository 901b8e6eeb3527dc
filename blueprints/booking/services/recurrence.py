# blueprints/booking/services/recurrence.py
from __future__ import annotations
import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from blueprints.availability.services import is_teacher_available
from .costs import cost_for_teacher
from .dto import AvailabilityRecord, LessonDraft, TeacherInfo
from .errors import LessonValidationError

log = logging.getLogger(__name__)

WEEK = timedelta(days=7)
PLACEHOLDER_PREFIX = "temp-"


def add_months(d: date, months: int) -> date:
    year = d.year + (d.month - 1 + months) // 12
    month = (d.month - 1 + months) % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return d.replace(year=year, month=month, day=day)


def weekly_dates(start: date, horizon_months: int) -> List[date]:
    """Every 7 days from ``start`` while strictly before start + horizon months."""
    end = add_months(start, horizon_months)
    out = []
    cur = start
    while cur < end:
        out.append(cur)
        cur += WEEK
    return out


def placeholder_id(d: date) -> str:
    return f"{PLACEHOLDER_PREFIX}{d.isoformat()}"


def _teacher_index(teachers: Iterable[TeacherInfo] | Mapping[str, TeacherInfo]) -> Dict[str, TeacherInfo]:
    if isinstance(teachers, Mapping):
        return dict(teachers)
    return {t.id: t for t in teachers or ()}


@dataclass(frozen=True)
class RecurrencePreview:
    """Materialized weekly series awaiting teacher assignment.

    Immutable: every edit returns a new preview.
    """

    occurrences: Tuple[LessonDraft, ...] = ()
    start_date: Optional[date] = None
    horizon_months: int = 0

    def __len__(self) -> int:
        return len(self.occurrences)

    def __iter__(self):
        return iter(self.occurrences)

    def __getitem__(self, index: int) -> LessonDraft:
        return self.occurrences[index]

    @property
    def unassigned_indexes(self) -> List[int]:
        return [i for i, occ in enumerate(self.occurrences) if not occ.teacher_id]

    def _replace_at(self, index: int, occurrence: LessonDraft) -> "RecurrencePreview":
        if not 0 <= index < len(self.occurrences):
            raise IndexError(f"occurrence index {index} out of range")
        items = list(self.occurrences)
        items[index] = occurrence
        return RecurrencePreview(tuple(items), self.start_date, self.horizon_months)

    def set_teacher(self, index: int, teacher_id: str, teachers) -> "RecurrencePreview":
        occ = self.occurrences[index] if 0 <= index < len(self.occurrences) else None
        if occ is None:
            raise IndexError(f"occurrence index {index} out of range")
        teacher = _teacher_index(teachers).get(teacher_id)
        updated = occ.with_changes(teacher_id=teacher_id, cost=cost_for_teacher(occ.price, teacher))
        return self._replace_at(index, updated)

    def bulk_apply_teacher(self, teacher_id: str, teachers) -> "RecurrencePreview":
        if not teacher_id:
            return self
        teacher = _teacher_index(teachers).get(teacher_id)
        # cost follows each occurrence's own price
        items = tuple(
            occ.with_changes(teacher_id=teacher_id, cost=cost_for_teacher(occ.price, teacher))
            for occ in self.occurrences
        )
        return RecurrencePreview(items, self.start_date, self.horizon_months)

    def update_occurrence(self, index: int, teachers=None, **changes) -> "RecurrencePreview":
        if not 0 <= index < len(self.occurrences):
            raise IndexError(f"occurrence index {index} out of range")
        occ = self.occurrences[index].with_changes(**changes)
        repriced = "price" in changes or "teacher_id" in changes
        if repriced and "cost" not in changes and teachers is not None:
            occ = occ.with_changes(cost=cost_for_teacher(occ.price, _teacher_index(teachers).get(occ.teacher_id)))
        return self._replace_at(index, occ)

    def to_dict(self) -> Dict:
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "horizon_months": self.horizon_months,
            "occurrences": [o.to_dict() for o in self.occurrences],
            "unassigned": self.unassigned_indexes,
        }


def generate_preview(template: LessonDraft, start_date: Optional[date], horizon_months: int) -> RecurrencePreview:
    missing = [name for name, value in (("start_date", start_date), ("start_time", template.start_time)) if not value]
    if missing:
        raise LessonValidationError("start date and start time are required to generate a series", fields=missing)
    if horizon_months is None or int(horizon_months) < 1:
        raise LessonValidationError("horizon must be at least one month", fields=["horizon_months"])

    items = tuple(
        template.with_changes(date=d, teacher_id=None, cost=0, id=placeholder_id(d))
        for d in weekly_dates(start_date, int(horizon_months))
    )
    log.debug("generated %d weekly occurrences from %s over %s month(s)", len(items), start_date, horizon_months)
    return RecurrencePreview(items, start_date, int(horizon_months))


def _matches(teacher: TeacherInfo, term: str) -> bool:
    if not term:
        return True
    return term.lower() in (teacher.name or "").lower() or term in (teacher.phone or "")


def rank_teachers(teachers: Sequence[TeacherInfo], search_term: str, availabilities: Iterable[AvailabilityRecord],
                  d: Optional[date], start_time: Optional[str], duration_minutes: Optional[int]) -> List[TeacherInfo]:
    """Teachers matching ``search_term``, those free at the given time first.

    The sort is stable: inside each bucket the incoming order is preserved.
    """
    term = (search_term or "").strip()
    avail = list(availabilities or ())
    candidates = [t for t in teachers if _matches(t, term)]
    if d is None:
        return candidates

    start = start_time or "00:00"
    duration = duration_minutes or 60
    return sorted(candidates, key=lambda t: not is_teacher_available(avail, t.id, d, start, duration))
