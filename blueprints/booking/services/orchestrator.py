# blueprints/booking/services/orchestrator.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Protocol

from blueprints.core.timeutils import is_hhmm, to_minutes
from .conflicts import Candidate, ConflictDetector, ConflictState, ConflictWarning
from .costs import calculate_cost
from .dto import DEFAULT_DURATION, DEFAULT_LESSON_TYPE, Lesson, LessonDraft, TeacherInfo, TimeSlot
from .errors import (
    BoundsError, EmptyPreviewError, IncompleteAssignmentError, LessonValidationError, SessionStateError,
)
from .identifiers import BatchAllocator, allocate_lesson_id
from .recurrence import RecurrencePreview, generate_preview

log = logging.getLogger(__name__)

# changing any of these means a different booking candidate
CANDIDATE_FIELDS = ("teacher_id", "date", "start_time", "duration_minutes")
PROGRESS_FIELDS = ("is_completed", "lesson_plan", "student_notes")


class LessonWriter(Protocol):
    def add(self, lesson: Lesson) -> None: ...
    def update(self, lesson: Lesson) -> None: ...
    def delete(self, lesson_id: str) -> None: ...


@dataclass
class SaveResult:
    lessons: List[Lesson] = field(default_factory=list)
    warning: Optional[ConflictWarning] = None
    created: bool = True

    @property
    def ok(self) -> bool:
        return self.warning is None

    @property
    def lesson(self) -> Optional[Lesson]:
        return self.lessons[0] if self.lessons else None


def _teacher_map(teachers) -> Dict[str, TeacherInfo]:
    if isinstance(teachers, Mapping):
        return dict(teachers)
    return {t.id: t for t in teachers or ()}


def _require_fields(draft: LessonDraft, names: Iterable[str]) -> None:
    missing = []
    for name in names:
        value = getattr(draft, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    if missing:
        raise LessonValidationError("title, start time and price are required", fields=missing)


def _check_values(draft: LessonDraft) -> None:
    if draft.start_time is not None and not is_hhmm(draft.start_time):
        raise LessonValidationError("start time must be HH:MM", fields=["start_time"])
    if draft.duration_minutes is None or int(draft.duration_minutes) <= 0:
        raise LessonValidationError("duration must be a positive number of minutes", fields=["duration_minutes"])
    if draft.price is not None and float(draft.price) < 0:
        raise LessonValidationError("price cannot be negative", fields=["price"])
    if draft.cost is not None and float(draft.cost) < 0:
        raise LessonValidationError("cost cannot be negative", fields=["cost"])


def check_bounds(start_time: str, bound_slot: TimeSlot) -> None:
    # both ends inclusive: a lesson may start right at the slot end
    start = to_minutes(start_time)
    if start < bound_slot.start_minutes or start > bound_slot.end_minutes:
        raise BoundsError(
            f"lesson must start within the booked slot ({bound_slot.start} - {bound_slot.end})",
            details={"start_time": start_time, "slot": bound_slot.to_dict()},
        )


def _finalize(draft: LessonDraft, lesson_id: str, cost) -> Lesson:
    return Lesson(
        id=lesson_id,
        title=draft.title,
        subject=draft.subject,
        lesson_type=draft.lesson_type or DEFAULT_LESSON_TYPE,
        teacher_id=draft.teacher_id,
        student_ids=tuple(draft.student_ids or ()),
        date=draft.date,
        start_time=draft.start_time,
        duration_minutes=int(draft.duration_minutes or DEFAULT_DURATION),
        price=float(draft.price),
        cost=float(cost or 0),
        is_completed=bool(draft.is_completed),
        lesson_plan=draft.lesson_plan or "",
        student_notes=dict(draft.student_notes or {}),
    )


class BookingOrchestrator:
    """Validates drafts and sequences conflict check, id allocation and costing.

    Holds the conflict detector, so one orchestrator serves one editing
    interaction.
    """

    def __init__(self, detector: Optional[ConflictDetector] = None):
        self.detector = detector or ConflictDetector()

    def create_single(self, draft: LessonDraft, existing_lessons: Iterable[Lesson], teachers=(),
                      bound_slot: Optional[TimeSlot] = None, editing_id: Optional[str] = None) -> SaveResult:
        _require_fields(draft, ("title", "start_time", "price"))
        _check_values(draft)
        if draft.date is None or not draft.teacher_id:
            raise LessonValidationError("date and teacher are required", fields=[
                n for n, v in (("date", draft.date), ("teacher_id", draft.teacher_id)) if not v
            ])
        if bound_slot is not None:
            check_bounds(draft.start_time, bound_slot)

        lessons = list(existing_lessons or ())
        by_id = _teacher_map(teachers)
        teacher = by_id.get(draft.teacher_id)

        warning = self.detector.check(
            Candidate.of(draft), lessons,
            exclude_id=editing_id,
            teacher_name=teacher.name if teacher else None,
        )
        if warning is not None:
            return SaveResult(warning=warning, created=editing_id is None)

        lesson_id = editing_id or allocate_lesson_id(draft.date, lessons)
        cost = draft.cost
        if cost is None:
            cost = calculate_cost(draft.price, teacher.commission_rate if teacher else 0)
        lesson = _finalize(draft, lesson_id, cost)
        self.detector.mark_saved()
        return SaveResult(lessons=[lesson], created=editing_id is None)

    def commit_recurring(self, preview: RecurrencePreview, existing_lessons: Iterable[Lesson]) -> List[Lesson]:
        # no conflict checks here, not against the batch nor existing lessons
        if preview is None or len(preview) == 0:
            raise EmptyPreviewError("generate the weekly series before committing")
        missing = preview.unassigned_indexes
        if missing:
            raise IncompleteAssignmentError(
                "some occurrences have no teacher assigned",
                details={"indexes": missing, "dates": [preview[i].date.isoformat() for i in missing]},
            )

        allocator = BatchAllocator(existing_lessons)
        out = []
        for occ in preview:
            _require_fields(occ, ("title", "start_time", "price"))
            lesson = _finalize(
                occ.with_changes(is_completed=False, lesson_plan="", student_notes={}),
                allocator.next_id(occ.date),
                occ.cost or 0,
            )
            out.append(lesson)
        log.info("recurring commit: %d lessons from %s", len(out), preview.start_date)
        return out

    def update_progress(self, lesson: Lesson, *, is_completed: Optional[bool] = None,
                        lesson_plan: Optional[str] = None,
                        student_notes: Optional[Dict[str, str]] = None) -> Lesson:
        changes = {}
        if is_completed is not None:
            changes["is_completed"] = bool(is_completed)
        if lesson_plan is not None:
            changes["lesson_plan"] = lesson_plan
        if student_notes is not None:
            changes["student_notes"] = dict(student_notes)
        draft = lesson.to_draft().with_changes(**changes)
        return _finalize(draft, lesson.id, lesson.cost)

    @staticmethod
    def delete_lesson(lesson_id: str, store: LessonWriter) -> None:
        store.delete(lesson_id)


class SessionState(str, Enum):
    CLOSED = "CLOSED"
    CREATING_SINGLE = "CREATING_SINGLE"
    CREATING_RECURRING_NO_PREVIEW = "CREATING_RECURRING_NO_PREVIEW"
    CREATING_RECURRING_PREVIEWED = "CREATING_RECURRING_PREVIEWED"
    EDITING = "EDITING"
    CONFLICT_PENDING = "CONFLICT_PENDING"
    COMMITTED = "COMMITTED"


class BookingSession:
    """One add/edit dialog: the draft, its mode and the conflict-pending flag."""

    def __init__(self, teachers=(), *, defaults: Optional[Dict] = None, max_months: int = 12):
        self.teachers = _teacher_map(teachers)
        self.defaults = dict(defaults or {})
        self.max_months = max_months
        self.orchestrator = BookingOrchestrator()
        self.state = SessionState.CLOSED
        self.draft = LessonDraft()
        self.editing_id: Optional[str] = None
        self.bound_slot: Optional[TimeSlot] = None
        self.recurring = False
        self.recurring_start: Optional[date] = None
        self.recurring_months = 1
        self.preview = RecurrencePreview()

    # ---- opening ----
    def _fresh_draft(self, **fields) -> LessonDraft:
        base = {
            "duration_minutes": self.defaults.get("duration_minutes", DEFAULT_DURATION),
            "lesson_type": self.defaults.get("lesson_type", DEFAULT_LESSON_TYPE),
            "subject": self.defaults.get("subject"),
            "start_time": self.defaults.get("start_time", "10:00"),
        }
        base.update(fields)
        return LessonDraft().with_changes(**base)

    def _reset(self) -> None:
        self.orchestrator.detector.reset()
        self.editing_id = None
        self.bound_slot = None
        self.recurring = False
        self.preview = RecurrencePreview()

    def open_create(self, on: Optional[date] = None, teacher_id: Optional[str] = None) -> None:
        self._reset()
        self.draft = self._fresh_draft(date=on, teacher_id=teacher_id)
        self.recurring_start = on
        self.state = SessionState.CREATING_SINGLE

    def open_slot_booking(self, teacher_id: str, on: date, slot: TimeSlot) -> None:
        self._reset()
        self.bound_slot = slot
        self.draft = self._fresh_draft(date=on, teacher_id=teacher_id, start_time=slot.start)
        self.state = SessionState.CREATING_SINGLE

    def open_edit(self, lesson: Lesson, slot: Optional[TimeSlot] = None) -> None:
        self._reset()
        self.editing_id = lesson.id
        self.bound_slot = slot
        self.draft = lesson.to_draft()
        self.state = SessionState.EDITING

    def close(self) -> None:
        self._reset()
        self.state = SessionState.CLOSED

    # ---- editing ----
    def _ensure_open(self) -> None:
        if self.state in (SessionState.CLOSED, SessionState.COMMITTED):
            raise SessionStateError("booking session is not open", details={"state": self.state.value})

    def set_recurring(self, enabled: bool) -> None:
        self._ensure_open()
        if self.editing_id is not None and enabled:
            raise SessionStateError("an existing lesson cannot be turned into a weekly series")
        self.recurring = bool(enabled)
        self.preview = RecurrencePreview()
        self.orchestrator.detector.reset()
        if self.recurring:
            self.recurring_start = self.recurring_start or self.draft.date
            self.state = SessionState.CREATING_RECURRING_NO_PREVIEW
        else:
            self.state = SessionState.EDITING if self.editing_id else SessionState.CREATING_SINGLE

    def update_draft(self, **changes) -> LessonDraft:
        self._ensure_open()
        prev = self.draft
        draft = prev.with_changes(**changes)
        if "cost" not in changes and ("teacher_id" in changes or "price" in changes) and not self.recurring:
            teacher = self.teachers.get(draft.teacher_id)
            if teacher is not None and teacher.commission_rate:
                draft = draft.with_changes(cost=calculate_cost(draft.price, teacher.commission_rate))
        self.draft = draft

        if any(getattr(prev, f) != getattr(draft, f) for f in CANDIDATE_FIELDS):
            self.orchestrator.detector.candidate_changed(Candidate.of(draft))
            if self.state is SessionState.CONFLICT_PENDING:
                self.state = SessionState.EDITING if self.editing_id else SessionState.CREATING_SINGLE
        return draft

    def generate_preview(self, start_date: Optional[date] = None, months: Optional[int] = None) -> RecurrencePreview:
        self._ensure_open()
        if not self.recurring:
            raise SessionStateError("switch the session to weekly mode first")
        if start_date is not None:
            self.recurring_start = start_date
        if months is not None:
            self.recurring_months = int(months)
        if self.recurring_months > self.max_months:
            raise LessonValidationError(f"horizon is limited to {self.max_months} months",
                                        fields=["months"])
        self.preview = generate_preview(self.draft, self.recurring_start, self.recurring_months)
        self.state = SessionState.CREATING_RECURRING_PREVIEWED
        return self.preview

    def _ensure_preview(self) -> None:
        if self.state is not SessionState.CREATING_RECURRING_PREVIEWED:
            raise SessionStateError("no weekly preview generated yet", details={"state": self.state.value})

    def assign_teacher(self, index: int, teacher_id: str) -> RecurrencePreview:
        self._ensure_preview()
        self.preview = self.preview.set_teacher(index, teacher_id, self.teachers)
        return self.preview

    def bulk_assign_teacher(self, teacher_id: str) -> RecurrencePreview:
        self._ensure_preview()
        self.preview = self.preview.bulk_apply_teacher(teacher_id, self.teachers)
        return self.preview

    def update_occurrence(self, index: int, **changes) -> RecurrencePreview:
        self._ensure_preview()
        self.preview = self.preview.update_occurrence(index, self.teachers, **changes)
        return self.preview

    # ---- saving ----
    def save(self, existing_lessons: Iterable[Lesson], store: Optional[LessonWriter] = None) -> SaveResult:
        self._ensure_open()
        lessons = list(existing_lessons or ())

        if self.recurring:
            if self.state is not SessionState.CREATING_RECURRING_PREVIEWED:
                raise EmptyPreviewError("generate the weekly series before committing")
            created = self.orchestrator.commit_recurring(self.preview, lessons)
            if store is not None:
                # independent writes; a failure part-way leaves earlier ones in place
                for lesson in created:
                    store.add(lesson)
            self.state = SessionState.COMMITTED
            return SaveResult(lessons=created)

        result = self.orchestrator.create_single(
            self.draft, lessons, self.teachers,
            bound_slot=self.bound_slot, editing_id=self.editing_id,
        )
        if not result.ok:
            self.state = SessionState.CONFLICT_PENDING
            return result

        if store is not None:
            if result.created:
                store.add(result.lesson)
            else:
                store.update(result.lesson)
        self.state = SessionState.COMMITTED
        return result

    @property
    def conflict_pending(self) -> bool:
        return self.orchestrator.detector.state is ConflictState.WARNING_ISSUED

    def to_dict(self) -> Dict:
        return {
            "state": self.state.value,
            "editing_id": self.editing_id,
            "recurring": self.recurring,
            "recurring_start": self.recurring_start.isoformat() if self.recurring_start else None,
            "recurring_months": self.recurring_months,
            "bound_slot": self.bound_slot.to_dict() if self.bound_slot else None,
            "conflict_pending": self.conflict_pending,
            "draft": self.draft.to_dict(),
            "preview": self.preview.to_dict() if self.recurring else None,
        }
