# blueprints/booking/repository.py
from __future__ import annotations
from datetime import date
from typing import Dict, List, Optional

from extensions import db
from models import Availability, Lesson as LessonRow, Student, Teacher
from .services.dto import AvailabilityRecord, Lesson, StudentInfo, TeacherInfo, TimeSlot
from .services.errors import NotFoundError


# ---------- row <-> dto ----------
def lesson_from_row(row: LessonRow) -> Lesson:
    return Lesson(
        id=row.id,
        title=row.title,
        subject=row.subject,
        lesson_type=row.lesson_type,
        teacher_id=row.teacher_id,
        student_ids=tuple(row.student_ids or ()),
        date=row.date,
        start_time=row.start_time,
        duration_minutes=row.duration_minutes,
        price=row.price,
        cost=row.cost,
        is_completed=bool(row.is_completed),
        lesson_plan=row.lesson_plan or "",
        student_notes=dict(row.student_notes or {}),
    )


def _apply_lesson(row: LessonRow, lesson: Lesson) -> LessonRow:
    row.title = lesson.title
    row.subject = lesson.subject
    row.lesson_type = lesson.lesson_type
    row.teacher_id = lesson.teacher_id
    row.student_ids = list(lesson.student_ids)
    row.date = lesson.date
    row.start_time = lesson.start_time
    row.duration_minutes = lesson.duration_minutes
    row.price = lesson.price
    row.cost = lesson.cost
    row.is_completed = lesson.is_completed
    row.lesson_plan = lesson.lesson_plan
    row.student_notes = dict(lesson.student_notes)
    return row


def availability_from_row(row: Availability) -> AvailabilityRecord:
    slots = tuple(TimeSlot(start=s["start"], end=s["end"]) for s in (row.time_slots or []))
    return AvailabilityRecord(id=row.id, teacher_id=row.teacher_id, date=row.date, time_slots=slots)


def teacher_from_row(row: Teacher) -> TeacherInfo:
    return TeacherInfo(
        id=row.id, name=row.name, commission_rate=row.commission_rate or 0,
        phone=row.phone or "", email=row.email, color=row.color,
    )


# ---------- stores ----------
class LessonStore:
    """Lesson persistence; every call commits on its own."""

    def all(self, date_from: Optional[date] = None, date_to: Optional[date] = None,
            teacher_id: Optional[str] = None) -> List[Lesson]:
        q = LessonRow.query
        if date_from:
            q = q.filter(LessonRow.date >= date_from)
        if date_to:
            q = q.filter(LessonRow.date <= date_to)
        if teacher_id:
            q = q.filter(LessonRow.teacher_id == teacher_id)
        q = q.order_by(LessonRow.date.asc(), LessonRow.start_time.asc(), LessonRow.id.asc())
        return [lesson_from_row(r) for r in q.all()]

    def get(self, lesson_id: str) -> Lesson:
        row = db.session.get(LessonRow, lesson_id)
        if row is None:
            raise NotFoundError(f"lesson {lesson_id} not found", details={"id": lesson_id})
        return lesson_from_row(row)

    def add(self, lesson: Lesson) -> None:
        db.session.add(_apply_lesson(LessonRow(id=lesson.id), lesson))
        db.session.commit()

    def update(self, lesson: Lesson) -> None:
        row = db.session.get(LessonRow, lesson.id)
        if row is None:
            raise NotFoundError(f"lesson {lesson.id} not found", details={"id": lesson.id})
        _apply_lesson(row, lesson)
        db.session.commit()

    def delete(self, lesson_id: str) -> None:
        row = db.session.get(LessonRow, lesson_id)
        if row is None:
            raise NotFoundError(f"lesson {lesson_id} not found", details={"id": lesson_id})
        db.session.delete(row)
        db.session.commit()


class AvailabilityStore:
    def all(self, teacher_id: Optional[str] = None, on: Optional[date] = None) -> List[AvailabilityRecord]:
        q = Availability.query
        if teacher_id:
            q = q.filter(Availability.teacher_id == teacher_id)
        if on:
            q = q.filter(Availability.date == on)
        q = q.order_by(Availability.date.asc(), Availability.teacher_id.asc())
        return [availability_from_row(r) for r in q.all()]

    def add(self, record: AvailabilityRecord) -> None:
        row = Availability(
            id=record.id, teacher_id=record.teacher_id, date=record.date,
            time_slots=[s.to_dict() for s in record.time_slots],
        )
        db.session.add(row)
        db.session.commit()

    def update(self, record: AvailabilityRecord) -> None:
        row = db.session.get(Availability, record.id)
        if row is None:
            raise NotFoundError(f"availability {record.id} not found", details={"id": record.id})
        # reassign, JSON columns do not track in-place mutation
        row.time_slots = [s.to_dict() for s in record.time_slots]
        db.session.commit()


class TeacherDirectory:
    def all(self) -> List[TeacherInfo]:
        return [teacher_from_row(t) for t in Teacher.query.order_by(Teacher.name.asc()).all()]

    def by_id(self) -> Dict[str, TeacherInfo]:
        return {t.id: t for t in self.all()}

    def get(self, teacher_id: str) -> TeacherInfo:
        row = db.session.get(Teacher, teacher_id)
        if row is None:
            raise NotFoundError(f"teacher {teacher_id} not found", details={"id": teacher_id})
        return teacher_from_row(row)


class StudentDirectory:
    def all(self) -> List[StudentInfo]:
        return [StudentInfo(id=s.id, name=s.name) for s in Student.query.order_by(Student.name.asc()).all()]
