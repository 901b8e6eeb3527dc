# blueprints/booking/routes.py
from __future__ import annotations
import logging
from dataclasses import asdict
from typing import Any, Dict, Optional, Type, TypeVar

from flask import Blueprint, current_app, jsonify, request
from pydantic import BaseModel, ValidationError

from blueprints.availability.services import is_teacher_available
from .repository import AvailabilityStore, LessonStore, StudentDirectory, TeacherDirectory
from .schemas import (
    DraftIn, LessonQueryArgs, PreviewIn, ProgressIn, RecurringIn, SessionOpenIn,
    TeacherAssignIn, TeacherSearchArgs,
)
from .services.dto import TimeSlot
from .services.errors import NotFoundError, SchedulingError
from .services.orchestrator import BookingOrchestrator, BookingSession
from .services.recurrence import rank_teachers
from .sessions import session_store

log = logging.getLogger(__name__)

api_bp = Blueprint("booking_api", __name__)

lesson_store = LessonStore()
availability_store = AvailabilityStore()
teacher_directory = TeacherDirectory()
student_directory = StudentDirectory()

M = TypeVar("M", bound=BaseModel)


def _body(model: Type[M]) -> M:
    return model.model_validate(request.get_json(silent=True) or {})


def _args(model: Type[M]) -> M:
    return model.model_validate(request.args.to_dict())


def _pydantic_errors_safe(ve: ValidationError):
    errs = ve.errors(include_url=False)
    for e in errs:
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
    return errs


# ---------- error envelope ----------
@api_bp.app_errorhandler(SchedulingError)
def handle_scheduling_error(err: SchedulingError):
    return jsonify({"ok": False, "errors": [err.to_dict()]}), err.http_status


@api_bp.app_errorhandler(ValidationError)
def handle_validation_error(err: ValidationError):
    return jsonify({
        "ok": False,
        "errors": [{"code": "BAD_REQUEST", "message": "invalid request", "details": _pydantic_errors_safe(err)}],
    }), 400


def _session_payload(sid: str, session: BookingSession, **extra) -> Dict[str, Any]:
    return {"ok": True, "session_id": sid, "session": session.to_dict(), **extra}


# ---------- Directories ----------
@api_bp.get("/teachers")
def teachers_list():
    return jsonify({"ok": True, "teachers": [asdict(t) for t in teacher_directory.all()]})


@api_bp.get("/students")
def students_list():
    return jsonify({"ok": True, "students": [asdict(s) for s in student_directory.all()]})


# ---------- Lessons ----------
@api_bp.get("/lessons")
def lessons_list():
    args = _args(LessonQueryArgs)
    items = lesson_store.all(args.date_from, args.date_to, args.teacher_id)
    return jsonify({"ok": True, "lessons": [l.to_dict() for l in items]})


@api_bp.get("/lessons/<lesson_id>")
def lesson_get(lesson_id: str):
    return jsonify({"ok": True, "lesson": lesson_store.get(lesson_id).to_dict()})


@api_bp.delete("/lessons/<lesson_id>")
def lesson_delete(lesson_id: str):
    BookingOrchestrator.delete_lesson(lesson_id, lesson_store)
    log.info("lesson %s deleted", lesson_id)
    return jsonify({"ok": True, "deleted": lesson_id})


@api_bp.patch("/lessons/<lesson_id>/progress")
def lesson_progress(lesson_id: str):
    data = _body(ProgressIn)
    lesson = BookingOrchestrator().update_progress(
        lesson_store.get(lesson_id),
        is_completed=data.is_completed,
        lesson_plan=data.lesson_plan,
        student_notes=data.student_notes,
    )
    lesson_store.update(lesson)
    return jsonify({"ok": True, "lesson": lesson.to_dict()})


# ---------- Booking sessions ----------
@api_bp.post("/booking/sessions")
def session_open():
    data = _body(SessionOpenIn)
    cfg = current_app.config
    session = BookingSession(
        teacher_directory.all(),
        defaults={
            "duration_minutes": cfg.get("DEFAULT_DURATION_MINUTES", 60),
            "lesson_type": cfg.get("DEFAULT_LESSON_TYPE", "PRIVATE"),
            "subject": cfg.get("DEFAULT_SUBJECT"),
        },
        max_months=cfg.get("MAX_RECURRING_MONTHS", 12),
    )
    slot = TimeSlot(start=data.slot.start, end=data.slot.end) if data.slot else None
    if data.mode == "edit":
        session.open_edit(lesson_store.get(data.lesson_id), slot)
    elif data.mode == "slot":
        teacher_directory.get(data.teacher_id)
        session.open_slot_booking(data.teacher_id, data.date, slot)
    else:
        session.open_create(data.date, data.teacher_id)
    sid = session_store.save(session)
    return jsonify(_session_payload(sid, session)), 201


@api_bp.get("/booking/sessions/<sid>")
def session_get(sid: str):
    return jsonify(_session_payload(sid, session_store.get(sid)))


@api_bp.delete("/booking/sessions/<sid>")
def session_close(sid: str):
    session_store.get(sid).close()
    session_store.delete(sid)
    return jsonify({"ok": True})


@api_bp.patch("/booking/sessions/<sid>/draft")
def session_update_draft(sid: str):
    session = session_store.get(sid)
    changes = _body(DraftIn).changes()
    _known_teacher(changes.get("teacher_id"))
    session.update_draft(**changes)
    return jsonify(_session_payload(sid, session))


@api_bp.post("/booking/sessions/<sid>/recurring")
def session_set_recurring(sid: str):
    session = session_store.get(sid)
    session.set_recurring(_body(RecurringIn).enabled)
    return jsonify(_session_payload(sid, session))


@api_bp.post("/booking/sessions/<sid>/preview")
def session_preview(sid: str):
    session = session_store.get(sid)
    data = _body(PreviewIn)
    session.generate_preview(data.start_date, data.months)
    return jsonify(_session_payload(sid, session))


def _known_teacher(teacher_id: Optional[str]) -> None:
    if teacher_id:
        teacher_directory.get(teacher_id)


@api_bp.put("/booking/sessions/<sid>/preview/<int:index>/teacher")
def session_assign_teacher(sid: str, index: int):
    session = session_store.get(sid)
    data = _body(TeacherAssignIn)
    _known_teacher(data.teacher_id)
    try:
        session.assign_teacher(index, data.teacher_id)
    except IndexError:
        raise NotFoundError(f"occurrence {index} not found", details={"index": index}) from None
    return jsonify(_session_payload(sid, session))


@api_bp.put("/booking/sessions/<sid>/preview/teacher")
def session_bulk_assign(sid: str):
    session = session_store.get(sid)
    data = _body(TeacherAssignIn)
    _known_teacher(data.teacher_id)
    session.bulk_assign_teacher(data.teacher_id)
    return jsonify(_session_payload(sid, session))


@api_bp.patch("/booking/sessions/<sid>/preview/<int:index>")
def session_update_occurrence(sid: str, index: int):
    session = session_store.get(sid)
    changes = _body(DraftIn).changes()
    _known_teacher(changes.get("teacher_id"))
    try:
        session.update_occurrence(index, **changes)
    except IndexError:
        raise NotFoundError(f"occurrence {index} not found", details={"index": index}) from None
    return jsonify(_session_payload(sid, session))


@api_bp.get("/booking/sessions/<sid>/teachers")
def session_teachers(sid: str):
    session = session_store.get(sid)
    args = _args(TeacherSearchArgs)
    target = session.draft
    if session.recurring:
        if args.index is not None and args.index < len(session.preview):
            target = session.preview[args.index]
        elif session.recurring_start:
            # the series template is ranked on its first week
            target = session.draft.with_changes(date=session.recurring_start)

    avail = availability_store.all(on=target.date) if target.date else []
    ranked = rank_teachers(
        list(session.teachers.values()), args.q, avail,
        target.date, target.start_time, target.duration_minutes,
    )
    out = []
    for t in ranked:
        available = bool(target.date and target.start_time) and is_teacher_available(
            avail, t.id, target.date, target.start_time, target.duration_minutes)
        out.append({"id": t.id, "name": t.name, "phone": t.phone,
                    "commission_rate": t.commission_rate, "available": available})
    return jsonify({"ok": True, "teachers": out})


@api_bp.post("/booking/sessions/<sid>/save")
def session_save(sid: str):
    session = session_store.get(sid)
    result = session.save(lesson_store.all(), lesson_store)
    if not result.ok:
        return jsonify({
            "ok": False,
            "confirm_required": True,
            "session_id": sid,
            "errors": [result.warning.to_dict()],
        }), 409

    session_store.delete(sid)
    log.info("booking session %s saved %d lesson(s)", sid, len(result.lessons))
    return jsonify({
        "ok": True,
        "lessons": [l.to_dict() for l in result.lessons],
    }), (201 if result.created else 200)
