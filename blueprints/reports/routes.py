# blueprints/reports/routes.py
from __future__ import annotations
import re
from datetime import date

from flask import Blueprint, jsonify, request

from blueprints.booking.repository import LessonStore, TeacherDirectory
from blueprints.booking.schemas import parse_date
from blueprints.booking.services.errors import LessonValidationError
from .services import RANGES, lessons_for_period, month_bounds, payroll_for_month

api_bp = Blueprint("reports_api", __name__)

_MONTH = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


@api_bp.get("/reports/payroll")
def payroll():
    month = (request.args.get("month") or date.today().strftime("%Y-%m")).strip()
    if not _MONTH.match(month):
        raise LessonValidationError("month must be YYYY-MM", fields=["month"])
    first, last = month_bounds(month)
    lessons = LessonStore().all(first, last)
    report = payroll_for_month(lessons, TeacherDirectory().all(), month, request.args.get("q", ""))
    return jsonify({"ok": True, **report})


@api_bp.get("/reports/lessons")
def lessons_report():
    raw = request.args.get("date")
    at = parse_date(raw) if raw else date.today()
    range_ = (request.args.get("range") or "day").lower()
    if range_ not in RANGES:
        raise LessonValidationError(f"range must be one of {', '.join(RANGES)}", fields=["range"])
    teacher_id = request.args.get("teacher_id") or None

    items = lessons_for_period(LessonStore().all(), at, range_, teacher_id)
    return jsonify({
        "ok": True,
        "range": range_,
        "lessons": [l.to_dict() for l in items],
        "total_price": sum(l.price for l in items),
    })
