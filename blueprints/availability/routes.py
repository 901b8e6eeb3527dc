# blueprints/availability/routes.py
from __future__ import annotations
import logging

from flask import Blueprint, jsonify, request

from blueprints.booking.repository import AvailabilityStore, TeacherDirectory
from blueprints.booking.schemas import AvailabilityCheckArgs, SlotWriteIn, parse_date
from blueprints.booking.services.dto import TimeSlot
from blueprints.booking.services.errors import NotFoundError
from .services import add_or_edit_slot, find_availability, is_teacher_available, open_availability, remove_slot

log = logging.getLogger(__name__)

api_bp = Blueprint("availability_api", __name__)

availability_store = AvailabilityStore()
teacher_directory = TeacherDirectory()


@api_bp.get("/availability")
def availability_list():
    teacher_id = request.args.get("teacher_id") or None
    raw_date = request.args.get("date")
    on = parse_date(raw_date) if raw_date else None
    records = availability_store.all(teacher_id=teacher_id, on=on)
    return jsonify({"ok": True, "availability": [r.to_dict() for r in records]})


@api_bp.get("/availability/check")
def availability_check():
    args = AvailabilityCheckArgs.model_validate(request.args.to_dict())
    records = availability_store.all(teacher_id=args.teacher_id, on=args.date)
    available = is_teacher_available(records, args.teacher_id, args.date, args.start_time, args.duration_minutes)
    return jsonify({"ok": True, "available": available})


@api_bp.put("/availability/<teacher_id>/<day>/slots")
def availability_put_slot(teacher_id: str, day: str):
    on = parse_date(day)
    teacher_directory.get(teacher_id)
    data = SlotWriteIn.model_validate(request.get_json(silent=True) or {})

    record, is_new = open_availability(availability_store.all(teacher_id=teacher_id, on=on), teacher_id, on)
    try:
        updated = add_or_edit_slot(record, TimeSlot(start=data.start, end=data.end), data.index)
    except IndexError:
        raise NotFoundError(f"slot {data.index} not found", details={"index": data.index}) from None

    if is_new:
        availability_store.add(updated)
    else:
        availability_store.update(updated)
    log.info("availability %s now has %d slot(s)", updated.id, len(updated.time_slots))
    return jsonify({"ok": True, "availability": updated.to_dict()}), (201 if is_new else 200)


@api_bp.delete("/availability/<teacher_id>/<day>/slots/<int:index>")
def availability_delete_slot(teacher_id: str, day: str, index: int):
    on = parse_date(day)
    record = find_availability(availability_store.all(teacher_id=teacher_id, on=on), teacher_id, on)
    if record is None:
        raise NotFoundError("no availability registered for this teacher and date",
                            details={"teacher_id": teacher_id, "date": on.isoformat()})
    try:
        updated = remove_slot(record, index)
    except IndexError:
        raise NotFoundError(f"slot {index} not found", details={"index": index}) from None
    availability_store.update(updated)
    return jsonify({"ok": True, "availability": updated.to_dict()})
