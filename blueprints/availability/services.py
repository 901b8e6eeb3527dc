# blueprints/availability/services.py
from __future__ import annotations
import logging
from datetime import date
from typing import Iterable, Optional, Tuple

from blueprints.booking.services.dto import AvailabilityRecord, TimeSlot
from blueprints.booking.services.errors import SlotOverlapError, SlotRangeError
from blueprints.core.timeutils import contains, lesson_interval, overlaps

log = logging.getLogger(__name__)


def availability_id(teacher_id: str, d: date) -> str:
    return f"av-{teacher_id}-{d.isoformat()}"


def _sorted(slots: Iterable[TimeSlot]) -> Tuple[TimeSlot, ...]:
    return tuple(sorted(slots, key=lambda s: s.start_minutes))


def find_availability(availabilities: Iterable[AvailabilityRecord], teacher_id: str, d: date) -> Optional[AvailabilityRecord]:
    for rec in availabilities or ():
        if rec.teacher_id == teacher_id and rec.date == d:
            return rec
    return None


def open_availability(availabilities: Iterable[AvailabilityRecord], teacher_id: str, d: date) -> Tuple[AvailabilityRecord, bool]:
    """Existing record for (teacher, date) or a fresh empty one.

    The flag is True when the record is new, i.e. the store must ``add`` it
    instead of ``update``.
    """
    rec = find_availability(availabilities, teacher_id, d)
    if rec is not None:
        return rec, False
    return AvailabilityRecord(id=availability_id(teacher_id, d), teacher_id=teacher_id, date=d), True


def add_or_edit_slot(record: AvailabilityRecord, candidate: TimeSlot, editing_index: Optional[int] = None) -> AvailabilityRecord:
    """Insert ``candidate`` (or replace the slot at ``editing_index``) keeping slots sorted and disjoint."""
    start, end = candidate.start_minutes, candidate.end_minutes
    if end <= start:
        raise SlotRangeError(
            "slot end must be later than its start",
            details={"start": candidate.start, "end": candidate.end},
        )

    for idx, slot in enumerate(record.time_slots):
        if editing_index is not None and idx == editing_index:
            continue
        if overlaps(start, end, slot.start_minutes, slot.end_minutes):
            log.info("slot %s-%s rejected for %s: overlaps %s-%s",
                     candidate.start, candidate.end, record.id, slot.start, slot.end)
            raise SlotOverlapError(
                "slot overlaps an already registered slot",
                details={"candidate": candidate.to_dict(), "existing": slot.to_dict(), "index": idx},
            )

    slots = list(record.time_slots)
    if editing_index is not None:
        if not 0 <= editing_index < len(slots):
            raise IndexError(f"slot index {editing_index} out of range")
        slots[editing_index] = candidate
    else:
        slots.append(candidate)
    return AvailabilityRecord(id=record.id, teacher_id=record.teacher_id, date=record.date, time_slots=_sorted(slots))


def remove_slot(record: AvailabilityRecord, index: int) -> AvailabilityRecord:
    if not 0 <= index < len(record.time_slots):
        raise IndexError(f"slot index {index} out of range")
    slots = record.time_slots[:index] + record.time_slots[index + 1:]
    return AvailabilityRecord(id=record.id, teacher_id=record.teacher_id, date=record.date, time_slots=slots)


def is_teacher_available(availabilities: Iterable[AvailabilityRecord], teacher_id: str, d: date,
                         start_time: str, duration_minutes: int) -> bool:
    """True iff some registered slot fully contains [start, start + duration]."""
    rec = find_availability(availabilities, teacher_id, d)
    if rec is None or not rec.time_slots:
        return False
    lesson_start, lesson_end = lesson_interval(start_time, duration_minutes)
    return any(contains(s.start_minutes, s.end_minutes, lesson_start, lesson_end) for s in rec.time_slots)
