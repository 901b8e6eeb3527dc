from __future__ import annotations
import re

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

MINUTES_PER_DAY = 24 * 60


def to_minutes(hhmm: str) -> int:
    """'HH:MM' (zero-padded, 24h) -> minutes since midnight, 0..1439."""
    m = _HHMM.match(hhmm or "")
    if not m:
        raise ValueError(f"invalid time {hhmm!r}, expected HH:MM")
    return int(m.group(1)) * 60 + int(m.group(2))


def from_minutes(minutes: int) -> str:
    """Inverse of to_minutes; values past midnight wrap around."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_hhmm(value) -> bool:
    return isinstance(value, str) and bool(_HHMM.match(value))


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    # half-open intervals: touching ends do not overlap
    return a_start < b_end and a_end > b_start


def contains(slot_start: int, slot_end: int, item_start: int, item_end: int) -> bool:
    # closed containment: an item may fill the slot exactly
    return item_start >= slot_start and item_end <= slot_end


def lesson_interval(start_time: str, duration_minutes: int) -> tuple[int, int]:
    start = to_minutes(start_time)
    return start, start + int(duration_minutes)


def end_time(start_time: str, duration_minutes: int) -> str:
    _, end = lesson_interval(start_time, duration_minutes)
    return from_minutes(end)
