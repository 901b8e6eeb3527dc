# blueprints/booking/services/identifiers.py
from __future__ import annotations
import re
from datetime import date
from typing import Dict, Iterable

from .dto import Lesson
from .errors import IdentifierExhaustedError

SEQ_DIGITS = 3
MAX_SEQ = 10 ** SEQ_DIGITS - 1


def date_prefix(d: date) -> str:
    return d.strftime("%Y%m%d")


def max_sequence(d: date, lessons: Iterable[Lesson]) -> int:
    prefix = date_prefix(d)
    pattern = re.compile(rf"^{prefix}(\d{{{SEQ_DIGITS}}})$")
    found = 0
    for lesson in lessons or ():
        if lesson.date != d:
            continue
        m = pattern.match(lesson.id or "")
        if m:
            found = max(found, int(m.group(1)))
    return found


def allocate_lesson_id(d: date, lessons: Iterable[Lesson], offset: int = 0) -> str:
    """Next free YYYYMMDDNNN id for ``d``.

    Continues past the highest sequence already used on that date; gaps are
    never refilled. ``offset`` shifts the result for ids handed out earlier
    in the same batch that are not in ``lessons`` yet.
    """
    seq = max_sequence(d, lessons) + 1 + offset
    if seq > MAX_SEQ:
        raise IdentifierExhaustedError(
            f"no lesson identifiers left for {d.isoformat()}",
            details={"date": d.isoformat(), "max": MAX_SEQ},
        )
    return f"{date_prefix(d)}{seq:0{SEQ_DIGITS}d}"


class BatchAllocator:
    """Hands out distinct ids for several not-yet-persisted lessons."""

    def __init__(self, lessons: Iterable[Lesson]):
        self._lessons = list(lessons or ())
        self._counters: Dict[date, int] = {}

    def next_id(self, d: date) -> str:
        offset = self._counters.get(d, 0)
        lesson_id = allocate_lesson_id(d, self._lessons, offset)
        self._counters[d] = offset + 1
        return lesson_id
