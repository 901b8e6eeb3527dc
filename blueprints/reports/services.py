# blueprints/reports/services.py
from __future__ import annotations
import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from blueprints.booking.services.dto import Lesson, TeacherInfo

RANGES = ("day", "week", "month")


@dataclass
class PayrollLine:
    count: int = 0
    hours: float = 0.0
    amount: float = 0.0

    def add(self, lesson: Lesson) -> None:
        self.count += 1
        self.hours += lesson.duration_minutes / 60
        self.amount += lesson.cost or 0

    def to_dict(self) -> Dict:
        return {"count": self.count, "hours": round(self.hours, 2), "amount": self.amount}


@dataclass
class PayrollRecord:
    teacher_id: str
    teacher_name: str
    total: PayrollLine = field(default_factory=PayrollLine)
    breakdown: Dict[str, PayrollLine] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "teacher_id": self.teacher_id,
            "teacher_name": self.teacher_name,
            "total_lessons": self.total.count,
            "total_hours": round(self.total.hours, 2),
            "total_pay": self.total.amount,
            "breakdown": {k: v.to_dict() for k, v in self.breakdown.items()},
        }


def month_bounds(month: str) -> Tuple[date, date]:
    """'YYYY-MM' -> first and last day of that month."""
    year, mon = (int(p) for p in month.split("-", 1))
    return date(year, mon, 1), date(year, mon, calendar.monthrange(year, mon)[1])


def payroll_for_month(lessons: Iterable[Lesson], teachers: Iterable[TeacherInfo], month: str,
                      search: str = "") -> Dict:
    """
    Teacher pay for one month, counting completed lessons only.
    Every teacher gets a row, zero rows included; sorted by pay, highest first.
    """
    first, last = month_bounds(month)
    done = [l for l in lessons if l.is_completed and first <= l.date <= last]

    records: List[PayrollRecord] = []
    term = (search or "").strip().lower()
    for t in teachers:
        if term and term not in t.name.lower():
            continue
        rec = PayrollRecord(teacher_id=t.id, teacher_name=t.name)
        for lesson in done:
            if lesson.teacher_id != t.id:
                continue
            rec.total.add(lesson)
            rec.breakdown.setdefault(lesson.lesson_type, PayrollLine()).add(lesson)
        records.append(rec)

    records.sort(key=lambda r: r.total.amount, reverse=True)
    return {
        "month": month,
        "revenue": sum(l.price or 0 for l in done),
        "total_cost": sum(r.total.amount for r in records),
        "teachers": [r.to_dict() for r in records],
    }


def period_bounds(at: date, range_: str) -> Tuple[date, date]:
    if range_ == "day":
        return at, at
    if range_ == "week":
        # calendar week, Sunday through Saturday
        start = at - timedelta(days=(at.weekday() + 1) % 7)
        return start, start + timedelta(days=6)
    if range_ == "month":
        return month_bounds(at.strftime("%Y-%m"))
    raise ValueError(f"unknown range {range_!r}, expected one of {RANGES}")


def lessons_for_period(lessons: Iterable[Lesson], at: date, range_: str,
                       teacher_id: Optional[str] = None) -> List[Lesson]:
    start, end = period_bounds(at, range_)
    out = [
        l for l in lessons
        if start <= l.date <= end and (teacher_id is None or l.teacher_id == teacher_id)
    ]
    out.sort(key=lambda l: (l.date, l.start_time))
    return out
