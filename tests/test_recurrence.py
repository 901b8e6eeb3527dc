from __future__ import annotations
from datetime import date
import pytest

from blueprints.booking.services.dto import AvailabilityRecord, LessonDraft, TeacherInfo, TimeSlot
from blueprints.booking.services.errors import LessonValidationError
from blueprints.booking.services.recurrence import (
    add_months, generate_preview, rank_teachers, weekly_dates,
)

TEMPLATE = LessonDraft(title="Piano", start_time="16:00", duration_minutes=60, price=1000)
TEACHERS = [
    TeacherInfo("t-a", "Alice", 50, phone="0911"),
    TeacherInfo("t-b", "Bob", 60, phone="0922"),
    TeacherInfo("t-c", "Carol", 40, phone="0933"),
    TeacherInfo("t-d", "Dan", 55, phone="0944"),
]


def test_add_months_clamps_day():
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)


def test_weekly_dates_stay_before_horizon_end():
    dates = weekly_dates(date(2025, 1, 6), 1)
    assert dates[:4] == [date(2025, 1, 6), date(2025, 1, 13), date(2025, 1, 20), date(2025, 1, 27)]
    assert all(d < date(2025, 2, 6) for d in dates)
    assert all((b - a).days == 7 for a, b in zip(dates, dates[1:]))


def test_occurrence_on_horizon_end_is_excluded():
    # 2025-02-03 + 1 month = 2025-03-03, itself a Monday
    dates = weekly_dates(date(2025, 2, 3), 1)
    assert dates == [date(2025, 2, 3), date(2025, 2, 10), date(2025, 2, 17), date(2025, 2, 24)]


def test_generate_preview_builds_unassigned_drafts():
    preview = generate_preview(TEMPLATE.with_changes(teacher_id="t-a", cost=500), date(2025, 2, 3), 1)
    assert len(preview) == 4
    first = preview[0]
    assert first.id == "temp-2025-02-03"
    assert first.teacher_id is None and first.cost == 0
    assert first.title == "Piano" and first.start_time == "16:00"
    assert preview.unassigned_indexes == [0, 1, 2, 3]


@pytest.mark.parametrize("start, template, months", [
    (None, TEMPLATE, 1),
    (date(2025, 2, 3), TEMPLATE.with_changes(start_time=None), 1),
    (date(2025, 2, 3), TEMPLATE, 0),
])
def test_generate_preview_validation(start, template, months):
    with pytest.raises(LessonValidationError):
        generate_preview(template, start, months)


def test_preview_edits_are_functional():
    preview = generate_preview(TEMPLATE, date(2025, 2, 3), 1)
    updated = preview.set_teacher(1, "t-b", TEACHERS)
    assert preview[1].teacher_id is None
    assert updated[1].teacher_id == "t-b" and updated[1].cost == 600
    assert updated.unassigned_indexes == [0, 2, 3]
    with pytest.raises(IndexError):
        preview.set_teacher(9, "t-b", TEACHERS)


def test_bulk_apply_uses_each_occurrence_price():
    preview = generate_preview(TEMPLATE, date(2025, 2, 3), 1)
    preview = preview.update_occurrence(2, price=1200).update_occurrence(3, price=1200)
    applied = preview.bulk_apply_teacher("t-a", TEACHERS)
    assert [o.cost for o in applied] == [500, 500, 600, 600]
    assert {o.teacher_id for o in applied} == {"t-a"}


def test_bulk_apply_with_empty_teacher_is_noop():
    preview = generate_preview(TEMPLATE, date(2025, 2, 3), 1)
    assert preview.bulk_apply_teacher("", TEACHERS) is preview


def test_unknown_teacher_costs_nothing():
    preview = generate_preview(TEMPLATE, date(2025, 2, 3), 1)
    assert preview.set_teacher(0, "nobody", TEACHERS)[0].cost == 0


def test_price_change_recomputes_assigned_cost():
    preview = generate_preview(TEMPLATE, date(2025, 2, 3), 1).set_teacher(0, "t-a", TEACHERS)
    assert preview.update_occurrence(0, TEACHERS, price=2000)[0].cost == 1000


def test_rank_teachers_available_first_and_stable():
    d = date(2025, 3, 3)
    avail = [
        AvailabilityRecord("av-t-b", "t-b", d, (TimeSlot("15:00", "18:00"),)),
        AvailabilityRecord("av-t-d", "t-d", d, (TimeSlot("16:00", "17:00"),)),
        # too short for a 60 minute lesson
        AvailabilityRecord("av-t-c", "t-c", d, (TimeSlot("16:00", "16:30"),)),
    ]
    ranked = rank_teachers(TEACHERS, "", avail, d, "16:00", 60)
    assert [t.id for t in ranked] == ["t-b", "t-d", "t-a", "t-c"]


def test_rank_teachers_filters_by_name_or_phone():
    d = date(2025, 3, 3)
    assert [t.id for t in rank_teachers(TEACHERS, "AL", [], d, "16:00", 60)] == ["t-a"]
    assert [t.id for t in rank_teachers(TEACHERS, "0933", [], d, "16:00", 60)] == ["t-c"]
    assert rank_teachers(TEACHERS, "zzz", [], d, "16:00", 60) == []


def test_teacher_change_recomputes_assigned_cost():
    preview = generate_preview(TEMPLATE, date(2025, 2, 3), 1).set_teacher(0, "t-a", TEACHERS)
    moved = preview.update_occurrence(0, TEACHERS, teacher_id="t-b")
    assert (moved[0].teacher_id, moved[0].cost) == ("t-b", 600)
    # an explicit cost wins
    assert preview.update_occurrence(0, TEACHERS, teacher_id="t-b", cost=123)[0].cost == 123
    assert preview.update_occurrence(0, TEACHERS, teacher_id=None)[0].cost == 0
