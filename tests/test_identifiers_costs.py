from __future__ import annotations
from datetime import date
import pytest

from blueprints.booking.services.costs import calculate_cost, cost_for_teacher
from blueprints.booking.services.dto import Lesson, TeacherInfo
from blueprints.booking.services.errors import IdentifierExhaustedError
from blueprints.booking.services.identifiers import BatchAllocator, allocate_lesson_id, max_sequence

D = date(2025, 1, 15)


def _lesson(lid, d=D):
    return Lesson(id=lid, title="x", teacher_id="t", date=d, start_time="10:00",
                  duration_minutes=60, price=0, cost=0)


def test_first_id_of_the_day():
    assert allocate_lesson_id(D, []) == "20250115001"


def test_batch_continues_past_max_without_filling_gaps():
    existing = [_lesson("20250115001"), _lesson("20250115003")]
    alloc = BatchAllocator(existing)
    assert alloc.next_id(D) == "20250115004"
    assert alloc.next_id(D) == "20250115005"
    # other dates keep their own counter
    assert alloc.next_id(date(2025, 1, 16)) == "20250116001"


def test_foreign_ids_are_ignored():
    existing = [_lesson("temp-2025-01-15"), _lesson("2025011500A"), _lesson("20250114009", d=date(2025, 1, 14))]
    assert max_sequence(D, existing) == 0


def test_exhaustion_is_an_error():
    with pytest.raises(IdentifierExhaustedError):
        allocate_lesson_id(D, [_lesson("20250115999")])


@pytest.mark.parametrize("price, rate, cost", [
    (1000, 50, 500),
    (1250, 33, 413),   # 412.5 rounds half up
    (999, 0, 0),
    (0, 60, 0),
])
def test_calculate_cost(price, rate, cost):
    assert calculate_cost(price, rate) == cost


def test_cost_without_price_or_teacher():
    assert calculate_cost(None, 50) is None
    assert cost_for_teacher(None, TeacherInfo("t", "T", 50)) == 0
    assert cost_for_teacher(1000, None) == 0
    assert cost_for_teacher(1000, TeacherInfo("t", "T", 60)) == 600


def test_twelfth_lesson_of_the_day():
    existing = [_lesson(f"20250115{n:03d}") for n in range(1, 12)]
    assert allocate_lesson_id(D, existing) == "20250115012"
