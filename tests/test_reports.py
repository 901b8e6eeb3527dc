# tests/test_reports.py
from __future__ import annotations
from datetime import date
import pytest

from app import create_app
from extensions import db
from models import Lesson, Teacher
from blueprints.booking.services.dto import Lesson as LessonDTO, TeacherInfo
from blueprints.reports.services import lessons_for_period, payroll_for_month, period_bounds

TEACHERS = [TeacherInfo("t1", "Alice", 50), TeacherInfo("t2", "Bob", 60), TeacherInfo("t3", "Cara", 40)]


def _l(lid, d, teacher="t1", start="10:00", duration=60, price=1000, cost=500, done=True, kind="PRIVATE"):
    return LessonDTO(id=lid, title="x", teacher_id=teacher, date=d, start_time=start,
                     duration_minutes=duration, price=price, cost=cost, is_completed=done, lesson_type=kind)


LESSONS = [
    _l("20250301001", date(2025, 3, 1)),
    _l("20250302001", date(2025, 3, 2), duration=90, kind="GROUP", cost=700),
    _l("20250303001", date(2025, 3, 3), teacher="t2", price=2000, cost=1200),
    _l("20250304001", date(2025, 3, 4), done=False),
    _l("20250401001", date(2025, 4, 1)),
]


def test_payroll_counts_completed_lessons_of_the_month():
    report = payroll_for_month(LESSONS, TEACHERS, "2025-03")
    by_id = {r["teacher_id"]: r for r in report["teachers"]}
    assert [r["teacher_id"] for r in report["teachers"]] == ["t1", "t2", "t3"]
    assert by_id["t1"]["total_lessons"] == 2
    assert by_id["t1"]["total_hours"] == 2.5
    assert by_id["t1"]["total_pay"] == 1200
    assert by_id["t1"]["breakdown"]["GROUP"] == {"count": 1, "hours": 1.5, "amount": 700}
    assert by_id["t3"]["total_lessons"] == 0
    assert report["revenue"] == 4000
    assert report["total_cost"] == 2400


def test_payroll_search_by_teacher_name():
    report = payroll_for_month(LESSONS, TEACHERS, "2025-03", search="bo")
    assert [r["teacher_id"] for r in report["teachers"]] == ["t2"]


def test_week_runs_sunday_to_saturday():
    # 2025-03-05 is a Wednesday
    assert period_bounds(date(2025, 3, 5), "week") == (date(2025, 3, 2), date(2025, 3, 8))
    assert period_bounds(date(2025, 3, 2), "week") == (date(2025, 3, 2), date(2025, 3, 8))
    assert period_bounds(date(2025, 2, 14), "month") == (date(2025, 2, 1), date(2025, 2, 28))
    with pytest.raises(ValueError):
        period_bounds(date(2025, 3, 5), "year")


def test_lessons_for_period_sorted_and_filtered():
    extra = _l("20250302002", date(2025, 3, 2), start="08:00")
    items = lessons_for_period(LESSONS + [extra], date(2025, 3, 5), "week")
    assert [l.id for l in items] == ["20250302002", "20250302001", "20250303001", "20250304001"]
    only_t2 = lessons_for_period(LESSONS, date(2025, 3, 5), "week", teacher_id="t2")
    assert [l.id for l in only_t2] == ["20250303001"]


@pytest.fixture()
def client():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        db.session.add_all([
            Teacher(id="t1", name="Alice", commission_rate=50),
            Teacher(id="t2", name="Bob", commission_rate=60),
        ])
        db.session.add_all([
            Lesson(id="20250301001", title="Piano", teacher_id="t1", date=date(2025, 3, 1),
                   start_time="10:00", duration_minutes=60, price=1000, cost=500, is_completed=True),
            Lesson(id="20250301002", title="Violin", teacher_id="t2", date=date(2025, 3, 1),
                   start_time="11:00", duration_minutes=60, price=1000, cost=600, is_completed=False),
        ])
        db.session.commit()
        yield app.test_client()
        db.session.remove()
        db.drop_all()


def test_payroll_endpoint(client):
    r = client.get("/api/v1/reports/payroll?month=2025-03")
    assert r.status_code == 200
    js = r.get_json()
    assert js["ok"] is True
    assert js["teachers"][0]["teacher_id"] == "t1"
    assert js["teachers"][0]["total_pay"] == 500
    assert js["teachers"][1]["total_lessons"] == 0


def test_payroll_endpoint_rejects_bad_month(client):
    r = client.get("/api/v1/reports/payroll?month=2025-13")
    assert r.status_code == 400
    assert r.get_json()["errors"][0]["code"] == "VALIDATION_ERROR"


def test_lessons_report_endpoint(client):
    r = client.get("/api/v1/reports/lessons?date=2025-03-01&range=day")
    assert r.status_code == 200
    js = r.get_json()
    assert [l["id"] for l in js["lessons"]] == ["20250301001", "20250301002"]
    assert js["total_price"] == 2000

    r = client.get("/api/v1/reports/lessons?date=2025-03-01&range=decade")
    assert r.status_code == 400
