# tests/test_booking_api.py
from __future__ import annotations
from datetime import date
import pytest

from app import create_app
from extensions import db
from models import Lesson, Student, Teacher
from blueprints.booking.sessions import session_store


@pytest.fixture()
def client():
    app = create_app("test")
    session_store.clear()
    with app.app_context():
        db.create_all()
        db.session.add_all([
            Teacher(id="T", name="Teacher T", phone="0911", commission_rate=50),
            Teacher(id="U", name="Teacher U", phone="0922", commission_rate=60),
            Student(id="s1", name="Amy"),
        ])
        db.session.add(Lesson(
            id="20250301001", title="Booked", teacher_id="T", date=date(2025, 3, 1),
            start_time="10:00", duration_minutes=60, price=1000, cost=500,
        ))
        db.session.commit()
        yield app.test_client()
        db.session.remove()
        db.drop_all()


def _open(client, **body):
    r = client.post("/api/v1/booking/sessions", json=body)
    assert r.status_code == 201, r.get_json()
    return r.get_json()["session_id"]


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.get_json()["status"] == "ok"
    assert r.headers.get("X-Request-ID")


def test_single_booking_with_conflict_confirmation(client):
    sid = _open(client, mode="create", date="2025-03-01", teacher_id="T")
    r = client.patch(f"/api/v1/booking/sessions/{sid}/draft",
                     json={"title": "Piano", "start_time": "10:30", "price": 1200, "student_ids": ["s1"]})
    assert r.status_code == 200
    assert r.get_json()["session"]["draft"]["cost"] == 600

    r = client.post(f"/api/v1/booking/sessions/{sid}/save")
    assert r.status_code == 409
    js = r.get_json()
    assert js["confirm_required"] is True
    assert js["errors"][0]["code"] == "TEACHER_CONFLICT"
    assert js["errors"][0]["details"]["conflicting_ids"] == ["20250301001"]

    r = client.post(f"/api/v1/booking/sessions/{sid}/save")
    assert r.status_code == 201
    lesson = r.get_json()["lessons"][0]
    assert lesson["id"] == "20250301002"
    assert lesson["end_time"] == "11:30"
    assert lesson["student_ids"] == ["s1"]

    # committed sessions are discarded
    assert client.get(f"/api/v1/booking/sessions/{sid}").status_code == 404

    r = client.get("/api/v1/lessons?date_from=2025-03-01&date_to=2025-03-01&teacher_id=T")
    assert [l["id"] for l in r.get_json()["lessons"]] == ["20250301001", "20250301002"]


def test_missing_fields_are_reported(client):
    sid = _open(client, mode="create", date="2025-03-01", teacher_id="T")
    r = client.post(f"/api/v1/booking/sessions/{sid}/save")
    assert r.status_code == 400
    err = r.get_json()["errors"][0]
    assert err["code"] == "VALIDATION_ERROR"
    assert set(err["details"]["fields"]) == {"title", "price"}


def test_bad_payload_is_bad_request(client):
    sid = _open(client)
    r = client.patch(f"/api/v1/booking/sessions/{sid}/draft", json={"start_time": "25:00"})
    assert r.status_code == 400
    assert r.get_json()["errors"][0]["code"] == "BAD_REQUEST"


def test_edit_existing_lesson(client):
    sid = _open(client, mode="edit", lesson_id="20250301001")
    client.patch(f"/api/v1/booking/sessions/{sid}/draft", json={"start_time": "10:15"})
    r = client.post(f"/api/v1/booking/sessions/{sid}/recurring", json={"enabled": True})
    assert r.status_code == 409
    assert r.get_json()["errors"][0]["code"] == "INVALID_SESSION_STATE"

    r = client.post(f"/api/v1/booking/sessions/{sid}/save")
    assert r.status_code == 200
    assert r.get_json()["lessons"][0]["id"] == "20250301001"
    assert r.get_json()["lessons"][0]["start_time"] == "10:15"


def test_slot_booking_out_of_bounds(client):
    sid = _open(client, mode="slot", teacher_id="T", date="2025-03-02",
                slot={"start": "09:00", "end": "10:00"})
    client.patch(f"/api/v1/booking/sessions/{sid}/draft",
                 json={"title": "Piano", "price": 1000, "start_time": "10:01"})
    r = client.post(f"/api/v1/booking/sessions/{sid}/save")
    assert r.status_code == 409
    assert r.get_json()["errors"][0]["code"] == "OUT_OF_SLOT_BOUNDS"

    client.patch(f"/api/v1/booking/sessions/{sid}/draft", json={"start_time": "10:00"})
    assert client.post(f"/api/v1/booking/sessions/{sid}/save").status_code == 201


def test_recurring_booking(client):
    sid = _open(client, mode="create", date="2025-02-03")
    client.patch(f"/api/v1/booking/sessions/{sid}/draft",
                 json={"title": "Piano", "start_time": "16:00", "price": 1000})
    client.post(f"/api/v1/booking/sessions/{sid}/recurring", json={"enabled": True})

    r = client.post(f"/api/v1/booking/sessions/{sid}/preview", json={"months": 1})
    assert r.status_code == 200
    preview = r.get_json()["session"]["preview"]
    assert [o["date"] for o in preview["occurrences"]] == ["2025-02-03", "2025-02-10", "2025-02-17", "2025-02-24"]

    r = client.post(f"/api/v1/booking/sessions/{sid}/save")
    assert r.status_code == 409
    assert r.get_json()["errors"][0]["code"] == "INCOMPLETE_ASSIGNMENT"

    r = client.put(f"/api/v1/booking/sessions/{sid}/preview/9/teacher", json={"teacher_id": "T"})
    assert r.status_code == 404
    r = client.put(f"/api/v1/booking/sessions/{sid}/preview/teacher", json={"teacher_id": "nobody"})
    assert r.status_code == 404

    client.patch(f"/api/v1/booking/sessions/{sid}/preview/3", json={"price": 1200})
    r = client.put(f"/api/v1/booking/sessions/{sid}/preview/teacher", json={"teacher_id": "T"})
    costs = [o["cost"] for o in r.get_json()["session"]["preview"]["occurrences"]]
    assert costs == [500, 500, 500, 600]

    r = client.post(f"/api/v1/booking/sessions/{sid}/save")
    assert r.status_code == 201
    assert [l["id"] for l in r.get_json()["lessons"]] == [
        "20250203001", "20250210001", "20250217001", "20250224001"]


def test_preview_horizon_is_capped(client):
    sid = _open(client, mode="create", date="2025-02-03")
    client.patch(f"/api/v1/booking/sessions/{sid}/draft", json={"start_time": "16:00"})
    client.post(f"/api/v1/booking/sessions/{sid}/recurring", json={"enabled": True})
    r = client.post(f"/api/v1/booking/sessions/{sid}/preview", json={"months": 13})
    assert r.status_code == 400


def test_teacher_search_puts_available_first(client):
    r = client.put("/api/v1/availability/U/2025-03-03/slots", json={"start": "15:00", "end": "18:00"})
    assert r.status_code == 201
    sid = _open(client, mode="create", date="2025-03-03")
    client.patch(f"/api/v1/booking/sessions/{sid}/draft", json={"start_time": "16:00"})

    r = client.get(f"/api/v1/booking/sessions/{sid}/teachers")
    teachers = r.get_json()["teachers"]
    assert [t["id"] for t in teachers] == ["U", "T"]
    assert [t["available"] for t in teachers] == [True, False]

    r = client.get(f"/api/v1/booking/sessions/{sid}/teachers?q=0911")
    assert [t["id"] for t in r.get_json()["teachers"]] == ["T"]


def test_progress_and_delete(client):
    r = client.patch("/api/v1/lessons/20250301001/progress",
                     json={"is_completed": True, "lesson_plan": "scales", "student_notes": {"s1": "ok"}})
    assert r.status_code == 200
    assert r.get_json()["lesson"]["is_completed"] is True

    r = client.get("/api/v1/lessons/20250301001")
    assert r.get_json()["lesson"]["lesson_plan"] == "scales"

    assert client.delete("/api/v1/lessons/20250301001").status_code == 200
    r = client.delete("/api/v1/lessons/20250301001")
    assert r.status_code == 404
    assert r.get_json()["errors"][0]["code"] == "NOT_FOUND"


def test_close_session(client):
    sid = _open(client)
    assert client.delete(f"/api/v1/booking/sessions/{sid}").status_code == 200
    assert client.get(f"/api/v1/booking/sessions/{sid}").status_code == 404


def test_directories(client):
    r = client.get("/api/v1/teachers")
    assert [t["id"] for t in r.get_json()["teachers"]] == ["T", "U"]
    assert r.get_json()["teachers"][0]["commission_rate"] == 50
    r = client.get("/api/v1/students")
    assert r.get_json()["students"] == [{"id": "s1", "name": "Amy"}]


def test_series_template_is_ranked_on_its_start_date(client):
    client.put("/api/v1/availability/U/2025-03-03/slots", json={"start": "15:00", "end": "18:00"})
    sid = _open(client, mode="create", date="2025-02-03")
    client.patch(f"/api/v1/booking/sessions/{sid}/draft", json={"start_time": "16:00"})
    client.post(f"/api/v1/booking/sessions/{sid}/recurring", json={"enabled": True})
    r = client.post(f"/api/v1/booking/sessions/{sid}/preview", json={"start_date": "2025-03-03", "months": 1})
    assert r.status_code == 200

    r = client.get(f"/api/v1/booking/sessions/{sid}/teachers")
    teachers = r.get_json()["teachers"]
    assert [t["id"] for t in teachers] == ["U", "T"]
    assert [t["available"] for t in teachers] == [True, False]


def test_unknown_teacher_is_rejected_on_draft_and_occurrence(client):
    sid = _open(client, mode="create", date="2025-03-03")
    r = client.patch(f"/api/v1/booking/sessions/{sid}/draft", json={"teacher_id": "ghost"})
    assert r.status_code == 404
    assert r.get_json()["errors"][0]["code"] == "NOT_FOUND"
    assert client.get(f"/api/v1/booking/sessions/{sid}").get_json()["session"]["draft"]["teacher_id"] is None

    client.patch(f"/api/v1/booking/sessions/{sid}/draft", json={"start_time": "16:00", "price": 1000})
    client.post(f"/api/v1/booking/sessions/{sid}/recurring", json={"enabled": True})
    client.post(f"/api/v1/booking/sessions/{sid}/preview", json={"months": 1})
    client.put(f"/api/v1/booking/sessions/{sid}/preview/0/teacher", json={"teacher_id": "T"})

    r = client.patch(f"/api/v1/booking/sessions/{sid}/preview/0", json={"teacher_id": "ghost"})
    assert r.status_code == 404
    r = client.patch(f"/api/v1/booking/sessions/{sid}/preview/0", json={"teacher_id": "U"})
    occ = r.get_json()["session"]["preview"]["occurrences"][0]
    assert (occ["teacher_id"], occ["cost"]) == ("U", 600)
