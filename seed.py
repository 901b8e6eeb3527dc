"""
Idempotent demo seed.
Usage:
  python seed.py --reset   # drop and recreate all tables, then load demo data
  python seed.py           # fill in whatever demo data is missing
"""
from __future__ import annotations
from datetime import date, timedelta
import argparse
import logging

from extensions import db
from models import Availability, Lesson, Student, Teacher
from blueprints.availability.services import availability_id
from blueprints.booking.services.costs import calculate_cost
from blueprints.booking.services.identifiers import BatchAllocator
from blueprints.booking.repository import lesson_from_row

log = logging.getLogger(__name__)

DEMO_TEACHERS = [
    {"id": "t-alice", "name": "Alice Chen", "phone": "0912-000-111", "email": "alice@example.com",
     "commission_rate": 50, "color": "#3b82f6"},
    {"id": "t-bob", "name": "Bob Lin", "phone": "0922-000-222", "email": "bob@example.com",
     "commission_rate": 60, "color": "#10b981"},
    {"id": "t-cara", "name": "Cara Wu", "phone": "0933-000-333", "email": None,
     "commission_rate": 55, "color": "#f59e0b"},
]

DEMO_STUDENTS = [
    {"id": "s-amy", "name": "Amy Huang", "grade": "G5", "parent_name": "Mrs. Huang"},
    {"id": "s-ben", "name": "Ben Tsai", "grade": "G7", "parent_name": "Mr. Tsai"},
    {"id": "s-coco", "name": "Coco Lee", "grade": "G3", "parent_name": "Ms. Lee"},
]

# (teacher, weekday offset from monday, slots)
DEMO_AVAILABILITY = [
    ("t-alice", 0, [("09:00", "12:00"), ("14:00", "18:00")]),
    ("t-alice", 2, [("13:00", "17:00")]),
    ("t-bob", 0, [("10:00", "13:00")]),
    ("t-bob", 3, [("15:00", "20:00")]),
    ("t-cara", 4, [("09:00", "11:00")]),
]

# (title, teacher, weekday offset, start, duration, price, students)
DEMO_LESSONS = [
    ("Piano basics", "t-alice", 0, "09:00", 60, 1000, ["s-amy"]),
    ("Violin 101", "t-bob", 0, "10:30", 90, 1200, ["s-ben"]),
    ("Music theory", "t-alice", 2, "14:00", 60, 800, ["s-amy", "s-coco"]),
    ("Sight reading", "t-cara", 4, "09:30", 45, 600, ["s-coco"]),
]


def get_or_create(model, defaults=None, **filters):
    inst = db.session.query(model).filter_by(**filters).first()
    if inst:
        return inst, False
    data = dict(filters)
    if defaults:
        data.update(defaults)
    inst = model(**data)
    db.session.add(inst)
    return inst, True


def seed_directory():
    for t in DEMO_TEACHERS:
        get_or_create(Teacher, id=t["id"], defaults={k: v for k, v in t.items() if k != "id"})
    for s in DEMO_STUDENTS:
        get_or_create(Student, id=s["id"], defaults={k: v for k, v in s.items() if k != "id"})
    db.session.flush()


def seed_availability(monday: date):
    for teacher_id, offset, slots in DEMO_AVAILABILITY:
        day = monday + timedelta(days=offset)
        get_or_create(
            Availability,
            id=availability_id(teacher_id, day),
            defaults={
                "teacher_id": teacher_id,
                "date": day,
                "time_slots": [{"start": s, "end": e} for s, e in slots],
            },
        )
    db.session.flush()


def seed_lessons(monday: date):
    if db.session.query(Lesson).filter(Lesson.date >= monday, Lesson.date < monday + timedelta(days=7)).first():
        return 0
    rates = {t["id"]: t["commission_rate"] for t in DEMO_TEACHERS}
    allocator = BatchAllocator([lesson_from_row(r) for r in db.session.query(Lesson).all()])
    created = 0
    for title, teacher_id, offset, start, duration, price, students in DEMO_LESSONS:
        day = monday + timedelta(days=offset)
        db.session.add(Lesson(
            id=allocator.next_id(day),
            title=title,
            subject="Music",
            lesson_type="PRIVATE" if len(students) == 1 else "GROUP",
            teacher_id=teacher_id,
            student_ids=students,
            date=day,
            start_time=start,
            duration_minutes=duration,
            price=price,
            cost=calculate_cost(price, rates[teacher_id]),
            is_completed=day < date.today(),
            lesson_plan="",
            student_notes={},
        ))
        created += 1
    return created


def seed_demo(today: date | None = None):
    today = today or date.today()
    monday = today - timedelta(days=today.weekday())
    seed_directory()
    seed_availability(monday)
    created = seed_lessons(monday)
    db.session.commit()
    log.info("demo data ready, %d lesson(s) created", created)


def main():
    from app import create_app

    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="drop + create + demo seed")
    parser.add_argument("--config", default="dev", help="config name from config.config_map")
    args = parser.parse_args()

    app = create_app(args.config)
    with app.app_context():
        if args.reset:
            db.drop_all()
        db.create_all()
        seed_demo()
    print("seed: done")

if __name__ == "__main__":
    main()
