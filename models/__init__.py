from extensions import db

from .teacher import Teacher
from .student import Student
from .lesson import Lesson
from .availability import Availability

__all__ = ["db", "Teacher", "Student", "Lesson", "Availability"]
