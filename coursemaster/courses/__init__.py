"""Course catalog: courses, lessons and publish state."""

from .models import COURSES_TABLES_CQL, Course, Lesson


__all__ = [
    "COURSES_TABLES_CQL",
    "Course",
    "Lesson",
]
