"""Lesson progress tracking and course completion percentage."""

from .models import PROGRESS_TABLES_CQL, CourseProgress, LessonProgress


__all__ = [
    "PROGRESS_TABLES_CQL",
    "CourseProgress",
    "LessonProgress",
]
