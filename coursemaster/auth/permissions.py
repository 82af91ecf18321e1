"""Caller roles for CourseMaster.

- ADMIN: Full system access
- INSTRUCTOR: Manage own courses, batches and grading
- STUDENT: Enroll, track progress, take quizzes, submit work
"""

from enum import Enum


class UserRole(str, Enum):
    """Role carried in the ``X-User-Role`` header."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"
