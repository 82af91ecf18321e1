"""Enrollment ledger: one enrollment per (student, course)."""

from .models import ENROLLMENTS_TABLES_CQL, Enrollment, EnrollmentStatus


__all__ = [
    "ENROLLMENTS_TABLES_CQL",
    "Enrollment",
    "EnrollmentStatus",
]
