"""Assignments: graded deliverables and the submission workflow."""

from .models import ASSIGNMENTS_TABLES_CQL, Assignment, Submission, SubmissionStatus


__all__ = [
    "ASSIGNMENTS_TABLES_CQL",
    "Assignment",
    "Submission",
    "SubmissionStatus",
]
