"""Database models for the enrollment ledger.

Cassandra table definitions for:
- enrollments: One row per (student, course), created with IF NOT EXISTS
- enrollments_by_batch: Lookup table guarding batch deletion
- enrollments_by_course: Roster lookup for the owning instructor

Partitioning by student_id keeps a student's whole ledger in one partition.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from coursemaster.utils import ensure_utc_aware, utc_now


class EnrollmentStatus(str, Enum):
    """Enrollment lifecycle status."""

    ENROLLED = "enrolled"
    COMPLETED = "completed"
    DROPPED = "dropped"


ENROLLMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    student_id UUID,
    course_id UUID,
    batch_id UUID,
    status TEXT,
    enrolled_at TIMESTAMP,
    completed_at TIMESTAMP,
    PRIMARY KEY (student_id, course_id)
)
"""

ENROLLMENTS_BY_BATCH_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_batch (
    batch_id UUID,
    student_id UUID,
    course_id UUID,
    enrolled_at TIMESTAMP,
    PRIMARY KEY (batch_id, student_id)
)
"""

ENROLLMENTS_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_course (
    course_id UUID,
    student_id UUID,
    PRIMARY KEY (course_id, student_id)
)
"""

ENROLLMENTS_TABLES_CQL = [
    ENROLLMENT_TABLE_CQL,
    ENROLLMENTS_BY_BATCH_TABLE_CQL,
    ENROLLMENTS_BY_COURSE_TABLE_CQL,
]


class Enrollment:
    """A student's registration in a course.

    Attributes:
        student_id: Student UUID
        course_id: Course UUID
        batch_id: Optional batch the student joined
        status: enrolled, completed or dropped
        enrolled_at: Enrollment timestamp
        completed_at: Completion timestamp
    """

    def __init__(
        self,
        student_id: UUID,
        course_id: UUID,
        batch_id: UUID | None = None,
        status: str = EnrollmentStatus.ENROLLED.value,
        enrolled_at: datetime | None = None,
        completed_at: datetime | None = None,
    ):
        self.student_id = student_id
        self.course_id = course_id
        self.batch_id = batch_id
        self.status = status
        self.enrolled_at = ensure_utc_aware(enrolled_at) or utc_now()
        self.completed_at = ensure_utc_aware(completed_at)

    @property
    def is_active(self) -> bool:
        """Whether the student may currently work in the course."""
        return self.status == EnrollmentStatus.ENROLLED.value

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create Enrollment instance from Cassandra row."""
        return cls(
            student_id=row.student_id,
            course_id=row.course_id,
            batch_id=row.batch_id,
            status=row.status or EnrollmentStatus.ENROLLED.value,
            enrolled_at=row.enrolled_at,
            completed_at=row.completed_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "student_id": self.student_id,
            "course_id": self.course_id,
            "batch_id": self.batch_id,
            "status": self.status,
            "enrolled_at": self.enrolled_at,
            "completed_at": self.completed_at,
        }

    def __repr__(self) -> str:
        return (
            f"<Enrollment student={self.student_id} course={self.course_id} "
            f"{self.status}>"
        )
