"""Database models for course batches.

Cassandra table definitions for:
- Batches: Main batch table (dates, capacity, cached status)
- batches_by_course: Lookup table for listing a course's batches

A batch's ``status`` is a cache of ``derive_status`` over its dates. Seat
counting (``current_students``) is only ever changed through conditional
updates.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from coursemaster.utils import ensure_utc_aware, utc_now


class BatchStatus(str, Enum):
    """Batch temporal status."""

    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"


def derive_status(start_date: datetime, end_date: datetime, now: datetime) -> BatchStatus:
    """Derive a batch's status from its date range.

    ``ongoing`` when start <= now <= end, ``completed`` once the end has
    passed, ``upcoming`` otherwise. Both bounds are inclusive.
    """
    start_date = ensure_utc_aware(start_date)
    end_date = ensure_utc_aware(end_date)
    now = ensure_utc_aware(now)

    if start_date <= now <= end_date:
        return BatchStatus.ONGOING
    if end_date < now:
        return BatchStatus.COMPLETED
    return BatchStatus.UPCOMING


BATCH_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.batches (
    id UUID PRIMARY KEY,
    course_id UUID,
    instructor_id UUID,
    name TEXT,
    start_date TIMESTAMP,
    end_date TIMESTAMP,
    max_students INT,
    current_students INT,
    status TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

BATCHES_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.batches_by_course (
    course_id UUID,
    batch_id UUID,
    PRIMARY KEY (course_id, batch_id)
)
"""

BATCHES_TABLES_CQL = [
    BATCH_TABLE_CQL,
    BATCHES_BY_COURSE_TABLE_CQL,
]


class Batch:
    """Scheduled cohort of a course.

    Attributes:
        id: Unique identifier (UUID)
        course_id: Course UUID
        instructor_id: Instructor running the cohort
        name: Display name (3-100 chars)
        start_date: Cohort start
        end_date: Cohort end (after start_date)
        max_students: Capacity (>= 1)
        current_students: Seats taken
        status: Cached derived status
    """

    def __init__(
        self,
        course_id: UUID,
        instructor_id: UUID,
        name: str,
        start_date: datetime,
        end_date: datetime,
        max_students: int,
        current_students: int = 0,
        status: str | None = None,
        id: UUID | None = None,  # noqa: A002
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.course_id = course_id
        self.instructor_id = instructor_id
        self.name = name
        self.start_date = ensure_utc_aware(start_date)
        self.end_date = ensure_utc_aware(end_date)
        self.max_students = max_students
        self.current_students = current_students
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at
        self.status = status or self.derive_status(self.created_at).value

    def derive_status(self, now: datetime) -> BatchStatus:
        """Status implied by the batch dates at ``now``."""
        return derive_status(self.start_date, self.end_date, now)

    @property
    def is_full(self) -> bool:
        return self.current_students >= self.max_students

    @classmethod
    def from_row(cls, row: Any) -> "Batch":
        """Create Batch instance from Cassandra row."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            instructor_id=row.instructor_id,
            name=row.name,
            start_date=row.start_date,
            end_date=row.end_date,
            max_students=row.max_students,
            current_students=row.current_students or 0,
            status=row.status,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "course_id": self.course_id,
            "instructor_id": self.instructor_id,
            "name": self.name,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "max_students": self.max_students,
            "current_students": self.current_students,
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return (
            f"<Batch {self.name} {self.status} "
            f"{self.current_students}/{self.max_students}>"
        )
