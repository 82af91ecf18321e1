"""Database models for lesson progress tracking.

Cassandra table definitions for:
- lesson_progress: One row per (student, course, lesson)

Partition key (student_id, course_id) keeps a student's progress through a
course in one partition, which is all ``course_progress`` needs to read.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from coursemaster.utils import ensure_utc_aware, round_percentage, utc_now


LESSON_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lesson_progress (
    student_id UUID,
    course_id UUID,
    lesson_id UUID,
    is_completed BOOLEAN,
    completed_at TIMESTAMP,
    time_spent INT,
    last_accessed_at TIMESTAMP,
    PRIMARY KEY ((student_id, course_id), lesson_id)
)
"""

PROGRESS_TABLES_CQL = [
    LESSON_PROGRESS_TABLE_CQL,
]


class LessonProgress:
    """Completion and time-spent state of one lesson for one student.

    Attributes:
        student_id: Student UUID
        course_id: Course UUID
        lesson_id: Lesson UUID
        is_completed: Current completion flag
        completed_at: First completion timestamp, never reset
        time_spent: Accumulated minutes, never decreases
        last_accessed_at: Last time progress was recorded
    """

    def __init__(
        self,
        student_id: UUID,
        course_id: UUID,
        lesson_id: UUID,
        is_completed: bool = False,
        completed_at: datetime | None = None,
        time_spent: int = 0,
        last_accessed_at: datetime | None = None,
    ):
        self.student_id = student_id
        self.course_id = course_id
        self.lesson_id = lesson_id
        self.is_completed = is_completed
        self.completed_at = ensure_utc_aware(completed_at)
        self.time_spent = time_spent
        self.last_accessed_at = ensure_utc_aware(last_accessed_at) or utc_now()

    def advanced(
        self, is_completed: bool, time_spent_delta: int, now: datetime
    ) -> "LessonProgress":
        """Progress after one more visit.

        Time accumulates, the flag is overwritten and ``completed_at`` latches
        on the first completion.
        """
        completed_at = self.completed_at
        if is_completed and completed_at is None:
            completed_at = now

        return LessonProgress(
            student_id=self.student_id,
            course_id=self.course_id,
            lesson_id=self.lesson_id,
            is_completed=is_completed,
            completed_at=completed_at,
            time_spent=self.time_spent + time_spent_delta,
            last_accessed_at=now,
        )

    @classmethod
    def from_row(cls, row: Any) -> "LessonProgress":
        """Create LessonProgress instance from Cassandra row."""
        return cls(
            student_id=row.student_id,
            course_id=row.course_id,
            lesson_id=row.lesson_id,
            is_completed=bool(row.is_completed),
            completed_at=row.completed_at,
            time_spent=row.time_spent or 0,
            last_accessed_at=row.last_accessed_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "student_id": self.student_id,
            "course_id": self.course_id,
            "lesson_id": self.lesson_id,
            "is_completed": self.is_completed,
            "completed_at": self.completed_at,
            "time_spent": self.time_spent,
            "last_accessed_at": self.last_accessed_at,
        }

    def __repr__(self) -> str:
        state = "done" if self.is_completed else "open"
        return f"<LessonProgress lesson={self.lesson_id} {state} {self.time_spent}min>"


class CourseProgress:
    """Derived course completion snapshot (not persisted)."""

    def __init__(self, course_id: UUID, completed_lessons: int, total_lessons: int):
        self.course_id = course_id
        self.total_lessons = total_lessons
        # Progress rows of lessons removed from the course must not push past 100%
        self.completed_lessons = min(completed_lessons, total_lessons)

    @property
    def percentage(self) -> int:
        return round_percentage(self.completed_lessons, self.total_lessons)

    def __repr__(self) -> str:
        return (
            f"<CourseProgress {self.completed_lessons}/{self.total_lessons} "
            f"{self.percentage}%>"
        )
