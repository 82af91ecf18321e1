"""Database models for the course catalog.

Cassandra table definitions for:
- Courses: Main course table
- Lessons: Lesson table keyed by id
- lessons_by_course: Ordered lesson listing per course
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from coursemaster.utils import ensure_utc_aware, utc_now


COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    instructor_id UUID,
    is_published BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

LESSON_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lessons (
    id UUID PRIMARY KEY,
    course_id UUID,
    title TEXT,
    lesson_order INT,
    duration_minutes INT
)
"""

# Partition key: course_id; clustering keeps lessons in course order
LESSONS_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lessons_by_course (
    course_id UUID,
    lesson_order INT,
    lesson_id UUID,
    title TEXT,
    duration_minutes INT,
    PRIMARY KEY (course_id, lesson_order, lesson_id)
) WITH CLUSTERING ORDER BY (lesson_order ASC, lesson_id ASC)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    LESSON_TABLE_CQL,
    LESSONS_BY_COURSE_TABLE_CQL,
]


class Course:
    """Course entity.

    Attributes:
        id: Unique identifier (UUID)
        title: Course title
        description: Course description
        instructor_id: Owning instructor
        is_published: Only published courses accept enrollments
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        title: str,
        instructor_id: UUID,
        description: str | None = None,
        is_published: bool = False,
        id: UUID | None = None,  # noqa: A002
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title
        self.description = description
        self.instructor_id = instructor_id
        self.is_published = is_published
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    def is_owned_by(self, user_id: UUID) -> bool:
        """Check whether the given instructor owns this course."""
        return self.instructor_id == user_id

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title,
            description=row.description,
            instructor_id=row.instructor_id,
            is_published=bool(row.is_published),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "instructor_id": self.instructor_id,
            "is_published": self.is_published,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        state = "published" if self.is_published else "draft"
        return f"<Course {self.title} ({state})>"


class Lesson:
    """Lesson entity.

    Attributes:
        id: Unique identifier (UUID)
        course_id: Course the lesson belongs to
        title: Lesson title
        order: Position inside the course
        duration_minutes: Expected duration
    """

    def __init__(
        self,
        course_id: UUID,
        title: str,
        order: int = 0,
        duration_minutes: int = 0,
        id: UUID | None = None,  # noqa: A002
    ):
        self.id = id or uuid4()
        self.course_id = course_id
        self.title = title
        self.order = order
        self.duration_minutes = duration_minutes

    @classmethod
    def from_row(cls, row: Any) -> "Lesson":
        """Create Lesson instance from Cassandra row."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            title=row.title,
            order=row.lesson_order or 0,
            duration_minutes=row.duration_minutes or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "order": self.order,
            "duration_minutes": self.duration_minutes,
        }

    def __repr__(self) -> str:
        return f"<Lesson {self.order}: {self.title}>"
