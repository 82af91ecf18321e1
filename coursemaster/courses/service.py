"""Course catalog service layer.

Read operations the engine relies on (existence, publish state, ownership,
lesson membership and count) plus the instructor-facing catalog writes.
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemaster.core.exceptions import NotFoundError
from coursemaster.utils import utc_now

from .models import Course, Lesson
from .schemas import CreateCourseRequest, CreateLessonRequest


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


class CourseNotFoundError(NotFoundError):
    """Course not found."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class LessonNotFoundError(NotFoundError):
    """Lesson not found."""

    def __init__(self, message: str = "Lesson not found"):
        super().__init__(message, "lesson_not_found")


class CourseService:
    """Service for course and lesson lookups."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_course_by_id = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses WHERE id = ?
        """)

        self._insert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, title, description, instructor_id, is_published,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

        self._set_published = self.session.prepare(f"""
            UPDATE {self.keyspace}.courses
            SET is_published = ?, updated_at = ?
            WHERE id = ?
        """)

        self._get_lesson_by_id = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lessons WHERE id = ?
        """)

        self._insert_lesson = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lessons
            (id, course_id, title, lesson_order, duration_minutes)
            VALUES (?, ?, ?, ?, ?)
        """)

        self._insert_lesson_by_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lessons_by_course
            (course_id, lesson_order, lesson_id, title, duration_minutes)
            VALUES (?, ?, ?, ?, ?)
        """)

        self._list_lessons_by_course = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lessons_by_course WHERE course_id = ?
        """)

        self._count_lessons_by_course = self.session.prepare(f"""
            SELECT COUNT(*) AS total FROM {self.keyspace}.lessons_by_course
            WHERE course_id = ?
        """)

    # ==========================================================================
    # Courses
    # ==========================================================================

    async def get_course(self, course_id: UUID) -> Course | None:
        """Get course by ID."""
        result = await self.session.aexecute(self._get_course_by_id, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def require_course(self, course_id: UUID) -> Course:
        """Get course by ID or raise CourseNotFoundError."""
        course = await self.get_course(course_id)
        if course is None:
            raise CourseNotFoundError
        return course

    async def create_course(
        self, data: CreateCourseRequest, instructor_id: UUID
    ) -> Course:
        """Create a new course owned by ``instructor_id``."""
        course = Course(
            title=data.title,
            description=data.description,
            instructor_id=instructor_id,
            is_published=data.is_published,
        )

        await self.session.aexecute(
            self._insert_course,
            [
                course.id,
                course.title,
                course.description,
                course.instructor_id,
                course.is_published,
                course.created_at,
                course.updated_at,
            ],
        )

        logger.info(
            "course_created",
            course_id=str(course.id),
            instructor_id=str(instructor_id),
        )
        return course

    async def set_published(self, course_id: UUID, is_published: bool) -> Course:
        """Publish or unpublish a course."""
        course = await self.require_course(course_id)
        course.is_published = is_published
        course.updated_at = utc_now()

        await self.session.aexecute(
            self._set_published,
            [course.is_published, course.updated_at, course.id],
        )

        logger.info(
            "course_publish_state_changed",
            course_id=str(course_id),
            is_published=is_published,
        )
        return course

    # ==========================================================================
    # Lessons
    # ==========================================================================

    async def get_lesson(self, lesson_id: UUID) -> Lesson | None:
        """Get lesson by ID."""
        result = await self.session.aexecute(self._get_lesson_by_id, [lesson_id])
        row = result.one()
        return Lesson.from_row(row) if row else None

    async def create_lesson(
        self, course_id: UUID, data: CreateLessonRequest
    ) -> Lesson:
        """Add a lesson to an existing course."""
        await self.require_course(course_id)

        lesson = Lesson(
            course_id=course_id,
            title=data.title,
            order=data.order,
            duration_minutes=data.duration_minutes,
        )

        # Dual write: main table + ordered listing
        await self.session.aexecute(
            self._insert_lesson,
            [
                lesson.id,
                lesson.course_id,
                lesson.title,
                lesson.order,
                lesson.duration_minutes,
            ],
        )
        await self.session.aexecute(
            self._insert_lesson_by_course,
            [
                lesson.course_id,
                lesson.order,
                lesson.id,
                lesson.title,
                lesson.duration_minutes,
            ],
        )

        logger.info(
            "lesson_created",
            lesson_id=str(lesson.id),
            course_id=str(course_id),
        )
        return lesson

    async def list_lessons(self, course_id: UUID) -> list[Lesson]:
        """List a course's lessons in course order."""
        rows = await self.session.aexecute(self._list_lessons_by_course, [course_id])
        return [
            Lesson(
                id=row.lesson_id,
                course_id=row.course_id,
                title=row.title,
                order=row.lesson_order or 0,
                duration_minutes=row.duration_minutes or 0,
            )
            for row in rows
        ]

    async def count_lessons(self, course_id: UUID) -> int:
        """Count the lessons of a course."""
        result = await self.session.aexecute(self._count_lessons_by_course, [course_id])
        row = result.one()
        return int(row.total) if row else 0
