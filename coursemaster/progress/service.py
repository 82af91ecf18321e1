"""Lesson progress service layer.

Business logic for:
- Recording lesson visits (upsert with accumulating time spent)
- Course completion percentage
- Progress listings
"""

import asyncio
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemaster.config import get_settings
from coursemaster.core.exceptions import (
    ConcurrentUpdateError,
    PreconditionFailedError,
    ValidationFailureError,
)
from coursemaster.courses.service import LessonNotFoundError
from coursemaster.utils import utc_now

from .models import CourseProgress, LessonProgress


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from coursemaster.courses.service import CourseService
    from coursemaster.enrollments.service import EnrollmentService

logger = structlog.get_logger(__name__)


class LessonNotInCourseError(PreconditionFailedError):
    """Lesson belongs to another course."""

    def __init__(self, message: str = "Lesson does not belong to this course"):
        super().__init__(message, "lesson_not_in_course")


class ProgressService:
    """Service for lesson progress tracking."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
        enrollment_service: "EnrollmentService",
        max_retries: int | None = None,
    ):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.enrollment_service = enrollment_service
        self.max_retries = max_retries or get_settings().cas_max_retries
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_lesson_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress
            WHERE student_id = ? AND course_id = ? AND lesson_id = ?
        """)

        self._get_course_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress
            WHERE student_id = ? AND course_id = ?
        """)

        self._insert_lesson_progress = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lesson_progress
            (student_id, course_id, lesson_id, is_completed, completed_at,
             time_spent, last_accessed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        # Conditioned on the values read, so concurrent visits never lose time
        self._cas_lesson_progress = self.session.prepare(f"""
            UPDATE {self.keyspace}.lesson_progress
            SET is_completed = ?, completed_at = ?, time_spent = ?,
                last_accessed_at = ?
            WHERE student_id = ? AND course_id = ? AND lesson_id = ?
            IF time_spent = ? AND completed_at = ?
        """)

    # ==========================================================================
    # Record
    # ==========================================================================

    async def record_progress(
        self,
        student_id: UUID,
        course_id: UUID,
        lesson_id: UUID,
        is_completed: bool,
        time_spent_delta: int = 0,
    ) -> LessonProgress:
        """Record a lesson visit.

        Creates the progress row on first visit. Later visits add
        ``time_spent_delta`` to the accumulated time, overwrite the completion
        flag and keep the first ``completed_at``.

        Raises:
            ValidationFailureError: If time_spent_delta is negative
            NotEnrolledError: If the student has no active enrollment
            LessonNotFoundError: If the lesson does not exist
            LessonNotInCourseError: If the lesson belongs to another course
            ConcurrentUpdateError: If retries are exhausted under contention
        """
        await self.enrollment_service.require_active_enrollment(student_id, course_id)

        lesson = await self.course_service.get_lesson(lesson_id)
        if lesson is None:
            raise LessonNotFoundError
        if lesson.course_id != course_id:
            raise LessonNotInCourseError

        if time_spent_delta < 0:
            raise ValidationFailureError(
                "Time spent cannot be negative", "negative_time_spent"
            )

        for _ in range(self.max_retries):
            now = utc_now()
            current = await self.get_lesson_progress(student_id, course_id, lesson_id)

            if current is None:
                progress = LessonProgress(
                    student_id=student_id,
                    course_id=course_id,
                    lesson_id=lesson_id,
                    is_completed=is_completed,
                    completed_at=now if is_completed else None,
                    time_spent=time_spent_delta,
                    last_accessed_at=now,
                )
                result = await self.session.aexecute(
                    self._insert_lesson_progress,
                    [
                        progress.student_id,
                        progress.course_id,
                        progress.lesson_id,
                        progress.is_completed,
                        progress.completed_at,
                        progress.time_spent,
                        progress.last_accessed_at,
                    ],
                )
            else:
                progress = current.advanced(is_completed, time_spent_delta, now)
                result = await self.session.aexecute(
                    self._cas_lesson_progress,
                    [
                        progress.is_completed,
                        progress.completed_at,
                        progress.time_spent,
                        progress.last_accessed_at,
                        student_id,
                        course_id,
                        lesson_id,
                        current.time_spent,
                        current.completed_at,
                    ],
                )

            if result.was_applied:
                logger.info(
                    "lesson_progress_recorded",
                    student_id=str(student_id),
                    course_id=str(course_id),
                    lesson_id=str(lesson_id),
                    is_completed=progress.is_completed,
                    time_spent=progress.time_spent,
                    created=current is None,
                )
                return progress

        raise ConcurrentUpdateError("lesson progress")

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_lesson_progress(
        self, student_id: UUID, course_id: UUID, lesson_id: UUID
    ) -> LessonProgress | None:
        """Get progress for a single lesson."""
        result = await self.session.aexecute(
            self._get_lesson_progress, [student_id, course_id, lesson_id]
        )
        row = result.one()
        return LessonProgress.from_row(row) if row else None

    async def _course_records(
        self, student_id: UUID, course_id: UUID
    ) -> list[LessonProgress]:
        rows = await self.session.aexecute(
            self._get_course_progress, [student_id, course_id]
        )
        return [LessonProgress.from_row(row) for row in rows]

    async def course_progress(self, student_id: UUID, course_id: UUID) -> CourseProgress:
        """Completed over total lessons for one student in one course.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        await self.course_service.require_course(course_id)

        total_lessons, records = await asyncio.gather(
            self.course_service.count_lessons(course_id),
            self._course_records(student_id, course_id),
        )
        completed = sum(1 for p in records if p.is_completed)

        return CourseProgress(
            course_id=course_id,
            completed_lessons=completed,
            total_lessons=total_lessons,
        )

    async def list_progress(
        self, student_id: UUID, course_id: UUID | None = None
    ) -> list[LessonProgress]:
        """List progress records, most recently accessed first.

        Without ``course_id`` the student's enrolled courses are walked.
        """
        if course_id is not None:
            course_ids = [course_id]
        else:
            enrollments = await self.enrollment_service.list_enrollments(student_id)
            course_ids = [e.course_id for e in enrollments]

        per_course = await asyncio.gather(
            *(self._course_records(student_id, cid) for cid in course_ids)
        )
        records = [p for chunk in per_course for p in chunk]
        records.sort(key=lambda p: p.last_accessed_at, reverse=True)
        return records
