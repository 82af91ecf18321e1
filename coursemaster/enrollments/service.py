"""Enrollment ledger service layer.

Business logic for:
- Admitting a student into a published course (at most once per pair)
- Optional batch seat reservation on enroll
- Externally triggered status changes (completion, drop)
- The course roster for the owning instructor
- The enrollment precondition shared by progress, quizzes and assignments
"""

import asyncio
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemaster.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PreconditionFailedError,
)
from coursemaster.utils import utc_now

from .models import Enrollment, EnrollmentStatus


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from coursemaster.batches.service import BatchService
    from coursemaster.courses.service import CourseService
    from coursemaster.notifications.service import NotificationService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AlreadyEnrolledError(ConflictError):
    """Enrollment for the (student, course) pair already exists."""

    def __init__(
        self,
        existing: Enrollment,
        message: str = "You are already enrolled in this course",
    ):
        super().__init__(message, "already_enrolled", existing=existing)


class CourseUnavailableError(PreconditionFailedError):
    """Course is not published."""

    status_code = ForbiddenError.status_code

    def __init__(self, message: str = "This course is not available for enrollment"):
        super().__init__(message, "course_unavailable")


class NotEnrolledError(PreconditionFailedError):
    """Student has no active enrollment in the course."""

    status_code = ForbiddenError.status_code

    def __init__(self, message: str = "You must be enrolled in this course"):
        super().__init__(message, "not_enrolled")


class BatchCourseMismatchError(PreconditionFailedError):
    """Batch belongs to another course."""

    def __init__(self, message: str = "Batch does not belong to this course"):
        super().__init__(message, "batch_course_mismatch")


class EnrollmentNotFoundError(NotFoundError):
    """Enrollment not found."""

    def __init__(self, message: str = "Enrollment not found"):
        super().__init__(message, "enrollment_not_found")


# ==============================================================================
# Enrollment Service
# ==============================================================================


class EnrollmentService:
    """Service for the enrollment ledger."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
        batch_service: "BatchService",
        notification_service: "NotificationService | None" = None,
    ):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.batch_service = batch_service
        self.notification_service = notification_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE student_id = ? AND course_id = ?
        """)

        self._get_student_enrollments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments WHERE student_id = ?
        """)

        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (student_id, course_id, batch_id, status, enrolled_at, completed_at)
            VALUES (?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._update_status = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments
            SET status = ?, completed_at = ?
            WHERE student_id = ? AND course_id = ?
            IF EXISTS
        """)

        self._insert_enrollment_by_batch = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_batch
            (batch_id, student_id, course_id, enrolled_at)
            VALUES (?, ?, ?, ?)
        """)

        self._insert_enrollment_by_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_course
            (course_id, student_id)
            VALUES (?, ?)
        """)

        self._list_enrollments_by_course = self.session.prepare(f"""
            SELECT student_id FROM {self.keyspace}.enrollments_by_course
            WHERE course_id = ?
        """)

        self._delete_enrollment = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.enrollments
            WHERE student_id = ? AND course_id = ?
            IF EXISTS
        """)

    # ==========================================================================
    # Enroll
    # ==========================================================================

    async def enroll(
        self,
        student_id: UUID,
        course_id: UUID,
        batch_id: UUID | None = None,
    ) -> Enrollment:
        """Enroll a student in a published course.

        The (student, course) pair is claimed with a lightweight transaction,
        so concurrent duplicate requests resolve to exactly one row.

        Raises:
            CourseNotFoundError: If the course does not exist
            CourseUnavailableError: If the course is not published
            AlreadyEnrolledError: If an enrollment exists (carries it)
            BatchNotFoundError: If batch_id is unknown
            BatchCourseMismatchError: If the batch belongs to another course
            BatchFullError: If the batch has no seat left
        """
        course = await self.course_service.require_course(course_id)
        if not course.is_published:
            raise CourseUnavailableError

        existing = await self.get_enrollment(student_id, course_id)
        if existing:
            raise AlreadyEnrolledError(existing)

        if batch_id is not None:
            batch = await self.batch_service.require_batch(batch_id)
            if batch.course_id != course_id:
                raise BatchCourseMismatchError
            await self.batch_service.reserve_seat(batch_id)

        enrollment = Enrollment(
            student_id=student_id,
            course_id=course_id,
            batch_id=batch_id,
            status=EnrollmentStatus.ENROLLED.value,
            enrolled_at=utc_now(),
        )

        try:
            result = await self.session.aexecute(
                self._insert_enrollment,
                [
                    enrollment.student_id,
                    enrollment.course_id,
                    enrollment.batch_id,
                    enrollment.status,
                    enrollment.enrolled_at,
                    enrollment.completed_at,
                ],
            )
        except Exception:
            await self._release_seat(batch_id)
            raise

        if not result.was_applied:
            # Lost the race to a concurrent enroll for the same pair
            await self._release_seat(batch_id)
            existing = await self.get_enrollment(student_id, course_id)
            logger.info(
                "enrollment_conflict",
                student_id=str(student_id),
                course_id=str(course_id),
            )
            raise AlreadyEnrolledError(existing or enrollment)

        try:
            await self.session.aexecute(
                self._insert_enrollment_by_course, [course_id, student_id]
            )
            if batch_id is not None:
                await self.session.aexecute(
                    self._insert_enrollment_by_batch,
                    [batch_id, student_id, course_id, enrollment.enrolled_at],
                )
        except Exception:
            await self.session.aexecute(
                self._delete_enrollment, [student_id, course_id]
            )
            await self._release_seat(batch_id)
            logger.warning(
                "enrollment_rolled_back",
                student_id=str(student_id),
                course_id=str(course_id),
            )
            raise

        logger.info(
            "student_enrolled",
            student_id=str(student_id),
            course_id=str(course_id),
            batch_id=str(batch_id) if batch_id else None,
        )

        if self.notification_service:
            self.notification_service.notify_enrollment(student_id, course)

        return enrollment

    async def _release_seat(self, batch_id: UUID | None) -> None:
        if batch_id is not None:
            await self.batch_service.release_seat(batch_id)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_enrollment(
        self, student_id: UUID, course_id: UUID
    ) -> Enrollment | None:
        """Get enrollment by student and course."""
        result = await self.session.aexecute(
            self._get_enrollment, [student_id, course_id]
        )
        row = result.one()
        return Enrollment.from_row(row) if row else None

    async def list_enrollments(
        self,
        student_id: UUID,
        course_id: UUID | None = None,
        status: EnrollmentStatus | None = None,
    ) -> list[Enrollment]:
        """List a student's enrollments, newest first."""
        rows = await self.session.aexecute(self._get_student_enrollments, [student_id])
        enrollments = [Enrollment.from_row(row) for row in rows]

        if course_id is not None:
            enrollments = [e for e in enrollments if e.course_id == course_id]
        if status is not None:
            enrollments = [e for e in enrollments if e.status == status.value]

        enrollments.sort(key=lambda e: e.enrolled_at, reverse=True)
        return enrollments

    async def list_course_enrollments(
        self,
        instructor_id: UUID,
        course_id: UUID,
        batch_id: UUID | None = None,
        status: EnrollmentStatus | None = None,
        student_id: UUID | None = None,
    ) -> list[Enrollment]:
        """Roster of a course the instructor owns, newest first.

        Raises:
            CourseNotFoundError: If the course does not exist
            ForbiddenError: If the instructor does not own the course
        """
        course = await self.course_service.require_course(course_id)
        if not course.is_owned_by(instructor_id):
            logger.warning(
                "roster_access_denied",
                course_id=str(course_id),
                instructor_id=str(instructor_id),
            )
            raise ForbiddenError

        if student_id is not None:
            student_ids = [student_id]
        else:
            rows = await self.session.aexecute(
                self._list_enrollments_by_course, [course_id]
            )
            student_ids = [row.student_id for row in rows]

        found = await asyncio.gather(
            *(self.get_enrollment(sid, course_id) for sid in student_ids)
        )
        enrollments = [e for e in found if e is not None]

        if batch_id is not None:
            enrollments = [e for e in enrollments if e.batch_id == batch_id]
        if status is not None:
            enrollments = [e for e in enrollments if e.status == status.value]

        enrollments.sort(key=lambda e: e.enrolled_at, reverse=True)
        return enrollments

    async def require_active_enrollment(
        self, student_id: UUID, course_id: UUID
    ) -> Enrollment:
        """Return the student's enrollment if its status is ``enrolled``.

        Raises:
            NotEnrolledError: If there is no enrollment or it is not active
        """
        enrollment = await self.get_enrollment(student_id, course_id)
        if enrollment is None or not enrollment.is_active:
            raise NotEnrolledError
        return enrollment

    # ==========================================================================
    # Status changes
    # ==========================================================================

    async def update_status(
        self,
        student_id: UUID,
        course_id: UUID,
        new_status: EnrollmentStatus,
    ) -> Enrollment:
        """Overwrite an enrollment's status.

        ``completed_at`` is stamped on the first move to ``completed`` and
        cleared when the enrollment leaves that status.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist
        """
        enrollment = await self.get_enrollment(student_id, course_id)
        if enrollment is None:
            raise EnrollmentNotFoundError

        previous = enrollment.status
        if new_status == EnrollmentStatus.COMPLETED:
            enrollment.completed_at = enrollment.completed_at or utc_now()
        else:
            enrollment.completed_at = None
        enrollment.status = new_status.value

        result = await self.session.aexecute(
            self._update_status,
            [enrollment.status, enrollment.completed_at, student_id, course_id],
        )
        if not result.was_applied:
            raise EnrollmentNotFoundError

        logger.info(
            "enrollment_status_updated",
            student_id=str(student_id),
            course_id=str(course_id),
            previous=previous,
            status=enrollment.status,
        )

        if (
            new_status == EnrollmentStatus.COMPLETED
            and previous != EnrollmentStatus.COMPLETED.value
            and self.notification_service
        ):
            course = await self.course_service.get_course(course_id)
            if course:
                self.notification_service.notify_course_completion(student_id, course)

        return enrollment
