"""Assignment grading workflow service layer.

Business logic for:
- Assignment creation (course owner only)
- Student submissions (at most one per assignment and student)
- Grading with score bounds and the submission -> assignment -> course
  ownership walk
"""

import asyncio
from typing import TYPE_CHECKING
from urllib.parse import urlparse
from uuid import UUID

import structlog

from coursemaster.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationFailureError,
)
from coursemaster.courses.service import LessonNotFoundError
from coursemaster.progress.service import LessonNotInCourseError
from coursemaster.utils import utc_now

from .models import Assignment, Submission, SubmissionStatus
from .schemas import CreateAssignmentRequest


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from coursemaster.courses.models import Course
    from coursemaster.courses.service import CourseService
    from coursemaster.enrollments.service import EnrollmentService
    from coursemaster.notifications.service import NotificationService

logger = structlog.get_logger(__name__)

# Links to these hosts are accepted over plain http as well
TRUSTED_DOCUMENT_HOSTS = frozenset({"drive.google.com", "docs.google.com"})


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AssignmentNotFoundError(NotFoundError):
    """Assignment not found."""

    def __init__(self, message: str = "Assignment not found"):
        super().__init__(message, "assignment_not_found")


class SubmissionNotFoundError(NotFoundError):
    """Submission not found."""

    def __init__(self, message: str = "Submission not found"):
        super().__init__(message, "submission_not_found")


class AlreadySubmittedError(ConflictError):
    """Submission for the (assignment, student) pair already exists."""

    def __init__(
        self,
        existing: Submission | None,
        message: str = "You have already submitted this assignment",
    ):
        super().__init__(message, "already_submitted", existing=existing)


class MissingContentError(ValidationFailureError):
    """Neither text nor url was provided."""

    def __init__(self, message: str = "Submission text or URL is required"):
        super().__init__(message, "missing_content")


class InvalidSubmissionUrlError(ValidationFailureError):
    """Submission url is not an accepted link."""

    def __init__(
        self,
        message: str = "Submission URL must be an https link or a Google Drive/Docs link",
    ):
        super().__init__(message, "invalid_submission_url")


class ScoreExceedsMaxError(ValidationFailureError):
    """Score above the assignment's max_score."""

    def __init__(self, max_score: float):
        super().__init__(
            f"Score cannot exceed the maximum score of {max_score:g}",
            "score_exceeds_max",
        )
        self.max_score = max_score


class NegativeScoreError(ValidationFailureError):
    """Score below zero."""

    def __init__(self, message: str = "Score cannot be negative"):
        super().__init__(message, "negative_score")


# ==============================================================================
# Validation helpers
# ==============================================================================


def normalize_content(
    submission_text: str | None, submission_url: str | None
) -> tuple[str | None, str | None]:
    """Strip blank fields and check that something was handed in.

    Raises:
        MissingContentError: If both fields are empty
        InvalidSubmissionUrlError: If the url is not an accepted link
    """
    text = (submission_text or "").strip() or None
    url = (submission_url or "").strip() or None
    if text is None and url is None:
        raise MissingContentError
    if url is not None and not is_accepted_url(url):
        raise InvalidSubmissionUrlError
    return text, url


def is_accepted_url(url: str) -> bool:
    """True for https links and http(s) links to Google Drive/Docs."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    return parsed.scheme == "https" or parsed.hostname in TRUSTED_DOCUMENT_HOSTS


def check_score(score: float, max_score: float) -> None:
    """Enforce 0 <= score <= max_score.

    Raises:
        NegativeScoreError: If score < 0
        ScoreExceedsMaxError: If score > max_score
    """
    if score < 0:
        raise NegativeScoreError
    if score > max_score:
        raise ScoreExceedsMaxError(max_score)


# ==============================================================================
# Assignment Service
# ==============================================================================


class AssignmentService:
    """Service for assignments, submissions and grading."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
        enrollment_service: "EnrollmentService",
        notification_service: "NotificationService | None" = None,
    ):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.enrollment_service = enrollment_service
        self.notification_service = notification_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_assignment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.assignments WHERE id = ?
        """)

        self._insert_assignment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.assignments
            (id, course_id, lesson_id, title, description, instructions,
             due_date, max_score, created_by, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_assignment_by_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.assignments_by_course
            (course_id, assignment_id)
            VALUES (?, ?)
        """)

        self._list_assignments_by_course = self.session.prepare(f"""
            SELECT assignment_id FROM {self.keyspace}.assignments_by_course
            WHERE course_id = ?
        """)

        self._claim_submission = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.submissions_by_student
            (assignment_id, student_id, id, submission_text, submission_url,
             status, score, feedback, submitted_at, graded_at, graded_by)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._release_claim = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.submissions_by_student
            WHERE assignment_id = ? AND student_id = ?
            IF id = ?
        """)

        self._get_student_submission = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.submissions_by_student
            WHERE assignment_id = ? AND student_id = ?
        """)

        self._update_student_submission = self.session.prepare(f"""
            UPDATE {self.keyspace}.submissions_by_student
            SET status = ?, score = ?, feedback = ?, graded_at = ?, graded_by = ?
            WHERE assignment_id = ? AND student_id = ?
        """)

        self._insert_submission = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.submissions
            (id, assignment_id, student_id, submission_text, submission_url,
             status, score, feedback, submitted_at, graded_at, graded_by)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_submission = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.submissions WHERE id = ?
        """)

        self._update_submission = self.session.prepare(f"""
            UPDATE {self.keyspace}.submissions
            SET status = ?, score = ?, feedback = ?, graded_at = ?, graded_by = ?
            WHERE id = ?
        """)

        self._insert_submission_by_assignment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.submissions_by_assignment
            (assignment_id, submission_id, student_id)
            VALUES (?, ?, ?)
        """)

        self._list_submissions_by_assignment = self.session.prepare(f"""
            SELECT submission_id FROM {self.keyspace}.submissions_by_assignment
            WHERE assignment_id = ?
        """)

    # ==========================================================================
    # Assignments
    # ==========================================================================

    async def create_assignment(
        self, instructor_id: UUID, data: CreateAssignmentRequest
    ) -> Assignment:
        """Create an assignment for a course the instructor owns.

        Raises:
            CourseNotFoundError: If the course does not exist
            ForbiddenError: If the instructor does not own the course
            LessonNotFoundError: If lesson_id is unknown
            LessonNotInCourseError: If the lesson belongs to another course
        """
        course = await self.course_service.require_course(data.course_id)
        if not course.is_owned_by(instructor_id):
            raise ForbiddenError

        if data.lesson_id is not None:
            lesson = await self.course_service.get_lesson(data.lesson_id)
            if lesson is None:
                raise LessonNotFoundError
            if lesson.course_id != data.course_id:
                raise LessonNotInCourseError

        assignment = Assignment(
            course_id=data.course_id,
            lesson_id=data.lesson_id,
            title=data.title,
            description=data.description,
            instructions=data.instructions,
            due_date=data.due_date,
            max_score=data.max_score,
            created_by=instructor_id,
        )

        await self.session.aexecute(
            self._insert_assignment,
            [
                assignment.id,
                assignment.course_id,
                assignment.lesson_id,
                assignment.title,
                assignment.description,
                assignment.instructions,
                assignment.due_date,
                assignment.max_score,
                assignment.created_by,
                assignment.created_at,
                assignment.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_assignment_by_course, [assignment.course_id, assignment.id]
        )

        logger.info(
            "assignment_created",
            assignment_id=str(assignment.id),
            course_id=str(assignment.course_id),
            max_score=assignment.max_score,
        )
        return assignment

    async def get_assignment(self, assignment_id: UUID) -> Assignment | None:
        """Get assignment by ID."""
        result = await self.session.aexecute(self._get_assignment, [assignment_id])
        row = result.one()
        return Assignment.from_row(row) if row else None

    async def require_assignment(self, assignment_id: UUID) -> Assignment:
        """Get assignment by ID or raise AssignmentNotFoundError."""
        assignment = await self.get_assignment(assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError
        return assignment

    async def list_assignments(self, course_id: UUID) -> list[Assignment]:
        """List a course's assignments, earliest due first (undated last)."""
        rows = await self.session.aexecute(
            self._list_assignments_by_course, [course_id]
        )
        found = await asyncio.gather(
            *(self.get_assignment(row.assignment_id) for row in rows)
        )
        assignments = [a for a in found if a is not None]
        assignments.sort(
            key=lambda a: (a.due_date is None, a.due_date or a.created_at, a.created_at)
        )
        return assignments

    async def list_student_assignments(
        self, student_id: UUID, course_id: UUID
    ) -> list[tuple[Assignment, Submission | None]]:
        """A course's assignments paired with the student's submission.

        Raises:
            NotEnrolledError: If the student has no active enrollment
        """
        await self.enrollment_service.require_active_enrollment(student_id, course_id)

        assignments = await self.list_assignments(course_id)
        submissions = await asyncio.gather(
            *(self.get_student_submission(a.id, student_id) for a in assignments)
        )
        return list(zip(assignments, submissions, strict=True))

    # ==========================================================================
    # Submissions
    # ==========================================================================

    async def submit(
        self,
        student_id: UUID,
        assignment_id: UUID,
        submission_text: str | None = None,
        submission_url: str | None = None,
    ) -> Submission:
        """Hand in an assignment.

        The (assignment, student) pair is claimed with a lightweight
        transaction; a resubmission is rejected, never overwritten.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist
            NotEnrolledError: If the student has no active enrollment
            MissingContentError: If neither text nor url is present
            InvalidSubmissionUrlError: If the url is not an accepted link
            AlreadySubmittedError: If a submission exists (carries it)
        """
        assignment = await self.require_assignment(assignment_id)
        await self.enrollment_service.require_active_enrollment(
            student_id, assignment.course_id
        )
        text, url = normalize_content(submission_text, submission_url)

        submission = Submission(
            assignment_id=assignment_id,
            student_id=student_id,
            submission_text=text,
            submission_url=url,
            status=SubmissionStatus.SUBMITTED.value,
            submitted_at=utc_now(),
        )

        result = await self.session.aexecute(
            self._claim_submission,
            [
                submission.assignment_id,
                submission.student_id,
                submission.id,
                submission.submission_text,
                submission.submission_url,
                submission.status,
                submission.score,
                submission.feedback,
                submission.submitted_at,
                submission.graded_at,
                submission.graded_by,
            ],
        )
        if not result.was_applied:
            existing = await self.get_student_submission(assignment_id, student_id)
            logger.info(
                "submission_conflict",
                assignment_id=str(assignment_id),
                student_id=str(student_id),
            )
            raise AlreadySubmittedError(existing)

        try:
            await self.session.aexecute(
                self._insert_submission,
                [
                    submission.id,
                    submission.assignment_id,
                    submission.student_id,
                    submission.submission_text,
                    submission.submission_url,
                    submission.status,
                    submission.score,
                    submission.feedback,
                    submission.submitted_at,
                    submission.graded_at,
                    submission.graded_by,
                ],
            )
            await self.session.aexecute(
                self._insert_submission_by_assignment,
                [assignment_id, submission.id, student_id],
            )
        except Exception:
            # Free the pair so the student can hand in again
            await self.session.aexecute(
                self._release_claim, [assignment_id, student_id, submission.id]
            )
            logger.warning(
                "submission_claim_released",
                submission_id=str(submission.id),
                assignment_id=str(assignment_id),
                student_id=str(student_id),
            )
            raise

        logger.info(
            "assignment_submitted",
            submission_id=str(submission.id),
            assignment_id=str(assignment_id),
            student_id=str(student_id),
        )
        return submission

    async def get_student_submission(
        self, assignment_id: UUID, student_id: UUID
    ) -> Submission | None:
        """Get the student's submission for an assignment."""
        result = await self.session.aexecute(
            self._get_student_submission, [assignment_id, student_id]
        )
        row = result.one()
        return Submission.from_row(row) if row else None

    async def _find_submission(self, submission_id: UUID) -> Submission | None:
        result = await self.session.aexecute(self._get_submission, [submission_id])
        row = result.one()
        return Submission.from_row(row) if row else None

    async def _require_owned_submission(
        self, instructor_id: UUID, submission_id: UUID
    ) -> tuple[Submission, Assignment, "Course"]:
        """Walk submission -> assignment -> course and check ownership.

        Each link must exist and point at the next one.
        """
        submission = await self._find_submission(submission_id)
        if submission is None:
            raise SubmissionNotFoundError

        assignment = await self.require_assignment(submission.assignment_id)
        course = await self.course_service.require_course(assignment.course_id)
        if not course.is_owned_by(instructor_id):
            logger.warning(
                "submission_access_denied",
                submission_id=str(submission_id),
                instructor_id=str(instructor_id),
            )
            raise ForbiddenError
        return submission, assignment, course

    async def get_submission(
        self, instructor_id: UUID, submission_id: UUID
    ) -> Submission:
        """Get a submission the instructor may grade.

        Raises:
            SubmissionNotFoundError: If any link of the chain is missing
            ForbiddenError: If the instructor does not own the course
        """
        submission, _, _ = await self._require_owned_submission(
            instructor_id, submission_id
        )
        return submission

    async def get_own_submission(
        self, student_id: UUID, submission_id: UUID
    ) -> Submission:
        """Get one of the student's own submissions.

        Raises:
            SubmissionNotFoundError: If the submission does not exist
            ForbiddenError: If it belongs to another student
        """
        submission = await self._find_submission(submission_id)
        if submission is None:
            raise SubmissionNotFoundError
        if submission.student_id != student_id:
            raise ForbiddenError
        return submission

    async def list_submissions(
        self, instructor_id: UUID, assignment_id: UUID
    ) -> list[Submission]:
        """List an assignment's submissions, newest first.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist
            ForbiddenError: If the instructor does not own the course
        """
        assignment = await self.require_assignment(assignment_id)
        course = await self.course_service.require_course(assignment.course_id)
        if not course.is_owned_by(instructor_id):
            raise ForbiddenError

        rows = await self.session.aexecute(
            self._list_submissions_by_assignment, [assignment_id]
        )
        found = await asyncio.gather(
            *(self._find_submission(row.submission_id) for row in rows)
        )
        submissions = [s for s in found if s is not None]
        submissions.sort(key=lambda s: s.submitted_at, reverse=True)
        return submissions

    # ==========================================================================
    # Grading
    # ==========================================================================

    async def grade(
        self,
        instructor_id: UUID,
        submission_id: UUID,
        score: float,
        feedback: str | None = None,
        status: SubmissionStatus = SubmissionStatus.GRADED,
    ) -> Submission:
        """Grade or re-grade a submission.

        Overwrites score, feedback and status and stamps graded_at. No
        grading history is kept. Any status may follow any other.

        Raises:
            SubmissionNotFoundError: If the submission does not exist
            AssignmentNotFoundError: If its assignment is gone
            CourseNotFoundError: If the assignment's course is gone
            ForbiddenError: If the instructor does not own the course
            NegativeScoreError: If score < 0
            ScoreExceedsMaxError: If score > assignment.max_score
        """
        submission, assignment, course = await self._require_owned_submission(
            instructor_id, submission_id
        )
        check_score(score, assignment.max_score)

        previous = submission.status
        submission.score = score
        submission.feedback = feedback
        submission.status = status.value
        submission.graded_at = utc_now()
        submission.graded_by = instructor_id

        values = [
            submission.status,
            submission.score,
            submission.feedback,
            submission.graded_at,
            submission.graded_by,
        ]
        await self.session.aexecute(
            self._update_student_submission,
            [*values, submission.assignment_id, submission.student_id],
        )
        await self.session.aexecute(self._update_submission, [*values, submission.id])

        logger.info(
            "submission_graded",
            submission_id=str(submission.id),
            assignment_id=str(assignment.id),
            student_id=str(submission.student_id),
            score=score,
            max_score=assignment.max_score,
            previous=previous,
            status=submission.status,
        )

        if self.notification_service:
            self.notification_service.notify_assignment_graded(
                submission.student_id, course, assignment, score
            )

        return submission
