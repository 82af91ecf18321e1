"""Quiz service layer.

Business logic for:
- Quiz creation with question-bank validation (course owner only)
- Student quiz views (answer key stripped) and attempt history
- Attempt submission and scoring
"""

import asyncio
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemaster.core.exceptions import ForbiddenError, NotFoundError
from coursemaster.courses.service import LessonNotFoundError
from coursemaster.progress.service import LessonNotInCourseError
from coursemaster.utils import utc_now

from .models import Answer, Quiz, QuizAttempt, dump_answers, dump_questions
from .schemas import CreateQuizRequest
from .scoring import AttemptScore, score_attempt, validate_quiz_settings


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from coursemaster.courses.service import CourseService
    from coursemaster.enrollments.service import EnrollmentService

logger = structlog.get_logger(__name__)


class QuizNotFoundError(NotFoundError):
    """Quiz not found."""

    def __init__(self, message: str = "Quiz not found"):
        super().__init__(message, "quiz_not_found")


class QuizService:
    """Service for quizzes and attempts."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
        enrollment_service: "EnrollmentService",
    ):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.enrollment_service = enrollment_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_quiz = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quizzes WHERE id = ?
        """)

        self._insert_quiz = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quizzes
            (id, course_id, lesson_id, title, description, questions,
             time_limit, passing_score, created_by, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_quiz_by_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quizzes_by_course (course_id, quiz_id)
            VALUES (?, ?)
        """)

        self._list_quizzes_by_course = self.session.prepare(f"""
            SELECT quiz_id FROM {self.keyspace}.quizzes_by_course
            WHERE course_id = ?
        """)

        self._insert_attempt = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quiz_attempts
            (quiz_id, student_id, completed_at, id, answers, score, is_passed,
             earned_points, total_score, started_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._list_attempts = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quiz_attempts
            WHERE quiz_id = ? AND student_id = ?
        """)

    # ==========================================================================
    # Quizzes
    # ==========================================================================

    async def create_quiz(self, instructor_id: UUID, data: CreateQuizRequest) -> Quiz:
        """Create a quiz for a course the instructor owns.

        Raises:
            CourseNotFoundError: If the course does not exist
            ForbiddenError: If the instructor does not own the course
            LessonNotFoundError: If lesson_id is unknown
            LessonNotInCourseError: If the lesson belongs to another course
            InvalidQuestionError: If the question bank or settings are invalid
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

        questions = [q.to_entity() for q in data.questions]
        validate_quiz_settings(questions, data.passing_score, data.time_limit)

        quiz = Quiz(
            course_id=data.course_id,
            lesson_id=data.lesson_id,
            title=data.title,
            description=data.description,
            questions=questions,
            time_limit=data.time_limit,
            passing_score=data.passing_score,
            created_by=instructor_id,
        )

        # Dual write: main table + lookup table
        await self.session.aexecute(
            self._insert_quiz,
            [
                quiz.id,
                quiz.course_id,
                quiz.lesson_id,
                quiz.title,
                quiz.description,
                dump_questions(quiz.questions),
                quiz.time_limit,
                quiz.passing_score,
                quiz.created_by,
                quiz.created_at,
                quiz.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_quiz_by_course, [quiz.course_id, quiz.id]
        )

        logger.info(
            "quiz_created",
            quiz_id=str(quiz.id),
            course_id=str(quiz.course_id),
            questions=len(quiz.questions),
        )
        return quiz

    async def get_quiz(self, quiz_id: UUID) -> Quiz | None:
        """Get quiz by ID."""
        result = await self.session.aexecute(self._get_quiz, [quiz_id])
        row = result.one()
        return Quiz.from_row(row) if row else None

    async def require_quiz(self, quiz_id: UUID) -> Quiz:
        """Get quiz by ID or raise QuizNotFoundError."""
        quiz = await self.get_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFoundError
        return quiz

    async def list_quizzes(self, course_id: UUID) -> list[Quiz]:
        """List a course's quizzes, oldest first."""
        rows = await self.session.aexecute(self._list_quizzes_by_course, [course_id])
        quizzes = await asyncio.gather(*(self.get_quiz(row.quiz_id) for row in rows))
        items = [q for q in quizzes if q is not None]
        items.sort(key=lambda q: q.created_at)
        return items

    async def get_quiz_for_student(
        self, student_id: UUID, quiz_id: UUID
    ) -> tuple[Quiz, list[QuizAttempt]]:
        """Quiz plus the student's attempts, newest first.

        Raises:
            QuizNotFoundError: If the quiz does not exist
            NotEnrolledError: If the student has no active enrollment
        """
        quiz = await self.require_quiz(quiz_id)
        await self.enrollment_service.require_active_enrollment(
            student_id, quiz.course_id
        )
        attempts = await self.list_attempts(student_id, quiz_id)
        return quiz, attempts

    # ==========================================================================
    # Attempts
    # ==========================================================================

    async def submit_attempt(
        self,
        student_id: UUID,
        quiz_id: UUID,
        answers: list[Answer],
    ) -> tuple[QuizAttempt, AttemptScore]:
        """Score an answer set and append it to the attempt log.

        Raises:
            QuizNotFoundError: If the quiz does not exist
            NotEnrolledError: If the student has no active enrollment
            AnswerCountMismatchError: If there is not one answer per question
            InvalidAnswerError: On out-of-range or repeated question indexes
        """
        quiz = await self.require_quiz(quiz_id)
        await self.enrollment_service.require_active_enrollment(
            student_id, quiz.course_id
        )

        result = score_attempt(quiz.questions, answers, quiz.passing_score)

        now = utc_now()
        attempt = QuizAttempt(
            quiz_id=quiz_id,
            student_id=student_id,
            answers=sorted(answers, key=lambda a: a.question_index),
            score=result.percentage,
            is_passed=result.is_passed,
            earned_points=float(result.earned_points),
            total_score=float(result.total_score),
            started_at=now,
            completed_at=now,
        )

        await self.session.aexecute(
            self._insert_attempt,
            [
                attempt.quiz_id,
                attempt.student_id,
                attempt.completed_at,
                attempt.id,
                dump_answers(attempt.answers),
                attempt.score,
                attempt.is_passed,
                attempt.earned_points,
                attempt.total_score,
                attempt.started_at,
            ],
        )

        logger.info(
            "quiz_attempt_submitted",
            quiz_id=str(quiz_id),
            student_id=str(student_id),
            attempt_id=str(attempt.id),
            score=attempt.score,
            is_passed=attempt.is_passed,
        )
        return attempt, result

    async def list_attempts(self, student_id: UUID, quiz_id: UUID) -> list[QuizAttempt]:
        """A student's attempts at a quiz, newest first."""
        rows = await self.session.aexecute(self._list_attempts, [quiz_id, student_id])
        return [QuizAttempt.from_row(row) for row in rows]
