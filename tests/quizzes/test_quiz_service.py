"""Tests for QuizService: creation, student views and attempts."""

from uuid import uuid4

import orjson
import pytest

from coursemaster.core.exceptions import ForbiddenError
from coursemaster.courses.models import Lesson
from coursemaster.enrollments.service import NotEnrolledError
from coursemaster.progress.service import LessonNotInCourseError
from coursemaster.quizzes.models import Answer, Question, Quiz, dump_questions
from coursemaster.quizzes.schemas import (
    CreateQuizRequest,
    QuestionInput,
    QuizResponse,
    QuizSubmissionResponse,
)
from coursemaster.quizzes.scoring import AnswerCountMismatchError, InvalidQuestionError
from coursemaster.quizzes.service import QuizNotFoundError, QuizService


@pytest.fixture
def quiz_service(cassandra, course_service, enrollment_service) -> QuizService:
    return QuizService(
        session=cassandra.session,
        keyspace="test_keyspace",
        course_service=course_service,
        enrollment_service=enrollment_service,
    )


@pytest.fixture
def quiz(course, instructor_id) -> Quiz:
    return Quiz(
        course_id=course.id,
        title="Checkpoint",
        questions=[
            Question(question="Q1", options=["a", "b"], correct_answer=0, points=1),
            Question(question="Q2", options=["a", "b", "c"], correct_answer=1, points=3),
        ],
        passing_score=70,
        time_limit=10,
        created_by=instructor_id,
    )


@pytest.fixture
def stored_quiz(quiz_service, cassandra, rows, make_row, quiz) -> Quiz:
    cassandra.respond(
        quiz_service._get_quiz,
        rows(make_row(quiz, questions=dump_questions(quiz.questions))),
    )
    return quiz


def create_request(course_id, **overrides) -> CreateQuizRequest:
    fields = {
        "course_id": course_id,
        "title": "Week 1 quiz",
        "questions": [
            QuestionInput(question="Q1", options=["a", "b"], correct_answer=1),
        ],
        "passing_score": 50,
    }
    fields.update(overrides)
    return CreateQuizRequest(**fields)


class TestCreateQuiz:
    @pytest.mark.asyncio
    async def test_create_stores_json_questions(
        self, quiz_service, cassandra, course, instructor_id
    ) -> None:
        quiz = await quiz_service.create_quiz(instructor_id, create_request(course.id))

        (params,) = cassandra.calls(quiz_service._insert_quiz)
        assert orjson.loads(params[5]) == [
            {"question": "Q1", "options": ["a", "b"], "correct_answer": 1, "points": 1}
        ]
        assert cassandra.calls(quiz_service._insert_quiz_by_course) == [
            [course.id, quiz.id]
        ]

    @pytest.mark.asyncio
    async def test_other_instructor_forbidden(self, quiz_service, course) -> None:
        with pytest.raises(ForbiddenError):
            await quiz_service.create_quiz(uuid4(), create_request(course.id))

    @pytest.mark.asyncio
    async def test_correct_answer_must_be_an_option(
        self, quiz_service, course, instructor_id
    ) -> None:
        data = create_request(
            course.id,
            questions=[QuestionInput(question="Q", options=["a", "b"], correct_answer=5)],
        )
        with pytest.raises(InvalidQuestionError):
            await quiz_service.create_quiz(instructor_id, data)

    @pytest.mark.asyncio
    async def test_lesson_must_belong_to_course(
        self, quiz_service, course_service, course, instructor_id
    ) -> None:
        foreign = Lesson(course_id=uuid4(), title="Elsewhere")
        course_service.get_lesson.side_effect = None
        course_service.get_lesson.return_value = foreign

        with pytest.raises(LessonNotInCourseError):
            await quiz_service.create_quiz(
                instructor_id, create_request(course.id, lesson_id=foreign.id)
            )


class TestStudentViews:
    @pytest.mark.asyncio
    async def test_unknown_quiz(self, quiz_service, student_id) -> None:
        with pytest.raises(QuizNotFoundError):
            await quiz_service.get_quiz_for_student(student_id, uuid4())

    @pytest.mark.asyncio
    async def test_quiz_view_strips_answer_key(
        self, quiz_service, stored_quiz, student_id
    ) -> None:
        quiz, attempts = await quiz_service.get_quiz_for_student(
            student_id, stored_quiz.id
        )
        payload = QuizResponse.from_entity(quiz).model_dump()

        assert attempts == []
        assert all("correct_answer" not in q for q in payload["questions"])

    @pytest.mark.asyncio
    async def test_requires_enrollment(
        self, quiz_service, enrollment_service, stored_quiz, student_id
    ) -> None:
        enrollment_service.require_active_enrollment.side_effect = NotEnrolledError

        with pytest.raises(NotEnrolledError):
            await quiz_service.get_quiz_for_student(student_id, stored_quiz.id)


class TestSubmitAttempt:
    @pytest.mark.asyncio
    async def test_submission_scores_and_appends_attempt(
        self, quiz_service, cassandra, stored_quiz, student_id
    ) -> None:
        attempt, result = await quiz_service.submit_attempt(
            student_id,
            stored_quiz.id,
            [Answer(1, 1), Answer(0, 0)],
        )

        assert attempt.score == 100
        assert attempt.is_passed is True
        assert attempt.started_at == attempt.completed_at
        assert [a.question_index for a in attempt.answers] == [0, 1]
        assert len(cassandra.calls(quiz_service._insert_attempt)) == 1

        response = QuizSubmissionResponse.from_result(attempt, result)
        assert response.correct_answers == [0, 1]
        assert response.total_score == 4
        assert response.percentage == 100

    @pytest.mark.asyncio
    async def test_partial_score_below_passing(
        self, quiz_service, stored_quiz, student_id
    ) -> None:
        attempt, _ = await quiz_service.submit_attempt(
            student_id, stored_quiz.id, [Answer(0, 0), Answer(1, 0)]
        )

        assert attempt.score == 25
        assert attempt.is_passed is False

    @pytest.mark.asyncio
    async def test_answer_count_mismatch_writes_nothing(
        self, quiz_service, cassandra, stored_quiz, student_id
    ) -> None:
        with pytest.raises(AnswerCountMismatchError):
            await quiz_service.submit_attempt(student_id, stored_quiz.id, [Answer(0, 0)])

        assert cassandra.calls(quiz_service._insert_attempt) == []

    @pytest.mark.asyncio
    async def test_not_enrolled(
        self, quiz_service, enrollment_service, stored_quiz, student_id
    ) -> None:
        enrollment_service.require_active_enrollment.side_effect = NotEnrolledError

        with pytest.raises(NotEnrolledError):
            await quiz_service.submit_attempt(
                student_id, stored_quiz.id, [Answer(0, 0), Answer(1, 1)]
            )

    @pytest.mark.asyncio
    async def test_attempts_round_trip_through_storage(
        self, quiz_service, cassandra, rows, make_row, stored_quiz, student_id
    ) -> None:
        attempt, _ = await quiz_service.submit_attempt(
            student_id, stored_quiz.id, [Answer(0, 1), Answer(1, 1)]
        )
        (params,) = cassandra.calls(quiz_service._insert_attempt)
        cassandra.respond(
            quiz_service._list_attempts, rows(make_row(attempt, answers=params[4]))
        )

        (listed,) = await quiz_service.list_attempts(student_id, stored_quiz.id)

        assert listed.id == attempt.id
        assert listed.score == 75
        assert [a.selected_answer for a in listed.answers] == [1, 1]
