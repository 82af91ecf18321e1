"""Database models for quizzes and quiz attempts.

Cassandra table definitions for:
- quizzes: Quiz definition with its question bank (orjson-encoded)
- quizzes_by_course: Lookup table for listing a course's quizzes
- quiz_attempts: Append-only attempt log per (quiz, student),
  newest first

Attempts are never updated in place; "latest attempt" is the first row
of the partition.
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

import orjson

from coursemaster.utils import ensure_utc_aware, utc_now


QUIZ_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quizzes (
    id UUID PRIMARY KEY,
    course_id UUID,
    lesson_id UUID,
    title TEXT,
    description TEXT,
    questions TEXT,
    time_limit INT,
    passing_score INT,
    created_by UUID,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

QUIZZES_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quizzes_by_course (
    course_id UUID,
    quiz_id UUID,
    PRIMARY KEY (course_id, quiz_id)
)
"""

QUIZ_ATTEMPTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quiz_attempts (
    quiz_id UUID,
    student_id UUID,
    completed_at TIMESTAMP,
    id UUID,
    answers TEXT,
    score INT,
    is_passed BOOLEAN,
    earned_points DOUBLE,
    total_score DOUBLE,
    started_at TIMESTAMP,
    PRIMARY KEY ((quiz_id, student_id), completed_at, id)
) WITH CLUSTERING ORDER BY (completed_at DESC, id ASC)
"""

QUIZZES_TABLES_CQL = [
    QUIZ_TABLE_CQL,
    QUIZZES_BY_COURSE_TABLE_CQL,
    QUIZ_ATTEMPTS_TABLE_CQL,
]


class Question:
    """One multiple-choice question.

    Attributes:
        question: Prompt text
        options: 2 to 6 answer options
        correct_answer: Index into ``options``
        points: Weight of the question (>= 0)
    """

    def __init__(
        self,
        question: str,
        options: list[str],
        correct_answer: int,
        points: float = 1,
    ):
        self.question = question
        self.options = list(options)
        self.correct_answer = correct_answer
        self.points = points

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        return cls(
            question=data["question"],
            options=data["options"],
            correct_answer=data["correct_answer"],
            points=data.get("points", 1),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question,
            "options": self.options,
            "correct_answer": self.correct_answer,
            "points": self.points,
        }

    def __repr__(self) -> str:
        return f"<Question {self.question[:30]!r} {self.points}pt>"


class Answer:
    """A student's choice for the question at ``question_index``."""

    def __init__(self, question_index: int, selected_answer: int):
        self.question_index = question_index
        self.selected_answer = selected_answer

    def to_dict(self) -> dict[str, int]:
        return {
            "question_index": self.question_index,
            "selected_answer": self.selected_answer,
        }

    def __repr__(self) -> str:
        return f"<Answer q{self.question_index}={self.selected_answer}>"


def dump_questions(questions: list[Question]) -> str:
    return orjson.dumps([q.to_dict() for q in questions]).decode()


def load_questions(raw: str | None) -> list[Question]:
    if not raw:
        return []
    return [Question.from_dict(item) for item in orjson.loads(raw)]


def dump_answers(answers: list[Answer]) -> str:
    return orjson.dumps([a.to_dict() for a in answers]).decode()


def load_answers(raw: str | None) -> list[Answer]:
    if not raw:
        return []
    return [Answer(**item) for item in orjson.loads(raw)]


class Quiz:
    """Timed multiple-choice quiz attached to a course (optionally a lesson).

    Attributes:
        id: Unique identifier (UUID)
        course_id: Course UUID
        lesson_id: Optional lesson UUID
        title: Quiz title
        description: Optional description
        questions: Ordered question bank
        time_limit: Minutes, advisory (enforced client-side)
        passing_score: Percentage in [0, 100]
        created_by: Instructor who created the quiz
    """

    def __init__(
        self,
        course_id: UUID,
        title: str,
        questions: list[Question],
        passing_score: int = 60,
        lesson_id: UUID | None = None,
        description: str | None = None,
        time_limit: int | None = None,
        created_by: UUID | None = None,
        id: UUID | None = None,  # noqa: A002
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.course_id = course_id
        self.lesson_id = lesson_id
        self.title = title
        self.description = description
        self.questions = questions
        self.time_limit = time_limit
        self.passing_score = passing_score
        self.created_by = created_by
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @classmethod
    def from_row(cls, row: Any) -> "Quiz":
        """Create Quiz instance from Cassandra row."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            lesson_id=row.lesson_id,
            title=row.title,
            description=row.description,
            questions=load_questions(row.questions),
            time_limit=row.time_limit,
            passing_score=row.passing_score if row.passing_score is not None else 60,
            created_by=row.created_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Quiz {self.title} ({len(self.questions)} questions)>"


class QuizAttempt:
    """One graded, immutable attempt at a quiz.

    Attributes:
        id: Unique identifier (UUID)
        quiz_id: Quiz UUID
        student_id: Student UUID
        answers: Submitted answers
        score: Rounded percentage
        is_passed: score >= quiz.passing_score
        earned_points: Points of correctly answered questions
        total_score: Points of all questions
        started_at: Equal to completed_at (no server-side timer)
        completed_at: Submission time
    """

    def __init__(
        self,
        quiz_id: UUID,
        student_id: UUID,
        answers: list[Answer],
        score: int,
        is_passed: bool,
        earned_points: float = 0,
        total_score: float = 0,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
        id: UUID | None = None,  # noqa: A002
    ):
        self.id = id or uuid4()
        self.quiz_id = quiz_id
        self.student_id = student_id
        self.answers = answers
        self.score = score
        self.is_passed = is_passed
        self.earned_points = earned_points
        self.total_score = total_score
        self.completed_at = ensure_utc_aware(completed_at) or utc_now()
        self.started_at = ensure_utc_aware(started_at) or self.completed_at

    @classmethod
    def from_row(cls, row: Any) -> "QuizAttempt":
        """Create QuizAttempt instance from Cassandra row."""
        return cls(
            id=row.id,
            quiz_id=row.quiz_id,
            student_id=row.student_id,
            answers=load_answers(row.answers),
            score=row.score or 0,
            is_passed=bool(row.is_passed),
            earned_points=row.earned_points or 0,
            total_score=row.total_score or 0,
            started_at=row.started_at,
            completed_at=row.completed_at,
        )

    def __repr__(self) -> str:
        verdict = "passed" if self.is_passed else "failed"
        return f"<QuizAttempt quiz={self.quiz_id} {self.score}% {verdict}>"
