"""Pydantic schemas for quizzes.

Student-facing quiz views never carry ``correct_answer``; only submission
results reveal the answer key.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import Answer, Question, Quiz, QuizAttempt
from .scoring import AttemptScore


# ==============================================================================
# Requests
# ==============================================================================


class QuestionInput(BaseModel):
    """Question definition."""

    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2, max_length=6)
    correct_answer: int = Field(..., ge=0, description="Index into options")
    points: float = Field(1, ge=0)

    def to_entity(self) -> Question:
        return Question(
            question=self.question,
            options=self.options,
            correct_answer=self.correct_answer,
            points=self.points,
        )


class CreateQuizRequest(BaseModel):
    """Request to create a quiz."""

    course_id: UUID
    lesson_id: UUID | None = None
    title: str = Field(..., min_length=3, max_length=200)
    description: str | None = None
    questions: list[QuestionInput] = Field(..., min_length=1)
    time_limit: int | None = Field(None, ge=1, description="Minutes")
    passing_score: int = Field(60, ge=0, le=100)


class AnswerInput(BaseModel):
    """Answer to the question at ``question_index``."""

    question_index: int = Field(..., ge=0)
    selected_answer: int = Field(..., ge=0)

    def to_entity(self) -> Answer:
        return Answer(self.question_index, self.selected_answer)


class SubmitQuizRequest(BaseModel):
    """Answer set for one attempt, one entry per question."""

    answers: list[AnswerInput] = Field(..., min_length=1)


# ==============================================================================
# Responses
# ==============================================================================


class StudentQuestionResponse(BaseModel):
    """Question without its answer key."""

    question: str
    options: list[str]
    points: float


class QuestionResponse(StudentQuestionResponse):
    """Question with its answer key (owner view)."""

    correct_answer: int


class QuizResponse(BaseModel):
    """Quiz as students see it."""

    id: UUID
    course_id: UUID
    lesson_id: UUID | None = None
    title: str
    description: str | None = None
    questions: list[StudentQuestionResponse]
    time_limit: int | None = None
    passing_score: int
    created_at: datetime

    @classmethod
    def from_entity(cls, quiz: Quiz) -> "QuizResponse":
        """Create response from entity, stripping the answer key."""
        return cls(
            id=quiz.id,
            course_id=quiz.course_id,
            lesson_id=quiz.lesson_id,
            title=quiz.title,
            description=quiz.description,
            questions=[
                StudentQuestionResponse(
                    question=q.question, options=q.options, points=q.points
                )
                for q in quiz.questions
            ],
            time_limit=quiz.time_limit,
            passing_score=quiz.passing_score,
            created_at=quiz.created_at,
        )


class QuizDetailResponse(QuizResponse):
    """Quiz including the answer key, for the owning instructor."""

    questions: list[QuestionResponse]

    @classmethod
    def from_entity(cls, quiz: Quiz) -> "QuizDetailResponse":
        return cls(
            id=quiz.id,
            course_id=quiz.course_id,
            lesson_id=quiz.lesson_id,
            title=quiz.title,
            description=quiz.description,
            questions=[QuestionResponse(**q.to_dict()) for q in quiz.questions],
            time_limit=quiz.time_limit,
            passing_score=quiz.passing_score,
            created_at=quiz.created_at,
        )


class QuizListResponse(BaseModel):
    """Quizzes of a course."""

    items: list[QuizResponse]
    total: int


class AnswerResponse(BaseModel):
    question_index: int
    selected_answer: int


class QuizAttemptResponse(BaseModel):
    """Stored attempt."""

    id: UUID
    quiz_id: UUID
    student_id: UUID
    answers: list[AnswerResponse]
    score: int = Field(description="Rounded percentage")
    is_passed: bool
    earned_points: float
    total_score: float
    started_at: datetime
    completed_at: datetime

    @classmethod
    def from_entity(cls, attempt: QuizAttempt) -> "QuizAttemptResponse":
        """Create response from entity."""
        return cls(
            id=attempt.id,
            quiz_id=attempt.quiz_id,
            student_id=attempt.student_id,
            answers=[AnswerResponse(**a.to_dict()) for a in attempt.answers],
            score=attempt.score,
            is_passed=attempt.is_passed,
            earned_points=attempt.earned_points,
            total_score=attempt.total_score,
            started_at=attempt.started_at,
            completed_at=attempt.completed_at,
        )


class AttemptListResponse(BaseModel):
    """Attempts at one quiz, newest first."""

    items: list[QuizAttemptResponse]
    total: int


class StudentQuizResponse(BaseModel):
    """Quiz without answers plus the caller's previous attempts."""

    quiz: QuizResponse
    attempts: list[QuizAttemptResponse]


class QuizSubmissionResponse(BaseModel):
    """Graded attempt with the answer key for the review screen."""

    attempt: QuizAttemptResponse
    correct_answers: list[int]
    total_questions: int
    total_score: float
    earned_points: float
    percentage: int
    is_passed: bool
    passing_score: int

    @classmethod
    def from_result(
        cls, attempt: QuizAttempt, result: AttemptScore
    ) -> "QuizSubmissionResponse":
        return cls(
            attempt=QuizAttemptResponse.from_entity(attempt),
            correct_answers=result.correct_answers,
            total_questions=len(result.correct_answers),
            total_score=float(result.total_score),
            earned_points=float(result.earned_points),
            percentage=result.percentage,
            is_passed=result.is_passed,
            passing_score=result.passing_score,
        )
