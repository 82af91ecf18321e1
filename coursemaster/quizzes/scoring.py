"""Quiz scoring and question-bank validation.

Pure functions, no I/O. ``score_attempt`` turns an answer set and a question
bank into points, a rounded percentage and a pass/fail verdict.
"""

from decimal import Decimal

from coursemaster.core.exceptions import (
    PreconditionFailedError,
    ValidationFailureError,
)
from coursemaster.utils import round_percentage

from .models import Answer, Question


MIN_OPTIONS = 2
MAX_OPTIONS = 6


class AnswerCountMismatchError(PreconditionFailedError):
    """Answer count differs from question count."""

    def __init__(
        self,
        message: str = "Number of answers does not match number of questions",
    ):
        super().__init__(message, "answer_count_mismatch")


class InvalidAnswerError(ValidationFailureError):
    """Answer references a missing or already answered question."""

    def __init__(self, message: str):
        super().__init__(message, "invalid_answer")


class InvalidQuestionError(ValidationFailureError):
    """Question bank or quiz settings are malformed."""

    def __init__(self, message: str):
        super().__init__(message, "invalid_question")


class AttemptScore:
    """Result of scoring one answer set."""

    def __init__(
        self,
        earned_points: Decimal,
        total_score: Decimal,
        passing_score: int,
        correct_answers: list[int],
    ):
        self.earned_points = earned_points
        self.total_score = total_score
        self.passing_score = passing_score
        self.correct_answers = correct_answers
        self.percentage = round_percentage(earned_points, total_score)
        self.is_passed = self.percentage >= passing_score

    def __repr__(self) -> str:
        return (
            f"<AttemptScore {self.earned_points}/{self.total_score} "
            f"{self.percentage}% passed={self.is_passed}>"
        )


def index_answers(answers: list[Answer], question_count: int) -> dict[int, int]:
    """Map question index to selected option.

    Raises:
        AnswerCountMismatchError: If there is not exactly one answer per question
        InvalidAnswerError: On an out-of-range or repeated question index
    """
    if len(answers) != question_count:
        raise AnswerCountMismatchError

    selected: dict[int, int] = {}
    for answer in answers:
        index = answer.question_index
        if not 0 <= index < question_count:
            raise InvalidAnswerError(f"Question index {index} is out of range")
        if index in selected:
            raise InvalidAnswerError(f"Question {index} answered more than once")
        selected[index] = answer.selected_answer
    return selected


def score_attempt(
    questions: list[Question],
    answers: list[Answer],
    passing_score: int,
) -> AttemptScore:
    """Score an answer set against a question bank.

    Zero-point questions count as correct or wrong but weigh nothing; a bank
    worth zero points in total scores 0%.
    """
    selected = index_answers(answers, len(questions))

    total = Decimal(0)
    earned = Decimal(0)
    for index, question in enumerate(questions):
        points = Decimal(str(question.points))
        total += points
        if selected[index] == question.correct_answer:
            earned += points

    return AttemptScore(
        earned_points=earned,
        total_score=total,
        passing_score=passing_score,
        correct_answers=[q.correct_answer for q in questions],
    )


def validate_question(question: Question, position: int) -> None:
    """Check one question of a bank.

    Raises:
        InvalidQuestionError: On a malformed question
    """
    if not question.question or not question.question.strip():
        raise InvalidQuestionError(f"Question {position} has no text")
    if not MIN_OPTIONS <= len(question.options) <= MAX_OPTIONS:
        raise InvalidQuestionError(
            f"Question {position} must have between {MIN_OPTIONS} "
            f"and {MAX_OPTIONS} options"
        )
    if not 0 <= question.correct_answer < len(question.options):
        raise InvalidQuestionError(
            f"Question {position} correct answer is not a valid option index"
        )
    if question.points < 0:
        raise InvalidQuestionError(f"Question {position} points cannot be negative")


def validate_quiz_settings(
    questions: list[Question],
    passing_score: int,
    time_limit: int | None,
) -> None:
    """Check a whole quiz definition.

    Raises:
        InvalidQuestionError: On any rule violation
    """
    if not questions:
        raise InvalidQuestionError("Quiz must have at least one question")
    for position, question in enumerate(questions):
        validate_question(question, position)
    if not 0 <= passing_score <= 100:  # noqa: PLR2004
        raise InvalidQuestionError("Passing score must be between 0 and 100")
    if time_limit is not None and time_limit < 1:
        raise InvalidQuestionError("Time limit must be at least 1 minute")
