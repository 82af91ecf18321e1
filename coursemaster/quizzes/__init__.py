"""Quizzes: weighted multiple-choice question banks and graded attempts."""

from .models import QUIZZES_TABLES_CQL, Answer, Question, Quiz, QuizAttempt


__all__ = [
    "QUIZZES_TABLES_CQL",
    "Answer",
    "Question",
    "Quiz",
    "QuizAttempt",
]
