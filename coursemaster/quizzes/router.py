"""Quiz API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from coursemaster.auth.dependencies import CurrentUser, InstructorUser, StudentUser
from coursemaster.core.exceptions import ForbiddenError
from coursemaster.courses.dependencies import CourseServiceDep
from coursemaster.enrollments.dependencies import EnrollmentServiceDep

from .dependencies import QuizServiceDep
from .schemas import (
    AttemptListResponse,
    CreateQuizRequest,
    QuizAttemptResponse,
    QuizDetailResponse,
    QuizListResponse,
    QuizResponse,
    QuizSubmissionResponse,
    StudentQuizResponse,
    SubmitQuizRequest,
)


router = APIRouter(prefix="/v1/quizzes", tags=["quizzes"])


@router.get("", response_model=QuizListResponse, summary="List course quizzes")
async def list_quizzes(
    quiz_service: QuizServiceDep,
    enrollment_service: EnrollmentServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
    course_id: UUID = Query(...),
) -> QuizListResponse:
    """List a course's quizzes without answer keys.

    Students need an active enrollment; instructors must own the course.
    """
    if user.is_student:
        await enrollment_service.require_active_enrollment(user.id, course_id)
    elif user.is_instructor:
        course = await course_service.require_course(course_id)
        if not course.is_owned_by(user.id):
            raise ForbiddenError

    quizzes = await quiz_service.list_quizzes(course_id)
    return QuizListResponse(
        items=[QuizResponse.from_entity(q) for q in quizzes],
        total=len(quizzes),
    )


@router.post(
    "",
    response_model=QuizDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create quiz",
)
async def create_quiz(
    data: CreateQuizRequest,
    quiz_service: QuizServiceDep,
    user: InstructorUser,
) -> QuizDetailResponse:
    """Create a quiz for a course the caller owns."""
    quiz = await quiz_service.create_quiz(user.id, data)
    return QuizDetailResponse.from_entity(quiz)


@router.get("/{quiz_id}", response_model=StudentQuizResponse, summary="Get quiz")
async def get_quiz(
    quiz_id: UUID,
    quiz_service: QuizServiceDep,
    user: StudentUser,
) -> StudentQuizResponse:
    """Quiz without answer key, plus the caller's previous attempts."""
    quiz, attempts = await quiz_service.get_quiz_for_student(user.id, quiz_id)
    return StudentQuizResponse(
        quiz=QuizResponse.from_entity(quiz),
        attempts=[QuizAttemptResponse.from_entity(a) for a in attempts],
    )


@router.post(
    "/{quiz_id}/submit",
    response_model=QuizSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit quiz attempt",
)
async def submit_quiz(
    quiz_id: UUID,
    data: SubmitQuizRequest,
    quiz_service: QuizServiceDep,
    user: StudentUser,
) -> QuizSubmissionResponse:
    """Score the answers and record a new attempt.

    The response reveals the answer key for the review screen.
    """
    attempt, result = await quiz_service.submit_attempt(
        student_id=user.id,
        quiz_id=quiz_id,
        answers=[a.to_entity() for a in data.answers],
    )
    return QuizSubmissionResponse.from_result(attempt, result)


@router.get(
    "/{quiz_id}/attempts",
    response_model=AttemptListResponse,
    summary="List my attempts",
)
async def list_attempts(
    quiz_id: UUID,
    quiz_service: QuizServiceDep,
    user: StudentUser,
) -> AttemptListResponse:
    """The caller's attempts at a quiz, newest first."""
    await quiz_service.require_quiz(quiz_id)
    attempts = await quiz_service.list_attempts(user.id, quiz_id)
    return AttemptListResponse(
        items=[QuizAttemptResponse.from_entity(a) for a in attempts],
        total=len(attempts),
    )
