"""Lesson progress API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query

from coursemaster.auth.dependencies import StudentUser

from .dependencies import ProgressServiceDep
from .schemas import (
    CourseProgressResponse,
    LessonProgressResponse,
    ProgressListResponse,
    RecordProgressRequest,
)


router = APIRouter(prefix="/v1/progress", tags=["progress"])


@router.post("", response_model=LessonProgressResponse, summary="Record lesson progress")
async def record_progress(
    data: RecordProgressRequest,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> LessonProgressResponse:
    """Record a lesson visit.

    Time spent accumulates across visits; the first completion time is kept.
    """
    progress = await progress_service.record_progress(
        student_id=user.id,
        course_id=data.course_id,
        lesson_id=data.lesson_id,
        is_completed=data.is_completed,
        time_spent_delta=data.time_spent,
    )
    return LessonProgressResponse.from_entity(progress)


@router.get("", response_model=ProgressListResponse, summary="List my progress")
async def list_progress(
    progress_service: ProgressServiceDep,
    user: StudentUser,
    course_id: UUID | None = Query(None),
) -> ProgressListResponse:
    """List the caller's progress records, most recent first."""
    records = await progress_service.list_progress(user.id, course_id)

    course_progress = None
    if course_id is not None:
        snapshot = await progress_service.course_progress(user.id, course_id)
        course_progress = CourseProgressResponse.from_entity(snapshot)

    return ProgressListResponse(
        items=[LessonProgressResponse.from_entity(p) for p in records],
        course_progress=course_progress,
    )


@router.get(
    "/courses/{course_id}",
    response_model=CourseProgressResponse,
    summary="Course completion",
)
async def get_course_progress(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> CourseProgressResponse:
    """Completed lessons over total lessons, as a rounded percentage."""
    snapshot = await progress_service.course_progress(user.id, course_id)
    return CourseProgressResponse.from_entity(snapshot)
