"""Course catalog API endpoints.

Instructors create courses, add lessons and publish them; everyone else
reads published courses and their lesson lists.
"""

from uuid import UUID

from fastapi import APIRouter, status

from coursemaster.auth.dependencies import CurrentUser, InstructorUser
from coursemaster.core.exceptions import ForbiddenError

from .dependencies import CourseServiceDep
from .models import Course
from .schemas import (
    CourseResponse,
    CreateCourseRequest,
    CreateLessonRequest,
    LessonListResponse,
    LessonResponse,
    PublishCourseRequest,
)
from .service import CourseNotFoundError, CourseService


router = APIRouter(prefix="/v1/courses", tags=["courses"])


async def _require_owned_course(
    course_service: CourseService, course_id: UUID, instructor_id: UUID
) -> Course:
    course = await course_service.require_course(course_id)
    if not course.is_owned_by(instructor_id):
        raise ForbiddenError
    return course


async def _require_visible_course(
    course_service: CourseService, course_id: UUID, user_id: UUID
) -> Course:
    # Drafts are only visible to their owner
    course = await course_service.require_course(course_id)
    if not course.is_published and not course.is_owned_by(user_id):
        raise CourseNotFoundError
    return course


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_course(
    data: CreateCourseRequest,
    course_service: CourseServiceDep,
    user: InstructorUser,
) -> CourseResponse:
    """Create a course owned by the caller."""
    course = await course_service.create_course(data, user.id)
    return CourseResponse.from_entity(course)


@router.get("/{course_id}", response_model=CourseResponse, summary="Get course")
async def get_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> CourseResponse:
    """Get course details."""
    course = await _require_visible_course(course_service, course_id, user.id)
    return CourseResponse.from_entity(course)


@router.put(
    "/{course_id}/publish",
    response_model=CourseResponse,
    summary="Publish or unpublish course",
)
async def set_published(
    course_id: UUID,
    data: PublishCourseRequest,
    course_service: CourseServiceDep,
    user: InstructorUser,
) -> CourseResponse:
    """Open or close a course for enrollment. Course owner only."""
    await _require_owned_course(course_service, course_id, user.id)
    course = await course_service.set_published(course_id, data.is_published)
    return CourseResponse.from_entity(course)


@router.post(
    "/{course_id}/lessons",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add lesson",
)
async def create_lesson(
    course_id: UUID,
    data: CreateLessonRequest,
    course_service: CourseServiceDep,
    user: InstructorUser,
) -> LessonResponse:
    """Add a lesson to a course the caller owns."""
    await _require_owned_course(course_service, course_id, user.id)
    lesson = await course_service.create_lesson(course_id, data)
    return LessonResponse.from_entity(lesson)


@router.get(
    "/{course_id}/lessons",
    response_model=LessonListResponse,
    summary="List course lessons",
)
async def list_lessons(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> LessonListResponse:
    """List a course's lessons in course order."""
    await _require_visible_course(course_service, course_id, user.id)
    lessons = await course_service.list_lessons(course_id)
    return LessonListResponse(
        items=[LessonResponse.from_entity(lesson) for lesson in lessons],
        total=len(lessons),
    )
