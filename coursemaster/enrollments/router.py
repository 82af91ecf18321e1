"""Enrollment API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from coursemaster.auth.dependencies import InstructorUser, StudentUser
from coursemaster.core.exceptions import ForbiddenError
from coursemaster.courses.dependencies import CourseServiceDep

from .dependencies import EnrollmentServiceDep
from .models import EnrollmentStatus
from .schemas import (
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollRequest,
    UpdateEnrollmentStatusRequest,
)


router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in course",
)
async def enroll(
    data: EnrollRequest,
    enrollment_service: EnrollmentServiceDep,
    user: StudentUser,
) -> EnrollmentResponse:
    """Enroll the caller in a published course.

    A repeated request answers 409 with the existing enrollment in ``data``.
    """
    enrollment = await enrollment_service.enroll(
        student_id=user.id,
        course_id=data.course_id,
        batch_id=data.batch_id,
    )
    return EnrollmentResponse.from_entity(enrollment)


@router.get("", response_model=EnrollmentListResponse, summary="List my enrollments")
async def list_enrollments(
    enrollment_service: EnrollmentServiceDep,
    user: StudentUser,
    course_id: UUID | None = Query(None),
    enrollment_status: EnrollmentStatus | None = Query(None, alias="status"),
) -> EnrollmentListResponse:
    """List the caller's enrollments, newest first."""
    enrollments = await enrollment_service.list_enrollments(
        user.id, course_id=course_id, status=enrollment_status
    )
    return EnrollmentListResponse(
        items=[EnrollmentResponse.from_entity(e) for e in enrollments],
        total=len(enrollments),
    )


@router.get(
    "/course/{course_id}",
    response_model=EnrollmentListResponse,
    summary="List course roster",
)
async def list_course_enrollments(
    course_id: UUID,
    enrollment_service: EnrollmentServiceDep,
    user: InstructorUser,
    batch_id: UUID | None = Query(None),
    enrollment_status: EnrollmentStatus | None = Query(None, alias="status"),
    student_id: UUID | None = Query(None),
) -> EnrollmentListResponse:
    """List enrollments in a course the caller owns, newest first."""
    enrollments = await enrollment_service.list_course_enrollments(
        user.id,
        course_id,
        batch_id=batch_id,
        status=enrollment_status,
        student_id=student_id,
    )
    return EnrollmentListResponse(
        items=[EnrollmentResponse.from_entity(e) for e in enrollments],
        total=len(enrollments),
    )


@router.put(
    "/{course_id}/students/{student_id}/status",
    response_model=EnrollmentResponse,
    summary="Change enrollment status",
)
async def update_enrollment_status(
    course_id: UUID,
    student_id: UUID,
    data: UpdateEnrollmentStatusRequest,
    enrollment_service: EnrollmentServiceDep,
    course_service: CourseServiceDep,
    user: InstructorUser,
) -> EnrollmentResponse:
    """Mark a student's enrollment completed, dropped or enrolled again.

    Only the instructor owning the course may do this.
    """
    course = await course_service.require_course(course_id)
    if not course.is_owned_by(user.id):
        raise ForbiddenError

    enrollment = await enrollment_service.update_status(
        student_id, course_id, data.status
    )
    return EnrollmentResponse.from_entity(enrollment)
