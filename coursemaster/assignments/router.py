"""Assignment and submission API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from coursemaster.auth.dependencies import CurrentUser, InstructorUser, StudentUser
from coursemaster.core.exceptions import ForbiddenError
from coursemaster.courses.dependencies import CourseServiceDep

from .dependencies import AssignmentServiceDep
from .schemas import (
    AssignmentResponse,
    CreateAssignmentRequest,
    GradeSubmissionRequest,
    StudentAssignmentListResponse,
    StudentAssignmentResponse,
    SubmissionListResponse,
    SubmissionResponse,
    SubmitAssignmentRequest,
)


router = APIRouter(prefix="/v1/assignments", tags=["assignments"])
submissions_router = APIRouter(prefix="/v1/submissions", tags=["assignments"])


@router.get(
    "",
    response_model=StudentAssignmentListResponse,
    summary="List course assignments",
)
async def list_assignments(
    assignment_service: AssignmentServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
    course_id: UUID = Query(...),
) -> StudentAssignmentListResponse:
    """Students get their own submission next to each assignment.

    Instructors must own the course and get the bare assignments.
    """
    if user.is_student:
        pairs = await assignment_service.list_student_assignments(user.id, course_id)
    else:
        course = await course_service.require_course(course_id)
        if user.is_instructor and not course.is_owned_by(user.id):
            raise ForbiddenError
        pairs = [(a, None) for a in await assignment_service.list_assignments(course_id)]

    items = [
        StudentAssignmentResponse(
            assignment=AssignmentResponse.from_entity(assignment),
            submission=SubmissionResponse.from_entity(submission)
            if submission
            else None,
        )
        for assignment, submission in pairs
    ]
    return StudentAssignmentListResponse(items=items, total=len(items))


@router.post(
    "",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create assignment",
)
async def create_assignment(
    data: CreateAssignmentRequest,
    assignment_service: AssignmentServiceDep,
    user: InstructorUser,
) -> AssignmentResponse:
    """Create an assignment for a course the caller owns."""
    assignment = await assignment_service.create_assignment(user.id, data)
    return AssignmentResponse.from_entity(assignment)


@router.post(
    "/{assignment_id}/submissions",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit assignment",
)
async def submit_assignment(
    assignment_id: UUID,
    data: SubmitAssignmentRequest,
    assignment_service: AssignmentServiceDep,
    user: StudentUser,
) -> SubmissionResponse:
    """Hand in an assignment. A second submission answers 409 with the first."""
    submission = await assignment_service.submit(
        student_id=user.id,
        assignment_id=assignment_id,
        submission_text=data.submission_text,
        submission_url=data.submission_url,
    )
    return SubmissionResponse.from_entity(submission)


@router.get(
    "/{assignment_id}/submissions",
    response_model=SubmissionListResponse,
    summary="List submissions",
)
async def list_submissions(
    assignment_id: UUID,
    assignment_service: AssignmentServiceDep,
    user: InstructorUser,
) -> SubmissionListResponse:
    """Grading queue for an assignment the caller owns."""
    submissions = await assignment_service.list_submissions(user.id, assignment_id)
    return SubmissionListResponse(
        items=[SubmissionResponse.from_entity(s) for s in submissions],
        total=len(submissions),
    )


@submissions_router.get(
    "/{submission_id}",
    response_model=SubmissionResponse,
    summary="Get submission",
)
async def get_submission(
    submission_id: UUID,
    assignment_service: AssignmentServiceDep,
    user: CurrentUser,
) -> SubmissionResponse:
    """Students see their own submissions; instructors those they may grade."""
    if user.is_student:
        submission = await assignment_service.get_own_submission(
            user.id, submission_id
        )
    else:
        submission = await assignment_service.get_submission(user.id, submission_id)
    return SubmissionResponse.from_entity(submission)


@submissions_router.put(
    "/{submission_id}",
    response_model=SubmissionResponse,
    summary="Grade submission",
)
async def grade_submission(
    submission_id: UUID,
    data: GradeSubmissionRequest,
    assignment_service: AssignmentServiceDep,
    user: InstructorUser,
) -> SubmissionResponse:
    """Grade or re-grade a submission. Re-grading overwrites."""
    submission = await assignment_service.grade(
        instructor_id=user.id,
        submission_id=submission_id,
        score=data.score,
        feedback=data.feedback,
        status=data.status,
    )
    return SubmissionResponse.from_entity(submission)
