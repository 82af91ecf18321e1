"""Pydantic schemas for assignments and submissions."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from coursemaster.utils import ensure_utc_aware

from .models import Assignment, Submission, SubmissionStatus


# ==============================================================================
# Assignments
# ==============================================================================


class CreateAssignmentRequest(BaseModel):
    """Request to create an assignment."""

    course_id: UUID
    lesson_id: UUID | None = None
    title: str = Field(..., min_length=3, max_length=200)
    description: str | None = None
    instructions: str = Field(..., min_length=1)
    due_date: datetime | None = None
    max_score: float = Field(100, ge=0)

    @field_validator("due_date")
    @classmethod
    def as_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc_aware(v)


class AssignmentResponse(BaseModel):
    """Assignment response."""

    id: UUID
    course_id: UUID
    lesson_id: UUID | None
    title: str
    description: str | None
    instructions: str
    due_date: datetime | None
    max_score: float
    created_at: datetime

    @classmethod
    def from_entity(cls, assignment: Assignment) -> "AssignmentResponse":
        """Create response from entity."""
        return cls(
            id=assignment.id,
            course_id=assignment.course_id,
            lesson_id=assignment.lesson_id,
            title=assignment.title,
            description=assignment.description,
            instructions=assignment.instructions,
            due_date=assignment.due_date,
            max_score=assignment.max_score,
            created_at=assignment.created_at,
        )


# ==============================================================================
# Submissions
# ==============================================================================


class SubmitAssignmentRequest(BaseModel):
    """Student submission. At least one of text or url is required."""

    submission_text: str | None = None
    submission_url: str | None = Field(None, max_length=2048)


class GradeSubmissionRequest(BaseModel):
    """Grade (or re-grade) a submission."""

    score: float = Field(..., ge=0)
    feedback: str | None = None
    status: SubmissionStatus = SubmissionStatus.GRADED


class SubmissionResponse(BaseModel):
    """Submission response."""

    id: UUID
    assignment_id: UUID
    student_id: UUID
    submission_text: str | None
    submission_url: str | None
    status: SubmissionStatus
    score: float | None
    feedback: str | None
    submitted_at: datetime
    graded_at: datetime | None

    @classmethod
    def from_entity(cls, submission: Submission) -> "SubmissionResponse":
        """Create response from entity."""
        return cls(
            id=submission.id,
            assignment_id=submission.assignment_id,
            student_id=submission.student_id,
            submission_text=submission.submission_text,
            submission_url=submission.submission_url,
            status=SubmissionStatus(submission.status),
            score=submission.score,
            feedback=submission.feedback,
            submitted_at=submission.submitted_at,
            graded_at=submission.graded_at,
        )


class SubmissionListResponse(BaseModel):
    """Submissions of an assignment, newest first."""

    items: list[SubmissionResponse]
    total: int


class StudentAssignmentResponse(BaseModel):
    """Assignment with the caller's submission, if any."""

    assignment: AssignmentResponse
    submission: SubmissionResponse | None = None


class StudentAssignmentListResponse(BaseModel):
    """Assignments of a course as seen by an enrolled student."""

    items: list[StudentAssignmentResponse]
    total: int
