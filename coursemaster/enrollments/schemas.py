"""Pydantic schemas for the enrollment ledger."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import Enrollment, EnrollmentStatus


class EnrollRequest(BaseModel):
    """Request to enroll the caller in a course."""

    course_id: UUID = Field(..., description="Course UUID")
    batch_id: UUID | None = Field(None, description="Optional batch to join")


class UpdateEnrollmentStatusRequest(BaseModel):
    """Externally triggered status change (completion, drop, re-activation)."""

    status: EnrollmentStatus


class EnrollmentResponse(BaseModel):
    """Enrollment response."""

    student_id: UUID
    course_id: UUID
    batch_id: UUID | None = None
    status: EnrollmentStatus
    enrolled_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: Enrollment) -> "EnrollmentResponse":
        """Create response from entity."""
        return cls(
            student_id=entity.student_id,
            course_id=entity.course_id,
            batch_id=entity.batch_id,
            status=EnrollmentStatus(entity.status),
            enrolled_at=entity.enrolled_at,
            completed_at=entity.completed_at,
        )


class EnrollmentListResponse(BaseModel):
    """Enrollments, newest first."""

    items: list[EnrollmentResponse]
    total: int
