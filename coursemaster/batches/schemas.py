"""Pydantic schemas for batch scheduling."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from coursemaster.utils import ensure_utc_aware

from .models import Batch, BatchStatus


class CreateBatchRequest(BaseModel):
    """Request to schedule a new batch."""

    course_id: UUID
    name: str = Field(..., min_length=3, max_length=100)
    start_date: datetime
    end_date: datetime
    max_students: int = Field(..., ge=1)

    @field_validator("start_date", "end_date")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc_aware(v)


class UpdateBatchRequest(BaseModel):
    """Partial batch update. Status is always re-derived from the dates."""

    name: str | None = Field(None, min_length=3, max_length=100)
    start_date: datetime | None = None
    end_date: datetime | None = None
    max_students: int | None = Field(None, ge=1)

    @field_validator("start_date", "end_date")
    @classmethod
    def as_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc_aware(v)


class BatchResponse(BaseModel):
    """Batch response."""

    id: UUID
    course_id: UUID
    instructor_id: UUID
    name: str
    start_date: datetime
    end_date: datetime
    max_students: int
    current_students: int
    status: BatchStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, batch: Batch) -> "BatchResponse":
        """Create response from entity."""
        return cls(
            id=batch.id,
            course_id=batch.course_id,
            instructor_id=batch.instructor_id,
            name=batch.name,
            start_date=batch.start_date,
            end_date=batch.end_date,
            max_students=batch.max_students,
            current_students=batch.current_students,
            status=BatchStatus(batch.status),
            created_at=batch.created_at,
            updated_at=batch.updated_at,
        )


class BatchListResponse(BaseModel):
    """Batches of a course, newest start first."""

    items: list[BatchResponse]
    total: int
