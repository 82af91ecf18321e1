"""Pydantic schemas for lesson progress tracking."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import CourseProgress, LessonProgress


class RecordProgressRequest(BaseModel):
    """Record a visit to a lesson."""

    course_id: UUID = Field(..., description="Course UUID")
    lesson_id: UUID = Field(..., description="Lesson UUID")
    is_completed: bool = Field(..., description="Completion flag after this visit")
    time_spent: int = Field(0, ge=0, description="Minutes spent during this visit")


class LessonProgressResponse(BaseModel):
    """Lesson progress response."""

    course_id: UUID
    lesson_id: UUID
    is_completed: bool
    completed_at: datetime | None = None
    time_spent: int = Field(description="Accumulated minutes")
    last_accessed_at: datetime

    @classmethod
    def from_entity(cls, entity: LessonProgress) -> "LessonProgressResponse":
        """Create response from entity."""
        return cls(
            course_id=entity.course_id,
            lesson_id=entity.lesson_id,
            is_completed=entity.is_completed,
            completed_at=entity.completed_at,
            time_spent=entity.time_spent,
            last_accessed_at=entity.last_accessed_at,
        )


class CourseProgressResponse(BaseModel):
    """Course completion snapshot."""

    course_id: UUID
    completed_lessons: int
    total_lessons: int
    percentage: int = Field(description="0-100, rounded")

    @classmethod
    def from_entity(cls, entity: CourseProgress) -> "CourseProgressResponse":
        """Create response from snapshot."""
        return cls(
            course_id=entity.course_id,
            completed_lessons=entity.completed_lessons,
            total_lessons=entity.total_lessons,
            percentage=entity.percentage,
        )


class ProgressListResponse(BaseModel):
    """Progress records, most recently accessed first.

    ``course_progress`` is filled when the listing is scoped to one course.
    """

    items: list[LessonProgressResponse]
    course_progress: CourseProgressResponse | None = None
