"""Pydantic schemas for the course catalog."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import Course, Lesson


class CreateCourseRequest(BaseModel):
    """Request to create a course."""

    title: str = Field(..., min_length=3, max_length=200)
    description: str | None = Field(None, max_length=5000)
    is_published: bool = False


class CreateLessonRequest(BaseModel):
    """Request to add a lesson to a course."""

    title: str = Field(..., min_length=1, max_length=200)
    order: int = Field(0, ge=0)
    duration_minutes: int = Field(0, ge=0)


class PublishCourseRequest(BaseModel):
    """Publish or unpublish a course."""

    is_published: bool


class CourseResponse(BaseModel):
    """Course response."""

    id: UUID
    title: str
    description: str | None = None
    instructor_id: UUID
    is_published: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, course: Course) -> "CourseResponse":
        """Create response from entity."""
        return cls(
            id=course.id,
            title=course.title,
            description=course.description,
            instructor_id=course.instructor_id,
            is_published=course.is_published,
            created_at=course.created_at,
            updated_at=course.updated_at,
        )


class LessonResponse(BaseModel):
    """Lesson response."""

    id: UUID
    course_id: UUID
    title: str
    order: int
    duration_minutes: int

    @classmethod
    def from_entity(cls, lesson: Lesson) -> "LessonResponse":
        """Create response from entity."""
        return cls(
            id=lesson.id,
            course_id=lesson.course_id,
            title=lesson.title,
            order=lesson.order,
            duration_minutes=lesson.duration_minutes,
        )


class LessonListResponse(BaseModel):
    """A course's lessons in course order."""

    items: list[LessonResponse]
    total: int
