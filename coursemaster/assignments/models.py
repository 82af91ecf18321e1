"""Database models for assignments and submissions.

Cassandra table definitions for:
- assignments: Main assignment table
- assignments_by_course: Lookup table for listing a course's assignments
- submissions_by_student: One row per (assignment, student), claimed with
  IF NOT EXISTS; the authoritative copy of a submission
- submissions: Copy keyed by submission id (grading, detail views)
- submissions_by_assignment: Lookup table for the grading queue
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from coursemaster.utils import ensure_utc_aware, utc_now


class SubmissionStatus(str, Enum):
    """Submission status label set by the grader.

    Any label may follow any other; there is no enforced ordering.
    """

    SUBMITTED = "submitted"
    GRADED = "graded"
    RETURNED = "returned"


ASSIGNMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.assignments (
    id UUID PRIMARY KEY,
    course_id UUID,
    lesson_id UUID,
    title TEXT,
    description TEXT,
    instructions TEXT,
    due_date TIMESTAMP,
    max_score DOUBLE,
    created_by UUID,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

ASSIGNMENTS_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.assignments_by_course (
    course_id UUID,
    assignment_id UUID,
    PRIMARY KEY (course_id, assignment_id)
)
"""

SUBMISSION_COLUMNS_CQL = """
    submission_text TEXT,
    submission_url TEXT,
    status TEXT,
    score DOUBLE,
    feedback TEXT,
    submitted_at TIMESTAMP,
    graded_at TIMESTAMP,
    graded_by UUID,
"""

SUBMISSIONS_BY_STUDENT_TABLE_CQL = (
    """
CREATE TABLE IF NOT EXISTS {keyspace}.submissions_by_student (
    assignment_id UUID,
    student_id UUID,
    id UUID,"""
    + SUBMISSION_COLUMNS_CQL
    + """
    PRIMARY KEY ((assignment_id, student_id))
)
"""
)

SUBMISSION_TABLE_CQL = (
    """
CREATE TABLE IF NOT EXISTS {keyspace}.submissions (
    id UUID PRIMARY KEY,
    assignment_id UUID,
    student_id UUID,"""
    + SUBMISSION_COLUMNS_CQL.rstrip().rstrip(",")
    + """
)
"""
)

SUBMISSIONS_BY_ASSIGNMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.submissions_by_assignment (
    assignment_id UUID,
    submission_id UUID,
    student_id UUID,
    PRIMARY KEY (assignment_id, submission_id)
)
"""

ASSIGNMENTS_TABLES_CQL = [
    ASSIGNMENT_TABLE_CQL,
    ASSIGNMENTS_BY_COURSE_TABLE_CQL,
    SUBMISSIONS_BY_STUDENT_TABLE_CQL,
    SUBMISSION_TABLE_CQL,
    SUBMISSIONS_BY_ASSIGNMENT_TABLE_CQL,
]


class Assignment:
    """Graded deliverable attached to a course (optionally a lesson).

    Attributes:
        id: Unique identifier (UUID)
        course_id: Course UUID
        lesson_id: Optional lesson UUID
        title: Assignment title
        description: Optional summary
        instructions: What the student has to hand in
        due_date: Optional deadline (informational)
        max_score: Upper bound for grades (>= 0)
        created_by: Instructor who created it
    """

    def __init__(
        self,
        course_id: UUID,
        title: str,
        instructions: str,
        max_score: float = 100,
        lesson_id: UUID | None = None,
        description: str | None = None,
        due_date: datetime | None = None,
        created_by: UUID | None = None,
        id: UUID | None = None,  # noqa: A002
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.course_id = course_id
        self.lesson_id = lesson_id
        self.title = title
        self.description = description
        self.instructions = instructions
        self.due_date = ensure_utc_aware(due_date)
        self.max_score = max_score
        self.created_by = created_by
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @classmethod
    def from_row(cls, row: Any) -> "Assignment":
        """Create Assignment instance from Cassandra row."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            lesson_id=row.lesson_id,
            title=row.title,
            description=row.description,
            instructions=row.instructions,
            due_date=row.due_date,
            max_score=row.max_score if row.max_score is not None else 100,
            created_by=row.created_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Assignment {self.title} max={self.max_score}>"


class Submission:
    """A student's deliverable for an assignment.

    Attributes:
        id: Unique identifier (UUID)
        assignment_id: Assignment UUID
        student_id: Student UUID
        submission_text: Inline answer
        submission_url: Link to the deliverable
        status: submitted, graded or returned
        score: Grade within [0, assignment.max_score]
        feedback: Grader's comments
        submitted_at: Submission timestamp
        graded_at: Last grading timestamp
        graded_by: Instructor who last graded
    """

    def __init__(
        self,
        assignment_id: UUID,
        student_id: UUID,
        submission_text: str | None = None,
        submission_url: str | None = None,
        status: str = SubmissionStatus.SUBMITTED.value,
        score: float | None = None,
        feedback: str | None = None,
        submitted_at: datetime | None = None,
        graded_at: datetime | None = None,
        graded_by: UUID | None = None,
        id: UUID | None = None,  # noqa: A002
    ):
        self.id = id or uuid4()
        self.assignment_id = assignment_id
        self.student_id = student_id
        self.submission_text = submission_text
        self.submission_url = submission_url
        self.status = status
        self.score = score
        self.feedback = feedback
        self.submitted_at = ensure_utc_aware(submitted_at) or utc_now()
        self.graded_at = ensure_utc_aware(graded_at)
        self.graded_by = graded_by

    @classmethod
    def from_row(cls, row: Any) -> "Submission":
        """Create Submission instance from a submissions or
        submissions_by_student row."""
        return cls(
            id=row.id,
            assignment_id=row.assignment_id,
            student_id=row.student_id,
            submission_text=row.submission_text,
            submission_url=row.submission_url,
            status=row.status or SubmissionStatus.SUBMITTED.value,
            score=row.score,
            feedback=row.feedback,
            submitted_at=row.submitted_at,
            graded_at=row.graded_at,
            graded_by=row.graded_by,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "assignment_id": self.assignment_id,
            "student_id": self.student_id,
            "submission_text": self.submission_text,
            "submission_url": self.submission_url,
            "status": self.status,
            "score": self.score,
            "feedback": self.feedback,
            "submitted_at": self.submitted_at,
            "graded_at": self.graded_at,
            "graded_by": self.graded_by,
        }

    def __repr__(self) -> str:
        return f"<Submission {self.id} {self.status} score={self.score}>"
