"""Shared fixtures for engine and API tests.

Cassandra is replaced by a ``Mock(spec=Session)`` whose ``aexecute`` answers
per prepared statement, so a test can script what each query returns.
"""

import os
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from cassandra.cluster import Session


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_DIR", "/tmp/coursemaster-test-logs")  # noqa: S108


class FakeResult:
    """Stand-in for a driver ResultSet."""

    def __init__(self, rows: list[Any] | None = None, applied: bool = True):
        self.rows = list(rows or [])
        self.was_applied = applied

    def one(self) -> Any:
        return self.rows[0] if self.rows else None

    def __iter__(self):
        return iter(self.rows)


class FakeCassandra:
    """Session mock with scripted responses per prepared statement.

    ``respond(stmt, r1, r2)`` answers the first execution with r1 and every
    later one with r2. A response may be a callable taking the bound params.
    Unscripted statements return an empty, applied result.
    """

    def __init__(self) -> None:
        self.session = Mock(spec=Session)
        self.session.prepare = Mock(side_effect=self._prepare)
        self.session.aexecute = AsyncMock(side_effect=self._execute)
        self._responses: dict[Any, list[Any]] = {}

    @staticmethod
    def _prepare(query: str) -> Mock:
        statement = Mock(name="PreparedStatement")
        statement.query_string = query
        return statement

    async def _execute(self, statement: Any, params: Any = None) -> FakeResult:
        queue = self._responses.get(statement)
        if not queue:
            return FakeResult()
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        return response(params) if callable(response) else response

    def respond(self, statement: Any, *responses: Any) -> None:
        self._responses[statement] = list(responses)

    def calls(self, statement: Any) -> list[Any]:
        """Bound params of every execution of ``statement``."""
        return [
            call.args[1] if len(call.args) > 1 else None
            for call in self.session.aexecute.call_args_list
            if call.args[0] is statement
        ]


def row_of(entity: Any, **overrides: Any) -> SimpleNamespace:
    """Build a result row from an entity's attributes."""
    return SimpleNamespace(**{**vars(entity), **overrides})


@pytest.fixture
def cassandra() -> FakeCassandra:
    """Scripted Cassandra session."""
    return FakeCassandra()


@pytest.fixture
def make_row():
    return row_of


@pytest.fixture
def rows():
    """Factory for FakeResult objects."""

    def _result(*items: Any, applied: bool = True) -> FakeResult:
        return FakeResult(list(items), applied=applied)

    return _result


@pytest.fixture
def instructor_id() -> UUID:
    return uuid4()


@pytest.fixture
def student_id() -> UUID:
    return uuid4()


@pytest.fixture
def course(instructor_id):
    """A published course owned by ``instructor_id``."""
    from coursemaster.courses.models import Course

    return Course(
        title="Intro to Pharmacology",
        instructor_id=instructor_id,
        description="Basics",
        is_published=True,
    )


@pytest.fixture
def lesson(course):
    from coursemaster.courses.models import Lesson

    return Lesson(course_id=course.id, title="Lesson 1", order=1, duration_minutes=15)


@pytest.fixture
def enrollment(student_id, course):
    from coursemaster.enrollments.models import Enrollment

    return Enrollment(student_id=student_id, course_id=course.id)


@pytest.fixture
def course_service(course, lesson):
    """CourseService collaborator returning the sample course and lesson."""
    from coursemaster.courses.service import CourseNotFoundError, CourseService

    service = AsyncMock(spec=CourseService)

    async def require_course(course_id: UUID):
        if course_id != course.id:
            raise CourseNotFoundError
        return course

    async def get_course(course_id: UUID):
        return course if course_id == course.id else None

    async def get_lesson(lesson_id: UUID):
        return lesson if lesson_id == lesson.id else None

    service.require_course.side_effect = require_course
    service.get_course.side_effect = get_course
    service.get_lesson.side_effect = get_lesson
    service.count_lessons.return_value = 4
    return service


@pytest.fixture
def enrollment_service(enrollment):
    """EnrollmentService collaborator with an active enrollment."""
    from coursemaster.enrollments.service import EnrollmentService

    service = AsyncMock(spec=EnrollmentService)
    service.require_active_enrollment.return_value = enrollment
    service.list_enrollments.return_value = [enrollment]
    return service


@pytest.fixture
def notification_service():
    from coursemaster.notifications.service import NotificationService

    return AsyncMock(spec=NotificationService)


@pytest.fixture
def app():
    """Application without lifespan; tests install services on ``app.state``."""
    from coursemaster.main import create_app

    return create_app()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app, raise_server_exceptions=False)


def identity(user_id: UUID, role: str) -> dict[str, str]:
    """Identity headers as set by the upstream gateway."""
    return {"X-User-Id": str(user_id), "X-User-Role": role}


@pytest.fixture
def student_headers(student_id) -> dict[str, str]:
    return identity(student_id, "student")


@pytest.fixture
def instructor_headers(instructor_id) -> dict[str, str]:
    return identity(instructor_id, "instructor")
