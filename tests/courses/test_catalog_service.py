"""Tests for the catalog and user directory collaborators."""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from coursemaster.auth.permissions import UserRole
from coursemaster.auth.service import UserService
from coursemaster.courses.schemas import CreateCourseRequest, CreateLessonRequest
from coursemaster.courses.service import CourseNotFoundError, CourseService


@pytest.fixture
def catalog(cassandra) -> CourseService:
    return CourseService(session=cassandra.session, keyspace="test_keyspace")


class TestCourses:
    @pytest.mark.asyncio
    async def test_create_course_draft_by_default(
        self, catalog, cassandra, instructor_id
    ) -> None:
        course = await catalog.create_course(
            CreateCourseRequest(title="Pharmacology"), instructor_id
        )

        assert course.is_published is False
        assert course.is_owned_by(instructor_id)
        [params] = cassandra.calls(catalog._insert_course)
        assert params[0] == course.id
        assert params[3] == instructor_id

    @pytest.mark.asyncio
    async def test_unknown_course_raises(self, catalog) -> None:
        with pytest.raises(CourseNotFoundError):
            await catalog.require_course(uuid4())

    @pytest.mark.asyncio
    async def test_set_published(
        self, catalog, cassandra, course, make_row, rows
    ) -> None:
        course.is_published = False
        cassandra.respond(catalog._get_course_by_id, rows(make_row(course)))

        updated = await catalog.set_published(course.id, True)

        assert updated.is_published is True
        [params] = cassandra.calls(catalog._set_published)
        assert params[0] is True
        assert params[2] == course.id


class TestLessons:
    @pytest.mark.asyncio
    async def test_create_lesson_writes_both_tables(
        self, catalog, cassandra, course, make_row, rows
    ) -> None:
        cassandra.respond(catalog._get_course_by_id, rows(make_row(course)))

        lesson = await catalog.create_lesson(
            course.id, CreateLessonRequest(title="Dosage", order=2, duration_minutes=20)
        )

        assert lesson.course_id == course.id
        [main] = cassandra.calls(catalog._insert_lesson)
        [listing] = cassandra.calls(catalog._insert_lesson_by_course)
        assert main[0] == lesson.id
        assert listing == [course.id, 2, lesson.id, "Dosage", 20]

    @pytest.mark.asyncio
    async def test_create_lesson_requires_course(self, catalog, cassandra) -> None:
        with pytest.raises(CourseNotFoundError):
            await catalog.create_lesson(uuid4(), CreateLessonRequest(title="Dosage"))

        assert cassandra.calls(catalog._insert_lesson) == []

    @pytest.mark.asyncio
    async def test_list_lessons_keeps_course_order(
        self, catalog, cassandra, course, rows
    ) -> None:
        first, second = uuid4(), uuid4()
        cassandra.respond(
            catalog._list_lessons_by_course,
            rows(
                SimpleNamespace(
                    course_id=course.id,
                    lesson_order=1,
                    lesson_id=first,
                    title="Intro",
                    duration_minutes=None,
                ),
                SimpleNamespace(
                    course_id=course.id,
                    lesson_order=2,
                    lesson_id=second,
                    title="Dosage",
                    duration_minutes=20,
                ),
            ),
        )

        lessons = await catalog.list_lessons(course.id)

        assert [lesson.id for lesson in lessons] == [first, second]
        assert lessons[0].duration_minutes == 0

    @pytest.mark.asyncio
    async def test_count_lessons(self, catalog, cassandra, course, rows) -> None:
        cassandra.respond(catalog._count_lessons_by_course, rows(SimpleNamespace(total=3)))

        assert await catalog.count_lessons(course.id) == 3

    @pytest.mark.asyncio
    async def test_get_lesson_reads_row(
        self, catalog, cassandra, lesson, make_row, rows
    ) -> None:
        cassandra.respond(
            catalog._get_lesson_by_id, rows(make_row(lesson, lesson_order=lesson.order))
        )

        found = await catalog.get_lesson(lesson.id)

        assert found.id == lesson.id
        assert found.order == 1


class TestUsers:
    @pytest.mark.asyncio
    async def test_create_user_normalizes_email(self, cassandra) -> None:
        service = UserService(session=cassandra.session, keyspace="test_keyspace")

        user = await service.create_user("Ana", "Ana@Example.com", UserRole.INSTRUCTOR)

        assert user.email == "ana@example.com"
        assert user.role == "instructor"
        [params] = cassandra.calls(service._insert_user)
        assert params[:4] == [user.id, "Ana", "ana@example.com", "instructor"]

    @pytest.mark.asyncio
    async def test_missing_user_is_none(self, cassandra) -> None:
        service = UserService(session=cassandra.session, keyspace="test_keyspace")

        assert await service.get_user(uuid4()) is None
