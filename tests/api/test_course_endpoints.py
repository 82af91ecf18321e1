"""Catalog endpoints: course creation, lessons and publishing."""

from uuid import uuid4

import pytest

from coursemaster.courses.models import Course, Lesson


@pytest.fixture
def services(app, course_service):
    app.state.course_service = course_service
    return app.state


class TestCreateCourse:
    def test_instructor_creates_course(
        self, client, services, instructor_id, instructor_headers
    ) -> None:
        created = Course(title="Clinical Dosage", instructor_id=instructor_id)
        services.course_service.create_course.return_value = created

        response = client.post(
            "/v1/courses",
            json={"title": "Clinical Dosage", "description": "Weekly cohort"},
            headers=instructor_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["id"] == str(created.id)
        assert body["is_published"] is False
        data, owner = services.course_service.create_course.await_args.args
        assert data.title == "Clinical Dosage"
        assert owner == instructor_id

    def test_students_cannot_create(
        self, client, services, student_headers
    ) -> None:
        response = client.post(
            "/v1/courses", json={"title": "Clinical Dosage"}, headers=student_headers
        )

        assert response.status_code == 403
        services.course_service.create_course.assert_not_awaited()

    def test_short_title_is_422(self, client, services, instructor_headers) -> None:
        response = client.post(
            "/v1/courses", json={"title": "ab"}, headers=instructor_headers
        )

        assert response.status_code == 422


class TestPublish:
    def test_owner_publishes(
        self, client, services, course, instructor_headers
    ) -> None:
        services.course_service.set_published.return_value = course

        response = client.put(
            f"/v1/courses/{course.id}/publish",
            json={"is_published": True},
            headers=instructor_headers,
        )

        assert response.status_code == 200
        services.course_service.set_published.assert_awaited_once_with(
            course.id, True
        )

    def test_other_instructor_forbidden(self, client, services, course) -> None:
        response = client.put(
            f"/v1/courses/{course.id}/publish",
            json={"is_published": True},
            headers={"X-User-Id": str(uuid4()), "X-User-Role": "instructor"},
        )

        assert response.status_code == 403
        services.course_service.set_published.assert_not_awaited()

    def test_unknown_course_is_404(
        self, client, services, instructor_headers
    ) -> None:
        response = client.put(
            f"/v1/courses/{uuid4()}/publish",
            json={"is_published": True},
            headers=instructor_headers,
        )

        assert response.status_code == 404
        assert response.json()["code"] == "course_not_found"


class TestLessons:
    def test_owner_adds_lesson(
        self, client, services, course, instructor_headers
    ) -> None:
        lesson = Lesson(course_id=course.id, title="Absorption", order=2)
        services.course_service.create_lesson.return_value = lesson

        response = client.post(
            f"/v1/courses/{course.id}/lessons",
            json={"title": "Absorption", "order": 2, "duration_minutes": 20},
            headers=instructor_headers,
        )

        assert response.status_code == 201
        assert response.json()["order"] == 2
        course_id, data = services.course_service.create_lesson.await_args.args
        assert course_id == course.id
        assert data.duration_minutes == 20

    def test_other_instructor_cannot_add_lesson(
        self, client, services, course
    ) -> None:
        response = client.post(
            f"/v1/courses/{course.id}/lessons",
            json={"title": "Absorption"},
            headers={"X-User-Id": str(uuid4()), "X-User-Role": "instructor"},
        )

        assert response.status_code == 403
        services.course_service.create_lesson.assert_not_awaited()

    def test_list_lessons_in_order(
        self, client, services, course, lesson, student_headers
    ) -> None:
        second = Lesson(course_id=course.id, title="Lesson 2", order=2)
        services.course_service.list_lessons.return_value = [lesson, second]

        response = client.get(
            f"/v1/courses/{course.id}/lessons", headers=student_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert [item["order"] for item in body["items"]] == [1, 2]


class TestVisibility:
    def test_published_course_visible(
        self, client, services, course, student_headers
    ) -> None:
        response = client.get(f"/v1/courses/{course.id}", headers=student_headers)

        assert response.status_code == 200
        assert response.json()["title"] == course.title

    def test_draft_hidden_from_students(
        self, client, services, course, student_headers
    ) -> None:
        course.is_published = False

        response = client.get(f"/v1/courses/{course.id}", headers=student_headers)

        assert response.status_code == 404

    def test_draft_visible_to_owner(
        self, client, services, course, instructor_headers
    ) -> None:
        course.is_published = False

        response = client.get(f"/v1/courses/{course.id}", headers=instructor_headers)

        assert response.status_code == 200
        assert response.json()["is_published"] is False
