"""Tests for fire-and-forget notifications."""

import asyncio
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from coursemaster.assignments.models import Assignment
from coursemaster.auth.models import User
from coursemaster.auth.service import UserService
from coursemaster.email.schemas import SendEmailResponse
from coursemaster.email.service import EmailService
from coursemaster.notifications.service import NotificationService


@pytest.fixture
def student() -> User:
    return User(name="Ana Souza", email="ana@example.com")


@pytest.fixture
def user_service(student):
    service = AsyncMock(spec=UserService)
    service.get_user.return_value = student
    return service


@pytest.fixture
def email_service():
    service = AsyncMock(spec=EmailService)
    sent = SendEmailResponse(success=True, message_id="msg-1")
    service.send_enrollment_email.return_value = sent
    service.send_course_completion_email.return_value = sent
    service.send_assignment_graded_email.return_value = sent
    return service


@pytest.fixture
def notification_service(user_service, email_service) -> NotificationService:
    return NotificationService(
        user_service=user_service,
        email_service=email_service,
        course_url_base="https://learn.example.com/courses/",
    )


class TestNotificationService:
    @pytest.mark.asyncio
    async def test_enrollment_email_sent_in_background(
        self, notification_service, email_service, student, course
    ) -> None:
        notification_service.notify_enrollment(student.id, course)
        assert notification_service.pending == 1

        await notification_service.drain()

        assert notification_service.pending == 0
        email_service.send_enrollment_email.assert_awaited_once_with(
            to="ana@example.com",
            user_name="Ana Souza",
            course_title=course.title,
            course_url=f"https://learn.example.com/courses/{course.id}",
        )

    @pytest.mark.asyncio
    async def test_graded_email_carries_rounded_percentage(
        self, notification_service, email_service, student, course
    ) -> None:
        assignment = Assignment(
            course_id=course.id, title="Essay", instructions="Write", max_score=30
        )

        notification_service.notify_assignment_graded(
            student.id, course, assignment, 20
        )
        await notification_service.drain()

        kwargs = email_service.send_assignment_graded_email.call_args.kwargs
        assert kwargs["score"] == 20
        assert kwargs["max_score"] == 30
        assert kwargs["percentage"] == 67

    @pytest.mark.asyncio
    async def test_delivery_failure_is_swallowed(
        self, notification_service, email_service, student, course
    ) -> None:
        email_service.send_course_completion_email.side_effect = RuntimeError("boom")

        notification_service.notify_course_completion(student.id, course)
        await notification_service.drain()

        email_service.send_course_completion_email.assert_awaited_once()
        assert notification_service.pending == 0

    @pytest.mark.asyncio
    async def test_unsuccessful_send_is_swallowed(
        self, notification_service, email_service, student, course
    ) -> None:
        email_service.send_enrollment_email.return_value = SendEmailResponse(
            success=False, error="quota"
        )

        notification_service.notify_enrollment(student.id, course)
        await notification_service.drain()

        email_service.send_enrollment_email.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_recipient_skips_send(
        self, notification_service, user_service, email_service, course
    ) -> None:
        user_service.get_user.return_value = None

        notification_service.notify_enrollment(uuid4(), course)
        await notification_service.drain()

        email_service.send_enrollment_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_disabled_email_schedules_nothing(self, user_service, course) -> None:
        service = NotificationService(
            user_service=user_service,
            email_service=None,
            course_url_base="https://learn.example.com/courses",
        )

        service.notify_enrollment(uuid4(), course)

        assert service.pending == 0
        user_service.get_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_drain_cancels_slow_deliveries(
        self, notification_service, email_service, student, course
    ) -> None:
        async def hang(**_kwargs):
            await asyncio.sleep(60)

        email_service.send_enrollment_email.side_effect = hang

        notification_service.notify_enrollment(student.id, course)
        await notification_service.drain(timeout=0.05)
        await asyncio.sleep(0.01)

        assert notification_service.pending == 0
