"""Fire-and-forget student notifications.

Delivery runs in background tasks so a slow or failing mail provider never
delays or rolls back the engine operation that triggered it. Every failure
is logged at warning level and discarded.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

from coursemaster.utils import round_percentage


if TYPE_CHECKING:
    from uuid import UUID

    from coursemaster.assignments.models import Assignment
    from coursemaster.auth.models import User
    from coursemaster.auth.service import UserService
    from coursemaster.courses.models import Course
    from coursemaster.email.schemas import SendEmailResponse
    from coursemaster.email.service import EmailService


logger = structlog.get_logger(__name__)

Sender = Callable[["User"], Awaitable["SendEmailResponse"]]


class NotificationService:
    """Schedules notification emails without blocking the caller."""

    def __init__(
        self,
        user_service: UserService,
        email_service: EmailService | None,
        course_url_base: str,
    ) -> None:
        """Initialize notification service.

        Args:
            user_service: Resolves recipients' name and address
            email_service: Gmail sender, or None when email is disabled
            course_url_base: Base URL for course links in messages
        """
        self.user_service = user_service
        self.email_service = email_service
        self.course_url_base = course_url_base.rstrip("/")
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of deliveries still in flight."""
        return len(self._tasks)

    def course_url(self, course_id: UUID) -> str:
        return f"{self.course_url_base}/{course_id}"

    # ==========================================================================
    # Notifications
    # ==========================================================================

    def notify_enrollment(self, student_id: UUID, course: Course) -> None:
        """Send enrollment confirmation in the background."""
        email_service = self.email_service

        async def send(user: User) -> SendEmailResponse:
            return await email_service.send_enrollment_email(
                to=user.email,
                user_name=user.name,
                course_title=course.title,
                course_url=self.course_url(course.id),
            )

        self._schedule("enrollment", student_id, send)

    def notify_course_completion(self, student_id: UUID, course: Course) -> None:
        """Send course completion congratulations in the background."""
        email_service = self.email_service

        async def send(user: User) -> SendEmailResponse:
            return await email_service.send_course_completion_email(
                to=user.email,
                user_name=user.name,
                course_title=course.title,
                course_url=self.course_url(course.id),
            )

        self._schedule("course_completion", student_id, send)

    def notify_assignment_graded(
        self,
        student_id: UUID,
        course: Course,
        assignment: Assignment,
        score: float,
    ) -> None:
        """Send the grade of a submission in the background."""
        email_service = self.email_service

        async def send(user: User) -> SendEmailResponse:
            return await email_service.send_assignment_graded_email(
                to=user.email,
                user_name=user.name,
                course_title=course.title,
                assignment_title=assignment.title,
                score=score,
                max_score=assignment.max_score,
                percentage=round_percentage(score, assignment.max_score),
            )

        self._schedule("assignment_graded", student_id, send)

    # ==========================================================================
    # Delivery
    # ==========================================================================

    def _schedule(self, kind: str, student_id: UUID, send: Sender) -> None:
        if self.email_service is None:
            logger.info(
                "notification_skipped",
                kind=kind,
                student_id=str(student_id),
                reason="email_disabled",
            )
            return

        task = asyncio.create_task(
            self._deliver(kind, student_id, send),
            name=f"notify_{kind}",
        )
        # Keep a strong reference until the task finishes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, kind: str, student_id: UUID, send: Sender) -> None:
        try:
            user = await self.user_service.get_user(student_id)
            if user is None:
                logger.warning(
                    "notification_recipient_not_found",
                    kind=kind,
                    student_id=str(student_id),
                )
                return

            response = await send(user)
            if not response.success:
                logger.warning(
                    "notification_delivery_failed",
                    kind=kind,
                    student_id=str(student_id),
                    error=response.error,
                )
                return

            logger.info(
                "notification_sent",
                kind=kind,
                student_id=str(student_id),
                message_id=response.message_id,
            )

        except Exception as e:
            logger.warning(
                "notification_failed",
                kind=kind,
                student_id=str(student_id),
                error=str(e),
                error_type=type(e).__name__,
            )

    async def drain(self, timeout: float = 5.0) -> None:
        """Wait for in-flight deliveries, cancelling what is left after timeout."""
        if not self._tasks:
            return

        tasks = list(self._tasks)
        done, not_done = await asyncio.wait(tasks, timeout=timeout)
        for task in not_done:
            task.cancel()

        logger.info(
            "notifications_drained",
            completed=len(done),
            cancelled=len(not_done),
        )
