"""Email service using Gmail API with Service Account.

Uses domain-wide delegation to send emails on behalf of a Google Workspace user.
The service account must have domain-wide delegation enabled in Google Admin Console.

Required Google Admin Console setup:
1. Go to Security > Access and data control > API controls > Domain-wide delegation
2. Add the service account client_id with scope: https://www.googleapis.com/auth/gmail.send
"""

import asyncio
import base64
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from pathlib import Path
from typing import TYPE_CHECKING

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from coursemaster.core.logging import get_logger

from .schemas import EmailRecipient, SendEmailRequest, SendEmailResponse
from .templates import (
    render_assignment_graded,
    render_course_completion,
    render_enrollment,
)


if TYPE_CHECKING:
    from googleapiclient._apis.gmail.v1 import GmailResource


logger = get_logger(__name__)

GMAIL_SCOPES = ["https://www.googleapis.com/auth/gmail.send"]


class EmailService:
    """Service for sending emails via Gmail API.

    Sending never raises: every failure is logged and reported through
    ``SendEmailResponse.success``.
    """

    def __init__(
        self,
        credentials_path: str,
        sender_address: str,
        sender_name: str = "CourseMaster",
    ):
        """Initialize Gmail API service.

        Args:
            credentials_path: Path to service account JSON file
            sender_address: Email address to send from (must be in Google Workspace)
            sender_name: Display name for sender
        """
        self.credentials_path = credentials_path
        self.sender_address = sender_address
        self.sender_name = sender_name
        self._service: GmailResource | None = None

        if not Path(credentials_path).exists():
            logger.warning(
                "email_credentials_not_found",
                path=credentials_path,
                message="Gmail API will not be available",
            )

    def _get_service(self) -> "GmailResource":
        """Get or create Gmail API service (lazy).

        Raises:
            FileNotFoundError: If credentials file doesn't exist
            ValueError: If credentials are invalid
        """
        if self._service is not None:
            return self._service

        credentials_file = Path(self.credentials_path)
        if not credentials_file.exists():
            msg = f"Credentials file not found: {self.credentials_path}"
            raise FileNotFoundError(msg)

        credentials = service_account.Credentials.from_service_account_file(
            str(credentials_file),
            scopes=GMAIL_SCOPES,
        )

        # Impersonate the sender through domain-wide delegation
        delegated_credentials = credentials.with_subject(self.sender_address)

        self._service = build(
            "gmail",
            "v1",
            credentials=delegated_credentials,
            cache_discovery=False,
        )

        logger.info("gmail_service_initialized", sender=self.sender_address)
        return self._service

    def _create_message(self, request: SendEmailRequest) -> dict:
        """Build a multipart/alternative message in Gmail API format.

        Returns:
            Dict with 'raw' key containing base64url encoded message
        """
        recipient = request.to
        message = MIMEMultipart("alternative")
        message["From"] = formataddr((self.sender_name, self.sender_address))
        message["To"] = formataddr((recipient.name or "", recipient.email))
        message["Subject"] = request.subject

        # Plain text first, then HTML (clients prefer the last part)
        message.attach(MIMEText(request.body_text, "plain", "utf-8"))
        message.attach(MIMEText(request.body_html, "html", "utf-8"))

        raw_message = base64.urlsafe_b64encode(message.as_bytes()).decode("utf-8")
        return {"raw": raw_message}

    def _send_blocking(self, message: dict) -> dict:
        service = self._get_service()
        return service.users().messages().send(userId="me", body=message).execute()

    async def send_email(self, request: SendEmailRequest) -> SendEmailResponse:
        """Send an email via Gmail API.

        The Google client is synchronous, so the call runs in a worker thread.
        """
        recipient = request.to.email
        try:
            result = await asyncio.to_thread(
                self._send_blocking, self._create_message(request)
            )

        except HttpError as e:
            logger.exception(
                "email_send_failed",
                status=e.resp.status,
                to=recipient,
                subject=request.subject[:50],
            )
            return SendEmailResponse(success=False, error=f"Gmail API error: {e!s}")

        except FileNotFoundError as e:
            logger.error("email_credentials_missing", error=str(e))
            return SendEmailResponse(
                success=False,
                error="Email service not configured: credentials file missing",
            )

        except Exception as e:
            logger.exception("email_send_unexpected_error", to=recipient)
            return SendEmailResponse(success=False, error=f"Unexpected error: {e!s}")

        logger.info(
            "email_sent",
            message_id=result.get("id"),
            to=recipient,
            subject=request.subject[:50],
        )
        return SendEmailResponse(
            success=True,
            message_id=result.get("id"),
            thread_id=result.get("threadId"),
        )

    async def send_notification(
        self,
        to: str,
        user_name: str,
        subject: str,
        rendered: tuple[str, str],
    ) -> SendEmailResponse:
        """Send a rendered ``(html, text)`` template to one student."""
        body_html, body_text = rendered
        return await self.send_email(
            SendEmailRequest(
                to=EmailRecipient(email=to, name=user_name),
                subject=subject,
                body_html=body_html,
                body_text=body_text,
            )
        )

    async def send_enrollment_email(
        self,
        to: str,
        user_name: str,
        course_title: str,
        course_url: str,
    ) -> SendEmailResponse:
        """Send enrollment confirmation."""
        return await self.send_notification(
            to,
            user_name,
            f"Enrolled in {course_title}",
            render_enrollment(user_name, course_title, course_url),
        )

    async def send_course_completion_email(
        self,
        to: str,
        user_name: str,
        course_title: str,
        course_url: str,
    ) -> SendEmailResponse:
        return await self.send_notification(
            to,
            user_name,
            f"Congratulations! You completed {course_title}",
            render_course_completion(user_name, course_title, course_url),
        )

    async def send_assignment_graded_email(
        self,
        to: str,
        user_name: str,
        course_title: str,
        assignment_title: str,
        score: float,
        max_score: float,
        percentage: int,
    ) -> SendEmailResponse:
        """Send assignment graded notice with the score."""
        return await self.send_notification(
            to,
            user_name,
            f"Assignment Graded: {assignment_title}",
            render_assignment_graded(
                user_name, course_title, assignment_title, score, max_score, percentage
            ),
        )
