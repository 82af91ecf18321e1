"""Pydantic schemas for outgoing notification email."""

from pydantic import BaseModel, EmailStr, Field


class EmailRecipient(BaseModel):
    email: EmailStr
    name: str | None = None


class SendEmailRequest(BaseModel):
    """One notification message to one student."""

    to: EmailRecipient
    subject: str = Field(..., min_length=1, max_length=998)
    body_html: str = Field(..., min_length=1)
    body_text: str = Field(..., min_length=1, description="Plain text alternative")


class SendEmailResponse(BaseModel):
    """Outcome of a send attempt. Failures are reported, never raised."""

    success: bool
    message_id: str | None = Field(None, description="Gmail message ID")
    thread_id: str | None = Field(None, description="Gmail thread ID")
    error: str | None = None
