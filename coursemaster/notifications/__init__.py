"""Background student notifications (enrollment, completion, grading)."""

from .service import NotificationService


__all__ = ["NotificationService"]
