"""Domain error taxonomy shared by every engine component.

Every expected failure is a ``DomainError`` subclass carrying a stable
``code`` and the HTTP status the adapter layer answers with. Component
modules derive their concrete errors from the category classes below.
"""

from typing import Any

from fastapi import status


class DomainError(Exception):
    """Base engine error."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, code: str = "domain_error"):
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def data(self) -> Any:
        """Payload returned alongside the error, if any."""
        return None


class ValidationFailureError(DomainError):
    """Malformed input (field level)."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str, code: str = "validation_failure"):
        super().__init__(message, code)


class NotFoundError(DomainError):
    """Referenced entity is missing."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str, code: str = "not_found"):
        super().__init__(message, code)


class ConflictError(DomainError):
    """Uniqueness violation. May carry the record that already exists."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, code: str = "conflict", existing: Any = None):
        super().__init__(message, code)
        self.existing = existing

    @property
    def data(self) -> Any:
        return self.existing


class ForbiddenError(DomainError):
    """Ownership or role check failed."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Forbidden", code: str = "forbidden"):
        super().__init__(message, code)


class PreconditionFailedError(DomainError):
    """Valid input that the current state does not allow."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, code: str = "precondition_failed"):
        super().__init__(message, code)


class ServiceUnavailableError(DomainError):
    """A required backing service is not reachable."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: str = "Service temporarily unavailable. Please try again later.",
        code: str = "service_unavailable",
    ):
        super().__init__(message, code)


class ConcurrentUpdateError(ServiceUnavailableError):
    """Compare-and-set retries exhausted under contention."""

    def __init__(self, entity: str):
        super().__init__(
            f"Too many concurrent updates to {entity}. Please try again.",
            "concurrent_update",
        )
