# Core infrastructure
from coursemaster.core.context import (
    bind_identity,
    clear_request_context,
    get_request_id,
    new_request_context,
)
from coursemaster.core.exceptions import (
    ConflictError,
    DomainError,
    ForbiddenError,
    NotFoundError,
    PreconditionFailedError,
    ServiceUnavailableError,
    ValidationFailureError,
)
from coursemaster.core.logging import configure_structlog, get_logger
from coursemaster.core.middleware import RequestContextMiddleware


__all__ = [
    "ConflictError",
    "DomainError",
    "ForbiddenError",
    "NotFoundError",
    "PreconditionFailedError",
    "RequestContextMiddleware",
    "ServiceUnavailableError",
    "ValidationFailureError",
    "bind_identity",
    "clear_request_context",
    "configure_structlog",
    "get_logger",
    "get_request_id",
    "new_request_context",
]
