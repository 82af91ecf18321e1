"""Per-request log context.

Values bound here land on every structlog event emitted while the request
is handled (``merge_contextvars`` runs first in the processor chain).
"""

from uuid import UUID, uuid4

from structlog.contextvars import (
    bind_contextvars,
    clear_contextvars,
    get_contextvars,
)


def new_request_context(
    request_id: str | None = None,
    trace_id: str | None = None,
) -> str:
    """Start a fresh context for an incoming request.

    Returns:
        The request ID in effect (generated when the caller sent none).
    """
    clear_contextvars()
    rid = request_id or str(uuid4())
    bind_contextvars(request_id=rid)
    if trace_id:
        bind_contextvars(trace_id=trace_id)
    return rid


def bind_identity(user_id: UUID, role: str) -> None:
    """Attach the caller resolved from the identity headers."""
    bind_contextvars(user_id=str(user_id), user_role=role)


def get_request_id() -> str | None:
    return get_contextvars().get("request_id")


def clear_request_context() -> None:
    clear_contextvars()
