"""Request middleware for log context and access logging."""

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from coursemaster.core.context import clear_request_context, new_request_context


logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
TRACEPARENT_HEADER = "traceparent"
USER_ID_HEADER = "X-User-Id"


def trace_id_from_traceparent(traceparent: str | None) -> str | None:
    """Trace ID of a W3C ``traceparent`` (version-trace-parent-flags)."""
    if not traceparent:
        return None
    parts = traceparent.split("-")
    if len(parts) != 4 or not parts[1]:  # noqa: PLR2004
        return None
    return parts[1]


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request_id/trace_id for logging and writes one access log line.

    The request ID is echoed back in ``X-Request-ID``. The access line
    carries the caller from ``X-User-Id`` because identity is bound later,
    inside the endpoint's dependency scope.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.log_requests = log_requests
        self.exclude_paths = tuple(exclude_paths or ("/health",))

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        started = time.perf_counter()
        request_id = new_request_context(
            request_id=request.headers.get(REQUEST_ID_HEADER),
            trace_id=trace_id_from_traceparent(request.headers.get(TRACEPARENT_HEADER)),
        )
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                duration_ms=self._elapsed_ms(started),
            )
            raise
        else:
            if self.log_requests and not request.url.path.startswith(
                self.exclude_paths
            ):
                log = logger.warning if response.status_code >= 400 else logger.info
                log(
                    "request_completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    caller=request.headers.get(USER_ID_HEADER),
                    duration_ms=self._elapsed_ms(started),
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_request_context()

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 2)
