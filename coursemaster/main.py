"""CourseMaster API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coursemaster.assignments.router import router as assignments_router
from coursemaster.assignments.router import submissions_router
from coursemaster.assignments.service import AssignmentService
from coursemaster.auth.service import UserService
from coursemaster.batches.router import router as batches_router
from coursemaster.batches.service import BatchService
from coursemaster.config import Settings, get_settings
from coursemaster.core.context import get_request_id
from coursemaster.core.database import (
    STORAGE_UNAVAILABLE_ERRORS,
    init_async_cassandra,
    shutdown_async_cassandra,
)
from coursemaster.core.exceptions import DomainError, ServiceUnavailableError
from coursemaster.core.logging import configure_structlog, get_logger
from coursemaster.core.middleware import RequestContextMiddleware
from coursemaster.courses.router import router as courses_router
from coursemaster.courses.service import CourseService
from coursemaster.email.service import EmailService
from coursemaster.enrollments.router import router as enrollments_router
from coursemaster.enrollments.service import EnrollmentService
from coursemaster.health.router import router as health_router
from coursemaster.notifications.service import NotificationService
from coursemaster.progress.router import router as progress_router
from coursemaster.progress.service import ProgressService
from coursemaster.quizzes.router import router as quizzes_router
from coursemaster.quizzes.service import QuizService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def init_services(app: FastAPI, session: Any, settings: Settings) -> None:
    """Build the engine services in dependency order onto ``app.state``."""
    keyspace = settings.cassandra_keyspace

    user_service = UserService(session=session, keyspace=keyspace)
    course_service = CourseService(session=session, keyspace=keyspace)
    batch_service = BatchService(
        session=session,
        keyspace=keyspace,
        course_service=course_service,
        max_retries=settings.cas_max_retries,
    )

    email_service = None
    if settings.email_configured:
        email_service = EmailService(
            credentials_path=settings.email_credentials_path,
            sender_address=settings.email_sender_address,
            sender_name=settings.email_sender_name,
        )
        logger.info("email_service_initialized", sender=settings.email_sender_address)

    notification_service = NotificationService(
        user_service=user_service,
        email_service=email_service,
        course_url_base=settings.email_course_url_base,
    )
    enrollment_service = EnrollmentService(
        session=session,
        keyspace=keyspace,
        course_service=course_service,
        batch_service=batch_service,
        notification_service=notification_service,
    )
    progress_service = ProgressService(
        session=session,
        keyspace=keyspace,
        course_service=course_service,
        enrollment_service=enrollment_service,
        max_retries=settings.cas_max_retries,
    )
    quiz_service = QuizService(
        session=session,
        keyspace=keyspace,
        course_service=course_service,
        enrollment_service=enrollment_service,
    )
    assignment_service = AssignmentService(
        session=session,
        keyspace=keyspace,
        course_service=course_service,
        enrollment_service=enrollment_service,
        notification_service=notification_service,
    )

    app.state.cassandra_session = session
    app.state.user_service = user_service
    app.state.course_service = course_service
    app.state.batch_service = batch_service
    app.state.email_service = email_service
    app.state.notification_service = notification_service
    app.state.enrollment_service = enrollment_service
    app.state.progress_service = progress_service
    app.state.quiz_service = quiz_service
    app.state.assignment_service = assignment_service

    logger.info(
        "services_initialized",
        email_enabled=email_service is not None,
        cas_max_retries=settings.cas_max_retries,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    try:
        session = await init_async_cassandra()
        logger.info("cassandra_initialized")
        init_services(app, session, settings)
    except Exception as e:
        # Health endpoints keep answering; /health/ready reports not_ready
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    logger.info("shutting_down_application")
    notification_service = getattr(app.state, "notification_service", None)
    if notification_service is not None:
        await notification_service.drain(settings.notification_drain_timeout)
    await shutdown_async_cassandra()


def _get_request_id_safe(request: Request) -> str | None:
    """Get request_id from request state or context."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return get_request_id()


def _error_body(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    data: Any = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "error": True,
        "code": code,
        "message": message,
        "status_code": status_code,
        "request_id": _get_request_id_safe(request),
    }
    if data is not None:
        to_dict = getattr(data, "to_dict", None)
        body["data"] = jsonable_encoder(to_dict() if callable(to_dict) else data)
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """Install the global exception handlers (never expose stack traces)."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> ORJSONResponse:
        """Map engine errors to their HTTP status, carrying any payload."""
        log_method = (
            logger.error
            if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
            else logger.info
        )
        log_method(
            "domain_error",
            code=exc.code,
            status_code=exc.status_code,
            error_message=exc.message,
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                request, exc.status_code, exc.code, exc.message, exc.data
            ),
        )

    async def storage_unavailable_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Database unreachable or timed out."""
        logger.error(
            "storage_unavailable",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        error = ServiceUnavailableError()
        return ORJSONResponse(
            status_code=error.status_code,
            content=_error_body(request, error.status_code, error.code, error.message),
        )

    for error_type in STORAGE_UNAVAILABLE_ERRORS:
        app.add_exception_handler(error_type, storage_unavailable_handler)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                request,
                exc.status_code,
                "http_error",
                str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        body = _error_body(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "validation_failure",
            "Validation error",
        )
        body["details"] = [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", [])),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=body
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Details are logged internally; the client gets a generic message.
        """
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                request,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "internal_error",
                "An unexpected error occurred. Please try again later.",
            ),
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug=False keeps Starlette's ServerErrorMiddleware from rendering
    # tracebacks; the handlers below log full details instead.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="CourseMaster - enrollment, progress and assessment API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(courses_router)
    app.include_router(enrollments_router)
    app.include_router(progress_router)
    app.include_router(batches_router)
    app.include_router(quizzes_router)
    app.include_router(assignments_router)
    app.include_router(submissions_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "CourseMaster API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
