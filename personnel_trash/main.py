import socket
from contextlib import asynccontextmanager
from typing import Final

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .config import settings
from .domain.exceptions import DomainError
from .infrastructure.database.database import get_main_engine, init_db
from .logging_config import get_logger, setup_logging
from .logging_utils import log_system_info
from .middleware import log_requests_middleware
from .presentation.api_routes import HealthResponse, api_router
from .presentation.error_handlers import (
    field_errors_from_request_validation,
    handle_domain_error,
)
from .presentation.problem_details import ProblemDetailFactory
from .telemetry import setup_telemetry


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging()
    logger = get_logger(__name__)

    # Initialize database schema once at startup
    init_db(get_main_engine())
    logger.info("Database initialized successfully")

    log_system_info(socket.gethostname(), settings.database_url, settings.debug)

    yield

    logger.info("Application shutdown completed")


app: Final = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
    description="""
**Personnel Trash** - recycle bin for instructor personnel records.

Deleting an instructor, passport, visa, contract or contract extension moves a
full snapshot of it to the trash instead of losing it. Deleting an instructor
also captures the passports, visas, contracts and extensions it owns.

## Restore

Restoring an entry re-creates the record under its original id, together with
its whole sub-tree for instructors. A restore either succeeds completely or
changes nothing, and each entry can be restored exactly once.

## Users

The acting user is part of the path (`/users/{user}/...`). An optional
`X-User-Name` header carries a display name for the audit trail.
    """.strip(),
    openapi_tags=[
        {
            "name": "trash",
            "description": "Browse, restore and purge trash entries",
        },
        {
            "name": "users",
            "description": "Operations attributed to a specific user",
        },
    ],
)

# Setup OpenTelemetry tracing
setup_telemetry(app)

app.middleware("http")(log_requests_middleware)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Global handler for domain-specific errors."""
    logger = get_logger(__name__)
    logger.warning(
        "Domain error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
    )
    return handle_domain_error(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Global handler for Pydantic validation errors."""
    logger = get_logger(__name__)
    logger.warning(
        "Request validation error occurred",
        errors=exc.errors(),
        path=request.url.path,
        method=request.method,
    )
    problem = ProblemDetailFactory.validation_failed(
        detail="Request validation failed",
        instance=str(request.url.path),
        field_errors=field_errors_from_request_validation(list(exc.errors())),
    )
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Global handler for database errors."""
    logger = get_logger(__name__)
    logger.error(
        "Database error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    if isinstance(exc, IntegrityError):
        problem = ProblemDetailFactory.resource_already_exists(
            resource_type="resource",
            detail="The change conflicts with existing data",
            instance=str(request.url.path),
        )
    else:
        problem = ProblemDetailFactory.internal_server_error(
            detail="A database error occurred. Please try again.",
            instance=str(request.url.path),
        )
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Global handler for unexpected errors."""
    logger = get_logger(__name__)
    logger.error(
        "Unexpected error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    problem = ProblemDetailFactory.internal_server_error(
        detail="An unexpected error occurred. Please try again.",
        instance=str(request.url.path),
    )
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
    )


@app.get("/api/v1/health", response_model=HealthResponse, tags=["trash"])
async def health() -> HealthResponse:
    return HealthResponse(status="ok", app=settings.app_name, version=settings.version)


app.include_router(api_router)
