"""Centralized error handling for the presentation layer."""

from fastapi import Request
from fastapi.responses import JSONResponse

from ..domain.exceptions import (
    BadRequestError,
    ConflictError,
    DomainError,
    NotFoundError,
)
from .problem_details import ProblemDetail, ProblemDetailFactory


def problem_for_domain_error(error: DomainError, instance: str) -> ProblemDetail:
    """Map a domain error family onto its problem detail."""
    if isinstance(error, NotFoundError):
        return ProblemDetailFactory.not_found(
            resource_type=error.resource_type,
            detail=str(error),
            instance=instance,
        )
    if isinstance(error, ConflictError):
        return ProblemDetailFactory.resource_already_exists(
            resource_type=error.resource_type,
            detail=str(error),
            instance=instance,
            conflicting_field=error.conflicting_field,
        )
    if isinstance(error, BadRequestError):
        return ProblemDetailFactory.bad_request(detail=str(error), instance=instance)
    return ProblemDetailFactory.internal_server_error(
        detail="An unexpected error occurred. Please try again.",
        instance=instance,
    )


def handle_domain_error(error: DomainError, request: Request) -> JSONResponse:
    """Convert domain errors to appropriate HTTP responses."""
    problem = problem_for_domain_error(error, str(request.url.path))
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
    )


def field_errors_from_request_validation(
    errors: list[dict],
) -> list[dict[str, str]]:
    """Flatten FastAPI request validation errors into field/code/message."""
    field_errors = []
    for error in errors:
        field_name = ".".join(
            str(loc) for loc in error["loc"] if loc not in ("body", "query", "path")
        )
        field_errors.append(
            {
                "field": field_name or "unknown",
                "code": error["type"],
                "message": error["msg"],
            }
        )
    return field_errors
