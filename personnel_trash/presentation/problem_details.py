"""RFC 7807 Problem Details for HTTP APIs."""

from typing import Any

from fastapi import status
from pydantic import BaseModel, Field

PROBLEM_TYPE_BASE = "https://personnel-trash.dev/problems"


class ErrorCodes:
    """Machine-readable error codes carried in problem details."""

    VALIDATION_FAILED = "validation_failed"
    RESOURCE_NOT_FOUND = "resource_not_found"
    RESOURCE_ALREADY_EXISTS = "resource_already_exists"
    OPERATION_NOT_ALLOWED = "operation_not_allowed"
    INTERNAL_ERROR = "internal_error"

    FIELD_REQUIRED = "field_required"
    FIELD_TOO_LONG = "field_too_long"
    FIELD_INVALID_FORMAT = "field_invalid_format"
    FIELD_INVALID_VALUE = "field_invalid_value"


class ProblemDetail(BaseModel):
    """Base problem detail document."""

    type: str = Field(description="URI identifying the problem type")
    title: str = Field(description="Short summary of the problem type")
    status: int = Field(description="HTTP status code")
    detail: str | None = Field(None, description="Explanation of this occurrence")
    instance: str | None = Field(None, description="Request path that failed")
    code: str | None = Field(None, description="Machine-readable error code")


class ValidationProblemDetail(ProblemDetail):
    errors: list[dict[str, Any]] = Field(
        default_factory=list, description="Per-field validation errors"
    )


class ConflictProblemDetail(ProblemDetail):
    resource_type: str | None = Field(None, description="Type of the resource")
    conflicting_field: str | None = Field(
        None, description="Field whose value caused the conflict"
    )


class NotFoundProblemDetail(ProblemDetail):
    resource_type: str | None = Field(None, description="Type of the resource")


class ProblemDetailFactory:
    """Builds the problem detail documents used across the API."""

    @staticmethod
    def validation_failed(
        detail: str,
        instance: str | None = None,
        field_errors: list[dict[str, Any]] | None = None,
    ) -> ValidationProblemDetail:
        return ValidationProblemDetail(
            type=f"{PROBLEM_TYPE_BASE}/validation-failed",
            title="Validation Failed",
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            instance=instance,
            code=ErrorCodes.VALIDATION_FAILED,
            errors=field_errors or [],
        )

    @staticmethod
    def not_found(
        resource_type: str,
        detail: str,
        instance: str | None = None,
    ) -> NotFoundProblemDetail:
        return NotFoundProblemDetail(
            type=f"{PROBLEM_TYPE_BASE}/not-found",
            title="Resource Not Found",
            status=status.HTTP_404_NOT_FOUND,
            detail=detail,
            instance=instance,
            code=ErrorCodes.RESOURCE_NOT_FOUND,
            resource_type=resource_type,
        )

    @staticmethod
    def resource_already_exists(
        resource_type: str,
        detail: str,
        instance: str | None = None,
        conflicting_field: str | None = None,
    ) -> ConflictProblemDetail:
        return ConflictProblemDetail(
            type=f"{PROBLEM_TYPE_BASE}/conflict",
            title="Resource Conflict",
            status=status.HTTP_409_CONFLICT,
            detail=detail,
            instance=instance,
            code=ErrorCodes.RESOURCE_ALREADY_EXISTS,
            resource_type=resource_type,
            conflicting_field=conflicting_field,
        )

    @staticmethod
    def bad_request(detail: str, instance: str | None = None) -> ProblemDetail:
        return ProblemDetail(
            type=f"{PROBLEM_TYPE_BASE}/bad-request",
            title="Operation Not Allowed",
            status=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            instance=instance,
            code=ErrorCodes.OPERATION_NOT_ALLOWED,
        )

    @staticmethod
    def internal_server_error(
        detail: str, instance: str | None = None
    ) -> ProblemDetail:
        return ProblemDetail(
            type=f"{PROBLEM_TYPE_BASE}/internal-error",
            title="Internal Server Error",
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            instance=instance,
            code=ErrorCodes.INTERNAL_ERROR,
        )
