"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..schemas.common import Problem, Violation

logger = logging.getLogger(__name__)


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        # Create the problem details object
        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if self.detail:
            self.problem_details["detail"] = self.detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        # Add extensions
        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )


class ValidationError(ProblemDetailsException):
    """Exception for business-rule input validation errors."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        errors: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if errors:
            extensions["errors"] = errors

        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri="https://example.com/problems/validation-error",
            instance=instance,
            extensions=extensions,
        )


class AuthenticationError(ProblemDetailsException):
    """Exception for authentication errors."""

    def __init__(
        self,
        detail: str = "Authorization header missing",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=401,
            title="Authorization Required",
            detail=detail,
            type_uri="https://example.com/problems/authorization-required",
            instance=instance,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ProblemDetailsException):
    """Exception for ownership and role mismatches."""

    def __init__(
        self,
        detail: str = "Insufficient permissions to access this resource",
        required_permissions: Optional[list] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if required_permissions:
            extensions["required_permissions"] = required_permissions

        super().__init__(
            status_code=403,
            title="Access Forbidden",
            detail=detail,
            type_uri="https://example.com/problems/access-forbidden",
            instance=instance,
            extensions=extensions,
        )


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri="https://example.com/problems/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for resource conflict errors."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri="https://example.com/problems/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


class InternalServerError(ProblemDetailsException):
    """Exception for internal server errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred while processing the request",
        error_id: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not error_id:
            error_id = str(uuid.uuid4())

        extensions = {
            "error_id": error_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        super().__init__(
            status_code=500,
            title="Internal Server Error",
            detail=detail,
            type_uri="https://example.com/problems/internal-server-error",
            instance=instance,
            extensions=extensions,
        )


# Business logic exceptions

class TourUnavailableError(ConflictError):
    """Exception when a tour is inactive or closed for booking."""

    def __init__(self, tour_id: str, is_active: bool, is_available: bool):
        super().__init__(
            detail=f"Tour {tour_id} is not available for booking",
            conflicting_resource={
                "tour_id": tour_id,
                "is_active": is_active,
                "is_available": is_available,
            }
        )
        self.problem_details.update({
            "code": "TOUR_UNAVAILABLE",
            "retryable": False
        })


class DateUnavailableError(ConflictError):
    """Exception when a tour has no bookable spots on the requested date."""

    def __init__(self, tour_id: str, start_date: str):
        super().__init__(
            detail=f"Tour {tour_id} is not available on {start_date}",
            conflicting_resource={
                "tour_id": tour_id,
                "start_date": start_date,
            }
        )
        self.problem_details.update({
            "code": "DATE_UNAVAILABLE",
            "retryable": False
        })


class CapacityExceededError(ConflictError):
    """Exception when a booking asks for more spots than remain."""

    def __init__(
        self,
        tour_id: str,
        requested: int,
        spots_remaining: int,
        date_spots_remaining: Optional[int] = None,
    ):
        conflicting_resource = {
            "tour_id": tour_id,
            "requested": requested,
            "spots_remaining": spots_remaining,
        }
        if date_spots_remaining is not None:
            conflicting_resource["date_spots_remaining"] = date_spots_remaining

        super().__init__(
            detail=f"Tour {tour_id} has insufficient capacity. Requested: {requested}, Available: "
                   f"{min(spots_remaining, date_spots_remaining) if date_spots_remaining is not None else spots_remaining}",
            conflicting_resource=conflicting_resource
        )
        self.problem_details.update({
            "code": "CAPACITY_EXCEEDED",
            "retryable": False
        })


class InvalidStateError(ConflictError):
    """Exception for illegal booking status transitions."""

    def __init__(self, booking_id: str, current_status: str, target_status: str):
        super().__init__(
            detail=f"Booking {booking_id} cannot move from '{current_status}' to '{target_status}'",
            conflicting_resource={
                "booking_id": booking_id,
                "current_status": current_status,
                "target_status": target_status,
            }
        )
        self.problem_details.update({
            "code": "INVALID_STATE",
            "retryable": False
        })


class ConcurrentModificationError(ConflictError):
    """Exception when a versioned record changed underneath the current transaction."""

    def __init__(self, resource_type: str, resource_id: str, attempts: int):
        super().__init__(
            detail=f"The {resource_type} {resource_id} was modified concurrently; gave up after {attempts} attempts",
            conflicting_resource={
                "resource_type": resource_type,
                "resource_id": resource_id,
                "attempts": attempts,
            }
        )
        self.problem_details.update({
            "code": "CONCURRENT_MODIFICATION",
            "retryable": True
        })


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert FastAPI request validation failures into Problem Details with violations."""
    problem = Problem(
        type="https://example.com/problems/validation-error",
        title="Validation Error",
        status=422,
        detail="The request data failed validation",
        instance=str(request.url),
        violations=[
            Violation(
                path=".".join(str(part) for part in error.get("loc", ()) if part != "body"),
                message=error.get("msg", "Invalid value"),
            )
            for error in exc.errors()
        ],
    )

    return JSONResponse(status_code=422, content=problem.model_dump(mode="json"))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception",
        extra={"error_id": error_id, "path": request.url.path, "error": str(exc)},
        exc_info=exc,
    )

    problem_details = {
        "type": "https://example.com/problems/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "detail": "An unexpected error occurred while processing the request",
        "instance": str(request.url),
        "error_id": error_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
    )
