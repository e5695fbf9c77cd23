"""
Dispatch errors and the handlers that render them.

Every failure reaches the client as the same envelope:

    {"error_code": ..., "message": ..., "details": {...}}

Error codes are stable, so a client can tell an availability conflict (which
a dispatcher may override) apart from a lost storage race (which is safe to
retry) and from validation and lookup failures.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# Codes for HTTPExceptions raised by the framework itself (unknown route, wrong method)
HTTP_ERROR_CODES = {
    400: "ERR_BAD_REQUEST",
    401: "ERR_UNAUTHORIZED",
    403: "ERR_FORBIDDEN",
    404: "ERR_NOT_FOUND",
    405: "ERR_METHOD_NOT_ALLOWED",
    409: "ERR_CONFLICT",
}


class AppException(Exception):
    """Base class: carries everything the error envelope needs."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ResourceNotFoundError(AppException):
    """A load, driver, vehicle, carrier or customer id that does not exist."""

    def __init__(self, resource: str, resource_id: Any = None):
        suffix = f" {resource_id}" if resource_id is not None else ""
        super().__init__(
            message=f"{resource}{suffix} not found",
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id},
        )


class InvalidTransitionError(AppException):
    """The requested status is not reachable from the current one."""

    def __init__(self, current_status: str, target_status: str, reason: str = None):
        super().__init__(
            message=reason or f"Cannot transition from {current_status} to {target_status}",
            error_code="ERR_TRANSITION_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"current_status": current_status, "target_status": target_status},
        )


class MissingRequiredPayloadError(AppException):
    """A transition needs payload fields that were not supplied (BROKERED without carrier_id)."""

    def __init__(self, target_status: str, missing_fields: List[str]):
        super().__init__(
            message=f"Transition to {target_status} requires: {', '.join(missing_fields)}",
            error_code="ERR_PAYLOAD_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"target_status": target_status, "missing_fields": missing_fields},
        )


class AssignmentConflictError(AppException):
    """
    The candidate driver is already committed to an overlapping load.

    The only dispatch error expected during normal operation, and the only one
    marked overridable.
    """

    def __init__(self, conflicts: List[Dict[str, Any]], resource: str = "Driver"):
        super().__init__(
            message=f"{resource} has conflicting loads",
            error_code="ERR_CONFLICT_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"conflicts": conflicts, "overridable": True},
        )
        self.conflicts = conflicts


class DispatchValidationError(AppException):
    """Caller errors: cross-carrier resources, self team pairing, bad ranges, inactive carriers."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION_001",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )


class StorageConflictError(AppException):
    """Another writer changed the load first. Raised only after retries run out."""

    def __init__(self, load_id: Any = None):
        super().__init__(
            message="Load was modified concurrently, retry the operation",
            error_code="ERR_STORAGE_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"load_id": load_id, "retryable": True},
        )


class AuthenticationError(AppException):
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message=message, error_code="ERR_AUTH_001", status_code=status.HTTP_401_UNAUTHORIZED)


class InsufficientPermissionsError(AppException):
    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message, error_code="ERR_PERM_001", status_code=status.HTTP_403_FORBIDDEN, details=details
        )


def _envelope(
    status_code: int,
    error_code: str,
    message: Any,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error_code": error_code, "message": message, "details": details or {}},
        headers=headers,
    )


def _correlation_id(request: Request) -> Optional[str]:
    return getattr(request.state, "correlation_id", None)


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.info(
        "%s %s failed with %s: %s [correlation_id=%s]",
        request.method, request.url.path, exc.error_code, exc.message, _correlation_id(request),
    )
    return _envelope(exc.status_code, exc.error_code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    error_code = HTTP_ERROR_CODES.get(exc.status_code, "ERR_UNKNOWN")
    return _envelope(exc.status_code, error_code, exc.detail, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and query parameters."""
    return _envelope(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "ERR_VALIDATION",
        "Validation error",
        {"errors": exc.errors()},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled %s on %s %s [correlation_id=%s]",
        type(exc).__name__, request.method, request.url.path, _correlation_id(request),
    )
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "ERR_INTERNAL_SERVER", "An internal server error occurred"
    )
