"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging
from decimal import Decimal
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class TokenRevokedError(AppException):
    """Raised when token has been revoked."""

    def __init__(self):
        super().__init__(
            message="Token has been revoked",
            error_code="ERR_AUTH_002",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


# Settlement failures

class ParcelNotFoundError(ResourceNotFoundError):
    """Raised when a named parcel does not exist or is not assigned to the caller."""

    def __init__(self, parcel_id: int):
        super().__init__("Parcel", parcel_id)


class BelowMinimumError(AppException):
    """Raised when a cash-out amount is not positive or below the policy minimum."""

    def __init__(self, requested: Decimal, minimum: Decimal):
        super().__init__(
            message=f"Cash-out amount must be at least {minimum}",
            error_code="ERR_CASHOUT_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"requested": str(requested), "minimum": str(minimum)}
        )


class InvalidCashOutAmountError(AppException):
    """Raised when a cash-out amount is not a whole number of cents."""

    def __init__(self, requested):
        super().__init__(
            message="Cash-out amount must have at most 2 decimal places",
            error_code="ERR_CASHOUT_005",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"requested": str(requested)}
        )


class NoEarningsAvailableError(AppException):
    """Raised when the rider has no delivered parcel with outstanding commission."""

    def __init__(self, rider_id: int):
        super().__init__(
            message="No outstanding earnings available for cash-out",
            error_code="ERR_CASHOUT_002",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"rider_id": rider_id}
        )


class InsufficientEarningsError(AppException):
    """Raised when the requested amount exceeds the total outstanding balance."""

    def __init__(self, requested: Decimal, available: Decimal):
        super().__init__(
            message=f"Requested {requested} exceeds available earnings of {available}",
            error_code="ERR_CASHOUT_003",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"requested": str(requested), "available": str(available)}
        )


class SettlementConflictError(AppException):
    """Raised when a parcel balance changed between selection and write."""

    def __init__(self, parcel_id: int, attempts: int = 1):
        super().__init__(
            message="Earnings were modified concurrently, please retry",
            error_code="ERR_CASHOUT_004",
            status_code=status.HTTP_409_CONFLICT,
            details={"parcel_id": parcel_id, "attempts": attempts}
        )
        self.parcel_id = parcel_id


class StoreUnavailableError(AppException):
    """Raised when the parcel or ledger store fails."""

    def __init__(self, operation: str):
        super().__init__(
            message="Storage is temporarily unavailable",
            error_code="ERR_STORE_001",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"operation": operation}
        )


class InvalidDeliveryTransitionError(AppException):
    """Raised when a delivery status change is not an allowed edge."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            message=f"Cannot move parcel from {current} to {requested}",
            error_code="ERR_DELIVERY_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"current": current, "requested": requested}
        )


class ParcelNotDeletableError(AppException):
    """Raised when deleting a parcel that already left the pending state."""

    def __init__(self, parcel_id: int, current: str):
        super().__init__(
            message=f"Parcel {parcel_id} is {current} and can no longer be deleted",
            error_code="ERR_DELIVERY_002",
            status_code=status.HTTP_409_CONFLICT,
            details={"parcel_id": parcel_id, "current": current}
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": [
                    {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
                    for err in exc.errors()
                ]
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
