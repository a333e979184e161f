"""
Custom exceptions and error handlers for consistent error responses.

Every ledger and complaint error is a typed AppException carrying a stable
error code, so callers decide on retries. Global handlers render them as
{"error_code", "message", "details"} bodies.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(AppException):
    """Raised when input is malformed or missing."""

    def __init__(self, message: str, details: Dict[str, Any] = None, error_code: str = "ERR_VALIDATION_001"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details
        )


class InvalidMethodError(ValidationError):
    """Raised when a payment method is not recognized."""

    def __init__(self, method: Any):
        super().__init__(
            message=f"Unsupported payment method: {method!r}",
            details={"method": method},
            error_code="ERR_VALIDATION_002"
        )


class NotFoundError(AppException):
    """Raised when a referenced entity does not exist."""

    def __init__(self, resource: str, resource_id: Any = None, error_code: str = "ERR_NOT_FOUND_001"):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class UnknownTransactionError(NotFoundError):
    """Raised when a payment transaction id does not exist."""

    def __init__(self, transaction_id: Any):
        super().__init__("Payment transaction", transaction_id, error_code="ERR_NOT_FOUND_002")


class DuplicateResourceError(AppException):
    """Raised when a unique attribute is already taken."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_CONFLICT_001",
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class ItemAlreadySettledError(AppException):
    """Raised when a due item is already paid or claimed by another transaction."""

    def __init__(self, period_id: int, item_ids: Iterable[str]):
        item_ids = sorted(item_ids)
        super().__init__(
            message=f"Due items already settled or claimed: {', '.join(item_ids)}",
            error_code="ERR_LEDGER_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"period_id": period_id, "item_ids": item_ids}
        )


class EmptySelectionError(AppException):
    """Raised when no eligible due items match a selection."""

    def __init__(self, period_id: int):
        super().__init__(
            message=f"No pending due items to settle in period {period_id}",
            error_code="ERR_LEDGER_002",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"period_id": period_id}
        )


class InvalidStateError(AppException):
    """Raised when a transaction is not in a state that allows the operation."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_LEDGER_003",
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class TransactionNotCommittedError(AppException):
    """Raised when a receipt is requested for an uncommitted transaction."""

    def __init__(self, transaction_id: int, current_status: Optional[str] = None):
        super().__init__(
            message=f"Payment transaction {transaction_id} is not committed",
            error_code="ERR_LEDGER_004",
            status_code=status.HTTP_409_CONFLICT,
            details={"transaction_id": transaction_id, "status": current_status}
        )


class InvalidTransitionError(AppException):
    """Raised when a complaint cannot move to the requested state."""

    def __init__(self, complaint_id: int, current_status: str, attempted: str):
        super().__init__(
            message=f"Complaint {complaint_id} cannot {attempted} from status '{current_status}'",
            error_code="ERR_COMPLAINT_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"complaint_id": complaint_id, "status": current_status, "attempted": attempted}
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
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_errors(exc.errors())
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


def jsonable_errors(errors) -> list:
    # pydantic puts the raw exception under ctx["error"]
    cleaned = []
    for error in errors:
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        error.pop("input", None)
        error.pop("url", None)
        cleaned.append(error)
    return cleaned
