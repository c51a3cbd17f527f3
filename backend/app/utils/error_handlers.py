"""
Centralized error handling and user-friendly error messages.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Validation error."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class UnauthorizedError(AppError):
    """Unauthorized access error."""
    def __init__(self, message: str = "Unauthorized access", details: dict | None = None):
        super().__init__(message, status_code=401, details=details)


class PaymentVerificationError(AppError):
    """On-chain payment could not be verified."""
    def __init__(self, message: str = "Payment verification failed", details: dict | None = None):
        super().__init__(message, status_code=402, details=details)


class ForbiddenError(AppError):
    """Forbidden access error."""
    def __init__(self, message: str = "Access forbidden", details: dict | None = None):
        super().__init__(message, status_code=403, details=details)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Resource not found", details: dict | None = None):
        super().__init__(message, status_code=404, details=details)


class ConflictError(AppError):
    """Uniqueness or state-transition conflict."""
    def __init__(self, message: str = "Conflicting request", details: dict | None = None):
        super().__init__(message, status_code=409, details=details)


class DatabaseError(AppError):
    """Database error."""
    def __init__(self, message: str = "Database operation failed", details: dict | None = None):
        super().__init__(message, status_code=500, details=details)


# User-friendly error messages
ERROR_MESSAGES = {
    # Authentication
    "invalid_credentials": "Invalid email or password. Please try again.",
    "email_exists": "An account with this email already exists. Please login instead.",
    "username_exists": "This username is already taken.",
    "weak_password": "Password must be at least 6 characters long.",
    "no_token": "No token provided",
    "invalid_token": "Invalid token",

    # Jobs
    "job_not_found": "Job posting not found or has been removed.",
    "job_closed": "This job posting is no longer accepting applications.",
    "job_payment_locked": "Payment fields can only be changed through payment verification.",
    "already_applied": "You have already applied to this job.",

    # Applications
    "application_not_found": "Application not found. It may have been withdrawn.",

    # Connections
    "connection_not_found": "Connection request not found.",
    "connection_exists": "A connection with this user already exists.",
    "self_connection": "You cannot connect with yourself.",

    # Payments
    "payment_not_found": "Payment not found.",
    "tx_already_used": "This transaction has already been used.",
    "job_already_paid": "This job has already been paid for.",
    "insufficient_fee": "Payment amount is below the platform fee.",

    # General
    "user_not_found": "User not found.",
    "post_not_found": "Post not found.",
    "forbidden": "You don't have permission to access this resource.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def handle_database_error(error: Exception, operation: str = "") -> AppError:
    """Map a database exception to an AppError with a user-friendly message."""
    logger.error("Database error during %s: %s", operation, error)

    error_str = str(error).lower()

    # Detect specific DB errors
    if isinstance(error, IntegrityError) and ("duplicate" in error_str or "unique" in error_str):
        return ConflictError("This record already exists. Please check your input.")

    if "foreign key" in error_str:
        return ValidationError("Invalid reference. The related record may not exist.")

    if isinstance(error, OperationalError):
        return AppError(get_error_message("database_error"), status_code=503)

    return DatabaseError(get_error_message("server_error"))


def create_error_response(
    status_code: int,
    message: str,
    details: dict | None = None
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "success": False,
        "error": message,
    }

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the JSON error envelope to every error path of the app."""

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return create_error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return create_error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(OperationalError)
    async def database_operational_error_handler(request: Request, exc: OperationalError):
        logger.error("Database connection error: %s", exc)
        return create_error_response(503, get_error_message("database_error"))

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error: %s", exc)
        return create_error_response(500, get_error_message("server_error"))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        logger.warning("Value error on %s: %s", request.url.path, exc)
        return create_error_response(400, str(exc) or get_error_message("validation_error"))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return create_error_response(500, get_error_message("server_error"))
