from typing import Any, Mapping, Optional


class NutriFlowError(Exception):
    """Base class for errors raised by services and mapped to HTTP responses.

    Attributes:
        message: human-readable message, returned as the ``error`` field
        details: optional mapping with extra context (field errors, quota info)
        code: optional machine-readable error code
        http_status: suggested HTTP status code for handlers
    """

    http_status = 500
    default_message = "Internal server error"
    default_code = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
        code: Optional[str] = None,
    ):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code or self.default_code

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"error": self.message}
        if self.code:
            payload["code"] = self.code
        if self.details:
            payload["details"] = dict(self.details)
        return payload

    def __str__(self) -> str:
        return self.message


class ServiceValidationError(NutriFlowError):
    """Raised when input data is invalid or a precondition for a service call is not met."""

    http_status = 400
    default_message = "Invalid input"
    default_code = "SERVICE_VALIDATION_ERROR"


class UnauthorizedError(NutriFlowError):
    """Raised when authentication fails (missing, invalid or expired credentials)."""

    http_status = 401
    default_message = "Unauthorized"
    default_code = "UNAUTHORIZED"


class ForbiddenError(NutriFlowError):
    """Raised when the caller is authenticated but not allowed, e.g. plan limits."""

    http_status = 403
    default_message = "Forbidden"
    default_code = "FORBIDDEN"


class NotFoundError(NutriFlowError):
    """Raised when a requested resource was not found (or belongs to another tenant)."""

    http_status = 404
    default_message = "Not found"
    default_code = "NOT_FOUND"


class RequestTimeoutError(NutriFlowError):
    """Raised when an upstream call took too long."""

    http_status = 408
    default_message = "Request timed out"
    default_code = "TIMEOUT"


class ConflictError(NutriFlowError):
    """Raised when a resource conflict occurs (e.g., duplicate entry)."""

    http_status = 409
    default_message = "Conflict"
    default_code = "CONFLICT"


class ExternalServiceError(NutriFlowError):
    """Raised when a hosted dependency (Stripe, Groq, storage) is unavailable."""

    http_status = 503
    default_message = "Service temporarily unavailable"
    default_code = "SERVICE_UNAVAILABLE"
