"""
NutriFlow application core: settings and the service error hierarchy.

Every error a service raises derives from ``NutriFlowError`` and carries the
HTTP status it is rendered with.
"""

from app.config import settings
from app.exceptions import (
    NutriFlowError,
    ServiceValidationError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    RequestTimeoutError,
    ConflictError,
    ExternalServiceError,
)

__all__ = [
    "settings",
    "NutriFlowError",
    "ServiceValidationError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "RequestTimeoutError",
    "ConflictError",
    "ExternalServiceError",
]
