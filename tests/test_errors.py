"""
Tests for the service error hierarchy exported by the ``app`` package.
"""

import pytest

import app
from app import (
    ConflictError,
    ExternalServiceError,
    ForbiddenError,
    NotFoundError,
    NutriFlowError,
    RequestTimeoutError,
    ServiceValidationError,
    UnauthorizedError,
)


@pytest.mark.parametrize(
    "error, status",
    [
        (NutriFlowError, 500),
        (ServiceValidationError, 400),
        (UnauthorizedError, 401),
        (ForbiddenError, 403),
        (NotFoundError, 404),
        (RequestTimeoutError, 408),
        (ConflictError, 409),
        (ExternalServiceError, 503),
    ],
)
def test_exported_errors_carry_their_status(error, status):
    assert issubclass(error, NutriFlowError)
    assert error.http_status == status
    assert error.__name__ in app.__all__


def test_to_dict_includes_details_only_when_present():
    assert NotFoundError("Client non trouvé").to_dict() == {
        "error": "Client non trouvé",
        "code": NotFoundError.default_code,
    }
    error = ServiceValidationError("Invalid", details={"years": "too small"})
    assert error.to_dict()["details"] == {"years": "too small"}
