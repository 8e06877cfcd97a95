from __future__ import annotations

"""Domain-specific exception hierarchy for the IOTA estimator.

The scoring model itself degrades to zero/empty results instead of raising;
these errors cover the service layer around it (reference data lifecycle,
configuration, request validation beyond pydantic).
"""

from typing import Any

__all__ = [
    "DomainError",
    "ValidationError",
    "ReferenceDataError",
    "ReferenceDataUnavailableError",
    "ConfigurationError",
]


class DomainError(Exception):
    """Base class for recoverable domain-level errors."""

    status_code: int = 400
    error_code: str = "domain_error"
    default_message: str = "Domain error"

    def __init__(
        self,
        message: str | None = None,
        *,
        detail: Any | None = None,
        status_code: int | None = None,
    ) -> None:
        final_message = message or self.default_message
        super().__init__(final_message)
        self.message = final_message
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class ValidationError(DomainError, ValueError):
    """Raised when caller-provided data fails validation."""

    error_code = "validation_error"
    default_message = "Invalid input"
    status_code = 400


class ReferenceDataError(DomainError):
    """Raised when reference exports cannot be read."""

    error_code = "reference_data_error"
    status_code = 500
    default_message = "Reference data could not be loaded"


class ReferenceDataUnavailableError(ReferenceDataError):
    """Raised when scoring is requested before any reference data is loaded."""

    error_code = "reference_data_unavailable"
    status_code = 503
    default_message = "Reference data has not been loaded"


class ConfigurationError(DomainError):
    """Raised when server-side configuration is invalid or incomplete."""

    error_code = "configuration_error"
    status_code = 500
    default_message = "Invalid system configuration"
