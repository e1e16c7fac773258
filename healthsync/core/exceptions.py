"""
Custom application exceptions.
"""
from typing import Any, Optional


class HealthSyncException(Exception):
    """Base exception for the health sync service."""
    pass


class UnauthorizedError(HealthSyncException):
    """Raised when the caller is not authenticated."""
    pass


class ValidationError(HealthSyncException):
    """Raised when a request body is missing a field or carries a bad value."""
    pass


class CredentialNotFoundError(HealthSyncException):
    """Raised when the caller has no stored record for a service."""

    def __init__(self, service: str):
        super().__init__(f"No configuration found for {service}")
        self.service = service


class ConfigurationError(HealthSyncException):
    """Raised when a provider app registration or webhook target is incomplete."""
    pass


class UpstreamServiceError(HealthSyncException):
    """Raised when an external provider answers with a non-2xx status or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class StorageError(HealthSyncException):
    """Raised when a database read or write fails."""
    pass


class InvalidStateError(HealthSyncException):
    """Raised when an OAuth state token fails verification."""
    pass
