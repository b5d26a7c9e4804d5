"""
Service error kinds.

Services raise these; the HTTP layer maps each kind to a status code. None of
them carries transport details.
"""


class ServiceError(Exception):
    """Base class for errors raised by the service and scoping layers."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ServiceError):
    """Malformed input the caller can fix (missing receipt, bad amount)."""


class AuthorizationError(ServiceError):
    """The effective scope forbids the operation. Never describes out-of-scope rows."""


class MissingFilterError(AuthorizationError):
    """A non-unique operation was issued without any filter at all."""


class NotFoundError(ServiceError):
    """
    Record absent within the caller's scope.

    Raised the same way whether the row does not exist or exists in a branch
    the caller cannot see.
    """

    def __init__(self, resource: str = "Resource", details: dict | None = None):
        super().__init__(f"{resource} not found", details)
        self.resource = resource


class ConflictError(ServiceError):
    """Duplicate receipt, double repayment, sale of an already-sold unit."""


class ConfigurationError(ServiceError):
    """The resource catalog and the storage schema disagree. Fatal at startup."""
