"""Custom exceptions for the JobLine engine."""


class JobLineException(Exception):
    """Base exception for JobLine."""

    pass


class ValidationError(JobLineException):
    """Raised when validation fails."""

    pass


class NotFoundError(JobLineException):
    """Raised when a resource is not found."""

    pass


class DatabaseError(JobLineException):
    """Raised when a database operation fails."""

    pass


class ServiceError(JobLineException):
    """Raised when a service operation fails."""

    pass


class ConfigurationError(JobLineException):
    """Raised when configuration is invalid."""

    pass


class InvalidTransitionError(ValidationError):
    """Raised when a disallowed state transition is attempted."""

    pass


class FeeAlreadySettledError(ServiceError):
    """Raised when a callout fee is marked paid a second time."""

    pass
