"""Exceptions raised by servicewatch."""


class ServiceWatchError(Exception):
    """Base class for servicewatch errors."""


class ConfigurationError(ServiceWatchError, ValueError):
    """An environment setting could not be parsed."""


class HealthCheckTimeoutError(ServiceWatchError, TimeoutError):
    """A health check did not complete within its timeout."""

    def __init__(self, message: str = "Health check timeout") -> None:
        super().__init__(message)


class HealthCheckCancelledError(ServiceWatchError):
    """A health check was cancelled by something other than the checker."""

    def __init__(self, message: str = "Health check cancelled") -> None:
        super().__init__(message)
