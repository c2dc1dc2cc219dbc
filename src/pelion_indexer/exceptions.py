"""
Custom exceptions for the webhook indexer.

Exception Hierarchy:
    IndexerError (base)
    ├── ConfigurationError - Missing or invalid environment configuration
    ├── UnsupportedMethodError - Webhook called with a method other than PUT
    ├── CallbackParseError - Missing or undecodable callback body
    └── TransportError - Request signing or HTTP transport failed
"""

from typing import Optional


class IndexerError(Exception):
    """
    Base exception for all indexer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(IndexerError):
    """
    Raised when required configuration is missing at startup.

    Example:
        >>> require_env("ELASTICSEARCH_DOMAIN")
        ConfigurationError: CRITICAL: Required environment variable 'ELASTICSEARCH_DOMAIN' is missing or empty
    """

    def __init__(self, message: str, variable: Optional[str] = None):
        self.variable = variable
        super().__init__(message)


class UnsupportedMethodError(IndexerError):
    """Raised when the webhook is invoked with anything but PUT."""

    def __init__(self, method: Optional[str]):
        self.method = method
        super().__init__(f'Unsupported method "{method}"')


class CallbackParseError(IndexerError):
    """Raised when the callback body is missing or is not valid JSON."""
    pass


class TransportError(IndexerError):
    """
    Raised when the signed request to the search engine could not be completed.

    Wraps connection, DNS, timeout and signing errors. HTTP error statuses
    returned by the engine are NOT transport errors.

    Attributes:
        method: HTTP method of the failed request
        path: Request path of the failed request
        original_error: The underlying exception
    """

    def __init__(
        self,
        method: str,
        path: str,
        original_error: Optional[Exception] = None
    ):
        self.method = method
        self.path = path
        self.original_error = original_error

        message = f"{method} {path} failed"
        if original_error:
            message += f": {str(original_error)}"

        super().__init__(message)
