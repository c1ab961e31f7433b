"""
Custom Exception Classes

Defines custom exceptions for the bot webhook integration.
Provides structured error handling across the application.
"""


class IntegrationError(Exception):
    """Base exception for integration errors."""

    def __init__(self, message: str, details: dict = None):
        """
        Initialize integration error.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(IntegrationError):
    """Exception raised for malformed webhook events or bot messages."""

    def __init__(self, message: str, field: str = None, details: dict = None):
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field that failed validation
            details: Additional error details
        """
        super().__init__(message, details)
        self.field = field


class AuthenticationError(IntegrationError):
    """Exception raised when an inbound webhook cannot be authenticated."""

    pass


class WebhookDeliveryError(IntegrationError):
    """Exception raised when a signed message cannot be delivered to the bot channel."""

    def __init__(
        self,
        message: str,
        status_code: int = None,
        response_body: str = None,
        details: dict = None,
    ):
        """
        Initialize delivery error.

        Args:
            message: Error message
            status_code: HTTP status code, if a response was received
            response_body: Response body text, if a response was received
            details: Additional error details
        """
        super().__init__(message, details)
        self.status_code = status_code
        self.response_body = response_body


class ConfigurationError(IntegrationError):
    """Exception raised for configuration errors."""

    pass
