"""Custom exceptions for pymelcloudhvac library."""

from __future__ import annotations

from typing import Any


class MelCloudError(Exception):
    """Base exception for all MELCloud errors."""


class AuthenticationError(MelCloudError):
    """Exception raised when the service rejects a login."""


class TransientNetworkError(MelCloudError):
    """Base exception for failures that are worth retrying.

    Attributes:
        status: HTTP status code, or None when no response was received.
    """

    def __init__(self, message: str = "", status: int | None = None) -> None:
        """Initialize TransientNetworkError.

        Args:
            message: Error message.
            status: Optional HTTP status code of the failed response.
        """
        super().__init__(message)
        self.status = status


class MelCloudConnectionError(TransientNetworkError):
    """Exception raised for connection failures."""


class MelCloudTimeoutError(TransientNetworkError):
    """Exception raised when API requests timeout."""


class SessionExpiredError(TransientNetworkError):
    """Exception raised when an authenticated request is answered with 401."""


class RateLimitError(TransientNetworkError):
    """Exception raised when API rate limit is exceeded.

    Attributes:
        retry_after: Optional number of seconds the service asked us to wait.
    """

    def __init__(self, message: str = "", status: int | None = None, retry_after: int | None = None) -> None:
        """Initialize RateLimitError.

        Args:
            message: Error message.
            status: Optional HTTP status code.
            retry_after: Optional number of seconds to wait before retrying.
        """
        super().__init__(message, status)
        self.retry_after = retry_after


class ServerError(TransientNetworkError):
    """Exception raised for 5xx responses."""


class RemoteRejectionError(MelCloudError):
    """Exception raised when the service answers with a non-retryable HTTP error.

    Attributes:
        status: HTTP status code.
        body: Response text, if any.
    """

    def __init__(self, message: str = "", status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class DeviceNotFoundError(MelCloudError):
    """Exception raised when a device id is not part of the account.

    Attributes:
        device_id: The device ID that could not be found.
    """

    def __init__(self, message: str = "", device_id: int | None = None) -> None:
        super().__init__(message)
        self.device_id = device_id


class ValidationError(MelCloudError):
    """Exception raised for invalid input, before anything is sent.

    Attributes:
        parameter_name: Optional name of the invalid parameter.
        value: Optional value that was invalid.
    """

    def __init__(
        self,
        message: str = "",
        parameter_name: str | None = None,
        value: Any = None,
    ) -> None:
        """Initialize ValidationError.

        Args:
            message: Error message.
            parameter_name: Optional name of the invalid parameter.
            value: Optional value that was invalid.
        """
        super().__init__(message)
        self.parameter_name = parameter_name
        self.value = value


class DeviceTypeMismatchError(ValidationError):
    """Exception raised when a command does not match the device's capability class."""
