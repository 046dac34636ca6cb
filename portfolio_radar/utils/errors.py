"""
Custom exceptions for Portfolio Radar.

This module defines all custom exceptions used throughout the application
for better error handling and debugging.
"""

from typing import Any, Optional


class RadarException(Exception):
    """Base exception for all Portfolio Radar errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Extraction Exceptions
# =============================================================================


class ExtractionError(RadarException):
    """Base exception for the AI extraction pipeline."""

    pass


class RemoteQueryError(ExtractionError):
    """The hosted model call failed (network, timeout, HTTP error)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        """Initialize with the HTTP-like status, when the vendor reported one."""
        details = {"status_code": status_code} if status_code is not None else {}
        super().__init__(message, details)
        self.status_code = status_code


class QuotaExceededError(ExtractionError):
    """The hosted model rejected the request on quota or rate limit."""

    user_message = "API usage limit exceeded (quota exceeded). Please wait a minute and try again."

    def __init__(self, reason: Optional[str] = None) -> None:
        """Initialize with the vendor's reason, kept out of the user message."""
        super().__init__(self.user_message, {"reason": reason} if reason else None)
        self.reason = reason

    def __str__(self) -> str:
        """Return the user-facing message only."""
        return self.message


class ResponseParseError(ExtractionError):
    """Recovered response text is not valid JSON."""

    def __init__(self, error: str, snippet: str) -> None:
        """Initialize with the decoder error and a short snippet of the text."""
        message = f"Could not parse model response as JSON: {error}"
        super().__init__(message, {"snippet": snippet[:120]})


class RefreshFailedError(ExtractionError):
    """A refresh operation failed for a reason other than quota."""

    user_message = "The refresh could not be completed. Please try again."

    def __init__(self, task: str, error: str) -> None:
        """Initialize with the task name and the underlying error."""
        super().__init__(self.user_message, {"task": task, "error": error})
        self.task = task


class NoImageGeneratedError(ExtractionError):
    """The image model answered without an image part."""

    def __init__(self, model: str) -> None:
        """Initialize with the model that returned no image."""
        super().__init__("No image generated", {"model": model})


class InvalidSubjectsError(ExtractionError):
    """The subject list or batch settings violate the input contract."""

    pass


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(RadarException):
    """Configuration error."""

    pass


class MissingConfigurationError(ConfigurationError):
    """Required configuration missing."""

    def __init__(self, config_name: str) -> None:
        """Initialize with config name."""
        message = f"Required configuration '{config_name}' is missing"
        super().__init__(message, {"config_name": config_name})
