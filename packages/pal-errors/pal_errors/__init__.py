"""Pal error handling utilities."""

from typing import Optional, Dict, Any


class PalError(Exception):
    """Base exception for Pal errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or ErrorCode.PAL_ERROR
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class ValidationError(PalError):
    """Validation error."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.VALIDATION_ERROR)
        super().__init__(message, **kwargs)
        if field:
            self.details["field"] = field


class InvalidAccountIdError(ValidationError):
    """Account identifier is malformed or names no account."""

    def __init__(self, account_id: str, **kwargs):
        super().__init__(
            f"Invalid account id: {account_id!r}",
            field="account_id",
            error_code=ErrorCode.INVALID_ACCOUNT_ID,
            **kwargs
        )
        self.account_id = account_id


class ConfigurationError(PalError):
    """Configuration error."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.CONFIGURATION_ERROR)
        super().__init__(message, **kwargs)


class ConfigurationMissingError(ConfigurationError):
    """A required durable setting does not exist."""

    def __init__(self, setting: str, **kwargs):
        super().__init__(
            f"Required setting '{setting}' is missing",
            error_code=ErrorCode.CONFIGURATION_MISSING,
            **kwargs
        )
        self.details["setting"] = setting


class AuthenticationError(PalError):
    """Authentication error."""

    def __init__(self, message: str = "Not authenticated", **kwargs):
        kwargs.setdefault("error_code", ErrorCode.UNAUTHENTICATED)
        super().__init__(message, **kwargs)


class AddressResolutionError(PalError):
    """No usable client address could be determined."""

    def __init__(self, message: str = "No usable client address", **kwargs):
        kwargs.setdefault("error_code", ErrorCode.ADDRESS_UNAVAILABLE)
        super().__init__(message, **kwargs)


class ErrorCode:
    """Standard error codes."""

    # Generic errors
    PAL_ERROR = "PAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    CONFIGURATION_MISSING = "CONFIGURATION_MISSING"

    # Account errors
    INVALID_ACCOUNT_ID = "INVALID_ACCOUNT_ID"
    ADDRESS_UNAVAILABLE = "ADDRESS_UNAVAILABLE"

    # Token errors
    UNAUTHENTICATED = "UNAUTHENTICATED"

    # Service errors
    DATABASE_ERROR = "DATABASE_ERROR"
    DUPLICATE_FINGERPRINT = "DUPLICATE_FINGERPRINT"
