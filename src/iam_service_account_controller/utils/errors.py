"""Error taxonomy and sanitization utilities."""

from __future__ import annotations

import re

# IAM error codes
NOT_FOUND_ERROR_CODE = "NotFound"
NOT_MANAGED_ERROR_CODE = "NotManaged"
OTHER_ERROR_CODE = "Other"


class IAMError(Exception):
    """Error returned by the role store."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"IAMError {code}: {message}")
        self.code = code
        self.message = message


class RoleNotFoundError(IAMError):
    """The queried IAM role does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(NOT_FOUND_ERROR_CODE, message)


class RoleNotManagedError(IAMError):
    """The IAM role exists but is not tagged as managed by this controller."""

    def __init__(self, message: str = "Role not managed by controller") -> None:
        super().__init__(NOT_MANAGED_ERROR_CODE, message)


class InvalidKeyError(ValueError):
    """A work queue key that cannot be split into namespace and name."""


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""


def is_not_found(error: BaseException) -> bool:
    """Return True if the error signals a missing IAM role."""
    return isinstance(error, IAMError) and error.code == NOT_FOUND_ERROR_CODE


def is_not_managed(error: BaseException) -> bool:
    """Return True if the error signals a role owned by someone else."""
    return isinstance(error, IAMError) and error.code == NOT_MANAGED_ERROR_CODE


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"access[_\s]?key[_\s]?id[:\s]+([A-Z0-9]{20})",
    r"secret[_\s]?access[_\s]?key[:\s]+([A-Za-z0-9/+=]{40})",
    r"session[_\s]?token[:\s]+([A-Za-z0-9/+=]+)",
    r"web[_\s]?identity[_\s]?token[:\s]+([A-Za-z0-9\-_\.]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "access_key_id",
    "secret_access_key",
    "session_token",
    "password",
    "credentials",
    "token",
}

# Bare JWTs (web identity tokens) can show up in STS error messages
_JWT_PATTERN = r"eyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+"


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = re.sub(_JWT_PATTERN, "[REDACTED]", message)

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0).replace(m.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"\b{field}[:\s]+([^\s,;\)]+)",
            rf"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message."""
    return sanitize_error_message(str(error))
