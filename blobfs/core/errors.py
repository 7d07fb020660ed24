"""
Error Handling for blobfs

Provides standardized error codes and exceptions for the file-system layer.
Callers can branch on the exception type or on the stable ``code`` value.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Standardized error codes for the entire package."""

    # Configuration errors (CONFIG_xxx)
    CONFIG_MISSING_CONNECTION_STRING = "CONFIG_001"
    CONFIG_INVALID_VALUE = "CONFIG_002"

    # Path errors (PATH_xxx)
    PATH_TRAVERSAL = "PATH_001"
    PATH_EMPTY = "PATH_002"

    # Blob errors (BLOB_xxx)
    BLOB_ALREADY_EXISTS = "BLOB_001"
    BLOB_NOT_FOUND = "BLOB_002"


class BlobFileSystemError(Exception):
    """
    Base class for errors raised by the file-system layer.

    Carries a machine-readable code alongside the human message:

    {
        "code": "BLOB_002",
        "message": "Blob not found: images/cat.jpg",
        "details": {"key": "images/cat.jpg", "container": "media"}
    }
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.user_message = message
        self.error_details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for logs and API payloads."""
        return {
            "code": self.code.value,
            "message": self.user_message,
            "details": self.error_details,
        }


class ConfigurationError(BlobFileSystemError):
    """Required configuration is missing or invalid. Fatal at startup."""


class InvalidPathError(BlobFileSystemError, ValueError):
    """Caller supplied a malformed or traversing path."""


class AlreadyExistsError(BlobFileSystemError):
    """A non-overwriting write hit an occupied key."""


class NotFoundError(BlobFileSystemError):
    """Read or stat of a key that holds no blob."""


# Convenience functions for common errors
def config_error(code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None) -> ConfigurationError:
    """Create a configuration error."""
    return ConfigurationError(code, message, details)


def path_error(code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None) -> InvalidPathError:
    """Create an invalid-path error."""
    return InvalidPathError(code, message, details)


def already_exists_error(key: str, container: str) -> AlreadyExistsError:
    """Create the error raised when a non-overwriting upload finds a blob."""
    return AlreadyExistsError(
        ErrorCode.BLOB_ALREADY_EXISTS,
        f"Blob already exists: {key}",
        {"key": key, "container": container},
    )


def not_found_error(key: str, container: str) -> NotFoundError:
    """Create the error raised when a read targets a missing blob."""
    return NotFoundError(
        ErrorCode.BLOB_NOT_FOUND,
        f"Blob not found: {key}",
        {"key": key, "container": container},
    )
