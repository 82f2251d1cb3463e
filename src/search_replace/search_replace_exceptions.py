"""Custom exceptions for search/replace edit operations."""

from typing import Any


class SearchReplaceError(Exception):
    """Base exception for search/replace edit operations."""

    def __init__(self, message: str, error_details: dict[str, Any] | None = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            error_details: Optional dictionary with detailed error information
        """
        super().__init__(message)
        self.error_details = error_details


class SearchReplaceParseError(SearchReplaceError):
    """Raised when a SEARCH/REPLACE diff is structurally broken."""


class SearchReplaceValidationError(SearchReplaceError):
    """Raised when parsed blocks cannot form a well-defined edit."""


class SearchReplaceSessionError(SearchReplaceError):
    """Raised when an edit session receives an illegal command."""


class SearchReplaceConfigError(SearchReplaceError):
    """Raised when configuration values are invalid."""


class SearchReplaceFileError(SearchReplaceError):
    """Raised when reading or writing a target file fails."""


class SearchReplaceFileNotFoundError(SearchReplaceFileError):
    """Raised when a target file does not exist."""
