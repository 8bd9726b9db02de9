"""
Book Roulette exception hierarchy.

Exception Hierarchy:
    RouletteError (base)
    ├── ValidationError - Rejected user input (blank titles, too few books)
    │   └── RunInProgressError - A roulette run is already active
    ├── DuplicateError - Book id already present in the collection
    ├── ExternalCallError - Google Books request failed
    └── ConfigurationError - Inconsistent settings

None of these are fatal: the CLI and shell report them as notices.
"""
from typing import Any, Dict, Optional


class RouletteError(Exception):
    """Base exception for all book roulette errors."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize roulette exception.

        Args:
            message: Human-readable error message
            details: Optional structured details for logging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ValidationError(RouletteError):
    """Input rejected before any state changed."""


class RunInProgressError(ValidationError):
    """A roulette run was requested while another one is active."""


class DuplicateError(RouletteError):
    """Book with the same id already exists in the collection."""

    def __init__(self, message: str, *, book_id: str) -> None:
        super().__init__(message, details={"book_id": book_id})
        self.book_id = book_id


class ExternalCallError(RouletteError):
    """Google Books API call failed (transport error, non-200 or malformed response)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details=details)
        self.status_code = status_code


class ConfigurationError(RouletteError):
    """Settings that cannot work together."""
