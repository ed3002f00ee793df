"""
Custom exceptions for the river data pipeline with structured error context.

Each exception carries a human-readable message, a context dictionary
(source name, URL, table, ...) and the original exception it wraps.

Exception Hierarchy:
    HydroException (base)
    ├── FetchError
    │   └── DiscoveryError
    ├── ParseError
    │   └── TimestampParseError
    ├── PersistenceError
    │   └── IntegrityError
    ├── RefreshError
    └── InterpreterError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class HydroException(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, url, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Source Errors
# ============================================================================

class FetchError(HydroException):
    """
    Raised when a source cannot be fetched.

    Context should include:
        - source_name: Adapter that failed
        - url: The URL that failed
        - status_code: HTTP status code (if applicable)
    """
    pass


class DiscoveryError(FetchError):
    """
    Raised when a listing page does not link to the expected bulletin.

    Context should include:
        - source_name: Adapter that failed
        - url: The listing page URL
        - pattern: The anchor text pattern that was searched
    """
    pass


class ParseError(HydroException):
    """
    Raised when an HTML structure or a field cannot be parsed.

    Malformed rows are skipped by the adapters; this is only raised
    when a whole document cannot be used.
    """
    pass


class TimestampParseError(ParseError):
    """
    Raised when localized timestamp text is found but cannot be parsed.

    Never escapes an adapter: callers degrade to the processing time.
    """
    pass


# ============================================================================
# Storage Errors
# ============================================================================

class PersistenceError(HydroException):
    """
    Raised when the store cannot be opened, written or queried.

    Context should include:
        - operation: open, save_all, query name
        - database_path: Path of the store file
    """
    pass


class IntegrityError(PersistenceError):
    """
    Raised when a stored timestamp matches none of the known formats.

    Context should include:
        - value: The stored text
        - formats: Formats that were tried
    """
    pass


# ============================================================================
# Orchestration / Collaborator Errors
# ============================================================================

class RefreshError(HydroException):
    """Raised when a refresh cycle is aborted."""
    pass


class InterpreterError(HydroException):
    """Raised when the natural-language interpreter cannot produce an intent."""
    pass
