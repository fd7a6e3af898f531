"""
Exception classes for pgdiff.
"""

from typing import Any, Dict, Optional, Tuple


class PgDiffError(Exception):
    """Base exception for all pgdiff errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            result += f" [{details_str}]"
        if self.cause:
            result += f" (caused by: {self.cause})"
        return result


class ConfigurationError(PgDiffError):
    """Raised when there's an error in configuration."""

    pass


class DatabaseError(PgDiffError):
    """Raised when there's an error with database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when there's an error establishing or maintaining database connections."""

    pass


class DatabaseConfigurationError(DatabaseError):
    """Raised when there's an error in database configuration."""

    pass


class MetadataQueryError(DatabaseError):
    """Raised when the metadata query for a database fails mid-stream."""

    pass


class DiffError(PgDiffError):
    """Raised when a schema comparison cannot continue."""

    pass


class MetadataParseError(DiffError):
    """Raised when a metadata attribute expected to be numeric is not."""

    def __init__(
        self,
        attribute: str,
        value: str,
        table_name: Optional[str] = None,
        column_name: Optional[str] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        details = {}
        if table_name:
            details["table"] = table_name
        if column_name:
            details["column"] = column_name

        super().__init__(
            f"Cannot convert {attribute} value {value!r} to an integer",
            details,
            cause,
        )
        self.attribute = attribute
        self.value = value


class StreamOrderError(DiffError):
    """Raised when a metadata stream is not strictly increasing by key."""

    def __init__(
        self,
        previous_key: Tuple[str, ...],
        current_key: Tuple[str, ...],
        stream: Optional[str] = None,
    ) -> None:
        message = f"Rows out of order: {previous_key} followed by {current_key}"
        if stream:
            message += f" ({stream} stream)"
        super().__init__(message)
        self.previous_key = previous_key
        self.current_key = current_key
        self.stream = stream
