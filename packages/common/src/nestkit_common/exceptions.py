"""Exception hierarchy shared by all nestkit packages.

Every error raised by nestkit derives from :class:`NestkitError`, which
carries an optional ``context`` dictionary describing what was being
operated on when the failure happened.

Example:
    ```python
    from nestkit_common.exceptions import NotFoundError

    raise NotFoundError(
        "Record not buffered",
        context={"record_id": 42},
    )
    ```

Packages extend the hierarchy for their own failures:
    ```python
    class MissingIdentifierError(ValidationError):
        def __init__(self, record):
            super().__init__(
                "Record must have an id or key property",
                context={"fields": sorted(record)},
            )
    ```
"""

from typing import Any, Dict


class NestkitError(Exception):
    """Base exception for all nestkit packages.

    Attributes:
        context: Dictionary with information about the failed operation
        details: Alias for context

    Example:
        ```python
        error = NestkitError("Flush failed", context={"dirty": 3})
        str(error)
        # 'Flush failed'
        error.context
        # {'dirty': 3}
        ```
    """

    def __init__(
        self,
        message: str,
        context: Dict[str, Any] | None = None,
        details: Dict[str, Any] | None = None,
    ):
        """Initialize the exception with optional context.

        Args:
            message: Error message
            context: Optional context dictionary
            details: Optional details dictionary (takes precedence over context)
        """
        super().__init__(message)
        self.context = details or context or {}
        self.details = self.context


class ValidationError(NestkitError):
    """Raised when a value handed to nestkit fails validation.

    Example:
        ```python
        raise ValidationError(
            "Record must have an id or key property",
            context={"fields": ["name"]},
        )
        ```
    """

    pass


class ConfigurationError(NestkitError):
    """Raised when configuration is invalid or missing.

    Example:
        ```python
        raise ConfigurationError(
            "Required environment variable not set",
            context={"variable": "NESTKIT_PATH"},
        )
        ```
    """

    pass


class NotFoundError(NestkitError):
    """Raised when a requested item is not found.

    Example:
        ```python
        raise NotFoundError("Item not found: sqlite", context={"key": "sqlite"})
        ```
    """

    pass


class OperationError(NestkitError):
    """Raised when an operation fails.

    Example:
        ```python
        raise OperationError(
            "Item 'memory' already registered in persistence_backends",
            context={"key": "memory"},
        )
        ```
    """

    pass


class SerializationError(NestkitError):
    """Raised when stored state cannot be encoded or decoded."""

    pass


class TimeoutError(NestkitError):
    """Raised when waiting for a condition exceeds its time limit.

    Example:
        ```python
        raise TimeoutError("Wait Timeout", context={"timeout_ms": 5000})
        ```
    """

    pass


__all__ = [
    "NestkitError",
    "ValidationError",
    "ConfigurationError",
    "NotFoundError",
    "OperationError",
    "SerializationError",
    "TimeoutError",
]
