"""Exceptions raised by the nested queue and its record buffer.

Built on the shared hierarchy in :mod:`nestkit_common.exceptions`.
"""

from __future__ import annotations

from typing import Any, Mapping

from nestkit_common import (
    ConfigurationError,
    NestkitError,
    NotFoundError,
    OperationError,
    ValidationError,
)

NestedQueueError = NestkitError


class MissingIdentifierError(ValidationError):
    """Raised when a record has neither an ``id`` nor a ``key`` field."""

    def __init__(self, record: Mapping[str, Any] | Any):
        fields = sorted(str(k) for k in record) if isinstance(record, Mapping) else []
        super().__init__(
            "Record must have an id or key property",
            context={"fields": fields},
        )


class RecordNotInBufferError(NotFoundError):
    """Raised when a buffer operation names a record that is not buffered."""

    def __init__(self, id: Any):
        self.id = id
        super().__init__(f"Record with id {id} not found in buffer", context={"id": id})


class PersistenceError(OperationError):
    """Raised when a persistence backend cannot decode its stored state."""

    def __init__(self, backend: str, message: str):
        self.backend = backend
        super().__init__(
            f"{backend} persistence failed: {message}", context={"backend": backend}
        )


class UnknownBackendError(ConfigurationError):
    """Raised when a persistence backend name is not registered."""

    def __init__(self, backend: str, available: list[str]):
        self.backend = backend
        super().__init__(
            f"Unknown persistence backend: {backend}. "
            f"Available backends: {', '.join(sorted(available))}",
            context={"backend": backend, "available": sorted(available)},
        )


__all__ = [
    "MissingIdentifierError",
    "NestedQueueError",
    "PersistenceError",
    "RecordNotInBufferError",
    "UnknownBackendError",
]
