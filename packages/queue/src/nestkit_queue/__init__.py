"""Nested queue with middleware, pluggable persistence and an active-record buffer."""

from .buffer import ActiveRecordBuffer
from .exceptions import (
    MissingIdentifierError,
    NestedQueueError,
    PersistenceError,
    RecordNotInBufferError,
    UnknownBackendError,
)
from .middleware import LoggingMiddleware, Middleware, ReadOnlyMiddleware
from .persistence import (
    FilePersistence,
    InMemoryPersistence,
    PersistenceAdapter,
    PersistenceFactory,
    SQLitePersistence,
    create_persistence,
    persistence_backends,
)
from .queue import EnhancedNestedQueue, NestedQueue
from .types import (
    ActionType,
    ActiveRecord,
    BufferOptions,
    FilterOptions,
    QueueAction,
    QueueOptions,
    SearchOptions,
    SortOptions,
)
from .utils import QueueUtils, get_record_id

__version__ = "0.1.0"

__all__ = [
    # Queue
    "EnhancedNestedQueue",
    "NestedQueue",
    # Buffer
    "ActiveRecord",
    "ActiveRecordBuffer",
    # Types
    "ActionType",
    "BufferOptions",
    "FilterOptions",
    "QueueAction",
    "QueueOptions",
    "SearchOptions",
    "SortOptions",
    # Middleware
    "LoggingMiddleware",
    "Middleware",
    "ReadOnlyMiddleware",
    # Persistence
    "FilePersistence",
    "InMemoryPersistence",
    "PersistenceAdapter",
    "PersistenceFactory",
    "SQLitePersistence",
    "create_persistence",
    "persistence_backends",
    # Utilities
    "QueueUtils",
    "get_record_id",
    # Exceptions
    "MissingIdentifierError",
    "NestedQueueError",
    "PersistenceError",
    "RecordNotInBufferError",
    "UnknownBackendError",
]
