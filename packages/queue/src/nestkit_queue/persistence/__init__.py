"""Persistence backends for the nested queue.

Backends are registered by name and created through
:func:`create_persistence`:

    ```python
    persistence = create_persistence(backend="file", path="~/.nestkit/todos.json")
    ```

Built-in backends: ``memory``, ``file`` and ``sqlite``.
"""

from __future__ import annotations

import logging
from typing import Any

from nestkit_common import Registry
from nestkit_config import FactoryBase

from ..exceptions import UnknownBackendError
from .base import PersistenceAdapter
from .file import FilePersistence
from .memory import InMemoryPersistence
from .sqlite import SQLitePersistence

logger = logging.getLogger(__name__)

persistence_backends: Registry[type[PersistenceAdapter]] = Registry("persistence_backends")
persistence_backends.register(
    "memory", InMemoryPersistence, metadata={"description": "Process memory", "durable": False}
)
persistence_backends.register(
    "file", FilePersistence, metadata={"description": "JSON key/value file", "durable": True}
)
persistence_backends.register(
    "sqlite", SQLitePersistence, metadata={"description": "SQLite table", "durable": True}
)


class PersistenceFactory(FactoryBase):
    """Creates persistence backends from configuration.

    Configuration Options:
        backend (str): Backend name (memory, file, sqlite)
        **kwargs: Backend-specific configuration options

    Example Configuration:
        persistence:
          backend: sqlite
          path: ~/.nestkit/queue.db
          table: todos
    """

    def create(self, **config: Any) -> PersistenceAdapter:
        """Create a persistence backend.

        Raises:
            UnknownBackendError: If the backend name is not registered
        """
        backend_type = str(config.pop("backend", "memory")).lower()
        backend_class = persistence_backends.get_optional(backend_type)
        if backend_class is None:
            raise UnknownBackendError(backend_type, persistence_backends.list_keys())

        logger.info(f"Creating persistence with backend: {backend_type}")
        return backend_class.from_config(config)

    def get_backend_info(self, backend_type: str) -> dict[str, Any]:
        """Describe a registered backend."""
        return persistence_backends.get_metadata(backend_type.lower())


def create_persistence(**config: Any) -> PersistenceAdapter:
    """Create a persistence backend; see :class:`PersistenceFactory`."""
    return PersistenceFactory().create(**config)


__all__ = [
    "FilePersistence",
    "InMemoryPersistence",
    "PersistenceAdapter",
    "PersistenceFactory",
    "SQLitePersistence",
    "create_persistence",
    "persistence_backends",
]
