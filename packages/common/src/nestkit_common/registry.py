"""Registry of named items.

Packages use :class:`Registry` to look implementations up by name, for
example the persistence backends a queue can be configured with.

Example:
    ```python
    from nestkit_common.registry import Registry

    backends = Registry[type]("persistence_backends")
    backends.register("memory", InMemoryPersistence, metadata={"durable": False})

    backend_class = backends.get("memory")
    ```
"""

import threading
from typing import Any, Dict, Generic, List, TypeVar

from nestkit_common.exceptions import NotFoundError, OperationError

T = TypeVar("T")


class Registry(Generic[T]):
    """Thread-safe mapping of unique keys to registered items.

    Each item may carry a metadata dictionary, which is returned by
    :meth:`get_metadata` and is useful for describing what a registered
    implementation provides.

    Args:
        name: Name for this registry instance, used in error context
    """

    def __init__(self, name: str):
        self._name = name
        self._items: Dict[str, T] = {}
        self._metadata: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.RLock()

    @property
    def name(self) -> str:
        """Get registry name."""
        return self._name

    def register(
        self,
        key: str,
        item: T,
        metadata: Dict[str, Any] | None = None,
        allow_overwrite: bool = False,
    ) -> None:
        """Register an item by key.

        Args:
            key: Unique identifier for the item
            item: Item to register
            metadata: Optional metadata about the item
            allow_overwrite: Whether to allow overwriting existing items

        Raises:
            OperationError: If item already exists and allow_overwrite is False
        """
        with self._lock:
            if not allow_overwrite and key in self._items:
                raise OperationError(
                    f"Item '{key}' already registered in {self._name}",
                    context={"key": key, "registry": self._name},
                )
            self._items[key] = item
            self._metadata[key] = dict(metadata or {})

    def unregister(self, key: str) -> T:
        """Unregister and return an item by key.

        Raises:
            NotFoundError: If item not found
        """
        with self._lock:
            if key not in self._items:
                raise NotFoundError(
                    f"Item not found: {key}",
                    context={"key": key, "registry": self._name},
                )
            self._metadata.pop(key, None)
            return self._items.pop(key)

    def get(self, key: str) -> T:
        """Get an item by key.

        Raises:
            NotFoundError: If item not found
        """
        with self._lock:
            if key not in self._items:
                raise NotFoundError(
                    f"Item not found: {key}",
                    context={
                        "key": key,
                        "registry": self._name,
                        "available_keys": list(self._items.keys()),
                    },
                )
            return self._items[key]

    def get_optional(self, key: str) -> T | None:
        """Get an item by key, returning None if not found."""
        with self._lock:
            return self._items.get(key)

    def get_metadata(self, key: str) -> Dict[str, Any]:
        """Get the metadata registered with an item (empty if unknown)."""
        with self._lock:
            return dict(self._metadata.get(key, {}))

    def has(self, key: str) -> bool:
        """Check if item exists."""
        with self._lock:
            return key in self._items

    def list_keys(self) -> List[str]:
        """List all registered keys in registration order."""
        with self._lock:
            return list(self._items.keys())

    def count(self) -> int:
        """Get count of registered items."""
        with self._lock:
            return len(self._items)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, key: str) -> bool:
        return self.has(key)
