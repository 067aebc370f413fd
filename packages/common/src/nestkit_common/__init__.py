"""Shared building blocks for the nestkit packages.

- **Exceptions**: a single exception hierarchy with context support
- **Registry**: named lookup of implementations (e.g. persistence backends)

Example:
    ```python
    from nestkit_common import NestkitError, Registry

    registry = Registry[type]("backends")
    registry.register("memory", MyBackend)
    ```
"""

from nestkit_common.exceptions import (
    ConfigurationError,
    NestkitError,
    NotFoundError,
    OperationError,
    SerializationError,
    TimeoutError,
    ValidationError,
)
from nestkit_common.registry import Registry

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "NestkitError",
    "ValidationError",
    "ConfigurationError",
    "NotFoundError",
    "OperationError",
    "SerializationError",
    "TimeoutError",
    "Registry",
]
