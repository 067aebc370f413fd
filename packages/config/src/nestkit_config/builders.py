"""Base classes for objects and factories built from configuration."""

from typing import Any


class ConfigurableBase:
    """Base class for objects that can be created from a config dictionary.

    Subclasses override :meth:`from_config` when their constructor does not
    take the configuration keys as keyword arguments.
    """

    @classmethod
    def from_config(cls, config: dict) -> Any:
        """Create an instance from a configuration dictionary."""
        return cls(**config)


class FactoryBase:
    """Base class for factory objects.

    Factories that inherit from this should implement the create method.
    """

    def create(self, **config: Any) -> Any:
        """Create an object from configuration."""
        raise NotImplementedError("Subclasses must implement create method")
