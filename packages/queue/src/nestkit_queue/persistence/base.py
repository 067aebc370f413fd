"""Persistence contract for the nested queue."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from nestkit_config import ConfigurableBase

from ..types import QueueData


class PersistenceAdapter(ABC, ConfigurableBase):
    """Saves and restores the complete state of a queue.

    Implementations receive the whole sequence on every save and must
    overwrite whatever they held before. Errors are not caught by the queue;
    they propagate to the caller of the action that triggered the save.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = dict(config or {})

    @classmethod
    def from_config(cls, config: dict) -> PersistenceAdapter:
        """Create from config dictionary."""
        return cls(config)

    @abstractmethod
    async def save(self, data: QueueData) -> None:
        """Persist the full current sequence, replacing prior content."""

    @abstractmethod
    async def load(self) -> QueueData | None:
        """Return the last saved sequence, or None if nothing was saved."""

    @abstractmethod
    async def clear(self) -> None:
        """Erase the persisted state."""

    async def close(self) -> None:
        """Release any resources held by the backend."""
        return None
