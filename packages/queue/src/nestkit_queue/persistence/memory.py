"""In-memory persistence backend."""

from __future__ import annotations

import copy
from typing import Any

from ..types import QueueData
from .base import PersistenceAdapter


class InMemoryPersistence(PersistenceAdapter):
    """Keeps the last saved state in process memory.

    Saved and loaded states are deep copies, so later changes to the
    queue's records never leak into the stored snapshot.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._data: QueueData | None = None
        self.save_count = 0

    async def save(self, data: QueueData) -> None:
        self._data = copy.deepcopy(list(data))
        self.save_count += 1

    async def load(self) -> QueueData | None:
        return copy.deepcopy(self._data) if self._data is not None else None

    async def clear(self) -> None:
        self._data = None
