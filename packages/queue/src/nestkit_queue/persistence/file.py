"""JSON file persistence backend.

The file holds a JSON object mapping storage keys to saved states, so
several queues can share one file under different keys:

    ```json
    {"todos": [{"id": 1, "title": "Write tests"}], "notes": []}
    ```
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from nestkit_common import ConfigurationError

from ..exceptions import PersistenceError
from ..types import QueueData
from .base import PersistenceAdapter

logger = logging.getLogger(__name__)


class FilePersistence(PersistenceAdapter):
    """Durable key/value persistence in a JSON file.

    Config keys:
        - path: JSON file path (required)
        - key: Storage key inside the file (default: "queueData")
        - indent: JSON indentation (default: None for compact output)

    Writes go to a temporary file in the same directory which then
    atomically replaces the target.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        if "path" not in self.config:
            raise ConfigurationError(
                "FilePersistence requires a 'path'", context={"config": self.config}
            )
        self.filepath = Path(self.config["path"]).expanduser()
        self.key = self.config.get("key", "queueData")
        self.indent = self.config.get("indent")
        self._lock = asyncio.Lock()

    def _read(self) -> dict[str, Any]:
        if not self.filepath.exists() or self.filepath.stat().st_size == 0:
            return {}
        try:
            with open(self.filepath, encoding="utf-8") as f:
                content = json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceError("file", f"invalid JSON in {self.filepath}: {e}") from e
        if not isinstance(content, dict):
            raise PersistenceError("file", f"{self.filepath} does not hold a JSON object")
        return content

    def _write(self, content: dict[str, Any]) -> None:
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(dir=self.filepath.parent, suffix=".tmp")
        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(content, f, indent=self.indent)
            os.replace(temp_path, self.filepath)
        except Exception:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    async def save(self, data: QueueData) -> None:
        async with self._lock:
            content = self._read()
            content[self.key] = list(data)
            self._write(content)
            logger.debug(f"Saved {len(data)} items to {self.filepath} [{self.key}]")

    async def load(self) -> QueueData | None:
        async with self._lock:
            content = self._read()
            return content.get(self.key)

    async def clear(self) -> None:
        async with self._lock:
            content = self._read()
            if self.key in content:
                del content[self.key]
                self._write(content)
