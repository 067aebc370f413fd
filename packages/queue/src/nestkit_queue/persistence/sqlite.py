"""Transactional persistence backend using aiosqlite."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Any

import aiosqlite
from nestkit_common import ConfigurationError

from ..exceptions import PersistenceError
from ..types import QueueData
from .base import PersistenceAdapter

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SQLitePersistence(PersistenceAdapter):
    """Stores queue state as one JSON row per key in a SQLite table.

    Config keys:
        - path: Database file path (default: ":memory:")
        - table: Table name (default: "queue_state")
        - key: Row key the state is stored under (default: "queueData")
        - timeout: Connection timeout in seconds (default: 5.0)

    The connection is opened on first use; call :meth:`close` to release it.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self.db_path = str(self.config.get("path", ":memory:"))
        self.table_name = self.config.get("table", "queue_state")
        self.key = self.config.get("key", "queueData")
        self.timeout = self.config.get("timeout", 5.0)
        if not _IDENTIFIER_RE.match(self.table_name):
            raise ConfigurationError(
                f"Invalid table name: {self.table_name}", context={"table": self.table_name}
            )

        self.db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def connect(self) -> aiosqlite.Connection:
        """Open the database and create the state table if needed.

        Returns:
            The open connection (the existing one when already connected)
        """
        if self.db is not None:
            return self.db

        if self.db_path != ":memory:":
            Path(self.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)

        db = await aiosqlite.connect(self.db_path, timeout=self.timeout)
        await db.execute(
            f"CREATE TABLE IF NOT EXISTS {self.table_name} ("
            "key TEXT PRIMARY KEY, data TEXT NOT NULL)"
        )
        await db.commit()
        self.db = db
        logger.info(f"Connected to SQLite persistence: {self.db_path}")
        return db

    async def close(self) -> None:
        if self.db is not None:
            await self.db.close()
            self.db = None
            logger.info(f"Disconnected from SQLite persistence: {self.db_path}")

    async def save(self, data: QueueData) -> None:
        async with self._lock:
            db = await self.connect()
            try:
                await db.execute(
                    f"INSERT OR REPLACE INTO {self.table_name} (key, data) VALUES (?, ?)",
                    (self.key, json.dumps(list(data))),
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            logger.debug(f"Saved {len(data)} items to {self.table_name}[{self.key}]")

    async def load(self) -> QueueData | None:
        async with self._lock:
            db = await self.connect()
            async with db.execute(
                f"SELECT data FROM {self.table_name} WHERE key = ?", (self.key,)
            ) as cursor:
                row = await cursor.fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise PersistenceError("sqlite", f"invalid JSON for key {self.key}: {e}") from e

    async def clear(self) -> None:
        async with self._lock:
            db = await self.connect()
            await db.execute(f"DELETE FROM {self.table_name} WHERE key = ?", (self.key,))
            await db.commit()
