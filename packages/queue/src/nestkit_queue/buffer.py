"""Write-behind buffer of active records in front of a nested queue.

Records are loaded or created in the buffer, modified locally without any
I/O, and written back to the queue in one batch by :meth:`flush`:

- new records are appended to the queue with their full data
- changed records send only their accumulated ``changes``, as an update at
  the path ``str(id)``

After a flush the buffer is emptied; records needed again must be reloaded.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping

from .exceptions import RecordNotInBufferError
from .types import ActiveRecord, BufferOptions
from .utils import get_record_id

if TYPE_CHECKING:
    from .queue import NestedQueue

logger = logging.getLogger(__name__)


class ActiveRecordBuffer:
    """Tracks dirty and new records and flushes them to a queue.

    With ``auto_save`` enabled a background task flushes every
    ``flush_interval`` milliseconds. The task needs a running event loop;
    when the buffer is built outside one, the task starts with the first
    buffer call made inside a loop. Loading a record that grows the buffer
    past ``buffer_size`` flushes immediately.

    :meth:`dispose` stops the task and drops all buffered records without
    flushing them.

    Example:
        ```python
        buffer = ActiveRecordBuffer(queue, BufferOptions(auto_save=False))

        record = await buffer.load({"id": 1, "title": "Draft"})
        buffer.update(1, {"title": "Final"})
        buffer.create({"id": 2, "title": "New"})

        await buffer.flush()  # update("1", {"title": "Final"}), add({...id 2...})
        ```
    """

    def __init__(
        self,
        queue: NestedQueue,
        options: BufferOptions | None = None,
        **kwargs: Any,
    ):
        """Initialize the buffer.

        Args:
            queue: Queue that flushed records are written to
            options: Buffer options; keyword arguments build one when omitted
            **kwargs: ``auto_save``, ``buffer_size`` and ``flush_interval``
        """
        self.queue = queue
        self.options = options or BufferOptions(**kwargs)
        self._buffer: Dict[Any, ActiveRecord] = {}
        self._flush_lock = asyncio.Lock()
        self._auto_save_task: asyncio.Task | None = None
        self._disposed = False

        if self.options.auto_save:
            self._start_auto_save()

    # -- Auto-save --

    def _start_auto_save(self) -> None:
        if not self.options.auto_save or self._disposed or self._auto_save_task is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._auto_save_task = loop.create_task(self._auto_save_loop())
        logger.debug(f"Auto-save started (every {self.options.flush_interval} ms)")

    def _stop_auto_save(self) -> None:
        if self._auto_save_task is not None:
            self._auto_save_task.cancel()
            self._auto_save_task = None

    async def _auto_save_loop(self) -> None:
        interval = self.options.flush_interval / 1000
        while True:
            await asyncio.sleep(interval)
            try:
                await self.flush()
            except Exception:
                logger.exception("Auto-save flush failed")

    # -- Record lifecycle --

    async def load(self, record: Mapping[str, Any]) -> ActiveRecord:
        """Buffer a clean copy of an existing record.

        Loading an id that is already buffered returns the buffered wrapper
        unchanged.

        Raises:
            MissingIdentifierError: If the record has no ``id`` or ``key``
        """
        record_id = get_record_id(record)
        self._start_auto_save()

        existing = self._buffer.get(record_id)
        if existing is not None:
            return existing

        active_record = ActiveRecord(
            data=copy.deepcopy(dict(record)),
            id=record_id,
            original_data=copy.deepcopy(dict(record)),
        )
        self._buffer[record_id] = active_record

        if len(self._buffer) > self.options.buffer_size:
            logger.debug(
                f"Buffer holds {len(self._buffer)} records "
                f"(limit {self.options.buffer_size}); flushing"
            )
            await self.flush()

        return active_record

    def create(self, data: Mapping[str, Any]) -> ActiveRecord:
        """Buffer a new record; every field counts as changed.

        Replaces any buffered record with the same id.

        Raises:
            MissingIdentifierError: If the record has no ``id`` or ``key``
        """
        record_id = get_record_id(data)
        self._start_auto_save()

        active_record = ActiveRecord(
            data=copy.deepcopy(dict(data)),
            id=record_id,
            is_dirty=True,
            is_new=True,
            changes=copy.deepcopy(dict(data)),
            original_data={},
        )
        self._buffer[record_id] = active_record
        return active_record

    def update(self, id: Any, changes: Mapping[str, Any]) -> ActiveRecord:
        """Merge ``changes`` into a buffered record's data and change set.

        Changing the ``id`` field does not re-key the buffered record.

        Raises:
            RecordNotInBufferError: If no record with ``id`` is buffered
        """
        record = self._buffer.get(id)
        if record is None:
            raise RecordNotInBufferError(id)
        self._start_auto_save()

        changes = copy.deepcopy(dict(changes))
        record.data = {**record.data, **changes}
        record.changes = {**record.changes, **changes}
        record.is_dirty = bool(record.changes) or record.is_new
        return record

    async def delete(self, id: Any) -> None:
        """Remove a buffered record from the queue at path ``str(id)``.

        The record is dropped from the buffer without being flushed. Does
        nothing if ``id`` is not buffered.
        """
        if id in self._buffer:
            await self.queue.remove(str(id))
            self._buffer.pop(id, None)

    def rollback(self, id: Any) -> None:
        """Discard unflushed changes to a buffered record.

        A loaded record gets its original data back. A created record has
        nothing to return to and is dropped from the buffer.
        """
        record = self._buffer.get(id)
        if record is None:
            return
        if record.is_new:
            del self._buffer[id]
            return
        record.data = copy.deepcopy(record.original_data)
        record.changes = {}
        record.is_dirty = False

    def rollback_all(self) -> None:
        """Roll back every buffered record."""
        for record_id in list(self._buffer):
            self.rollback(record_id)

    # -- Inspection --

    def get(self, id: Any) -> ActiveRecord | None:
        return self._buffer.get(id)

    def has_changes(self, id: Any) -> bool:
        record = self._buffer.get(id)
        return record.is_dirty if record is not None else False

    def get_dirty_records(self) -> List[ActiveRecord]:
        return [record for record in self._buffer.values() if record.is_dirty]

    def get_all(self) -> List[ActiveRecord]:
        return list(self._buffer.values())

    def __len__(self) -> int:
        return len(self._buffer)

    # -- Flushing --

    async def flush(self) -> None:
        """Write every dirty record to the queue, then empty the buffer.

        Flushes are serialized, so a flush started while another is running
        waits for it and then finds nothing left to write. If writing a
        record fails, the error propagates and the buffer is kept; records
        already written are marked clean.
        """
        self._start_auto_save()
        async with self._flush_lock:
            dirty_records = self.get_dirty_records()

            for record in dirty_records:
                if record.is_new:
                    await self.queue.add(copy.deepcopy(record.data))
                else:
                    await self.queue.update(str(record.id), copy.deepcopy(record.changes))

                record.is_dirty = False
                record.is_new = False
                record.changes = {}
                record.original_data = copy.deepcopy(record.data)

            if dirty_records:
                logger.debug(f"Flushed {len(dirty_records)} records")
            self._buffer.clear()

    def clear(self) -> None:
        """Drop every buffered record without flushing."""
        self._buffer.clear()

    def dispose(self) -> None:
        """Stop auto-saving and drop the buffer; pending changes are lost."""
        self._disposed = True
        self._stop_auto_save()
        pending = len(self.get_dirty_records())
        if pending:
            logger.warning(f"Disposing buffer with {pending} unflushed records")
        self.clear()
