"""Nested queue: an ordered, path-addressable record store.

:class:`NestedQueue` holds an ordered list of records. Every mutation is
expressed as a :class:`QueueAction` that runs through the middleware chain,
replaces the state copy-on-write, is saved to the persistence backend and
is finally announced to subscribers.

Typical usage example:

    ```python
    from nestkit_queue import EnhancedNestedQueue, InMemoryPersistence

    queue = EnhancedNestedQueue(
        [{"id": 1, "name": "Engineering", "employees": []}],
        persistence=InMemoryPersistence(),
    )

    await queue.add({"id": 7, "name": "Ada"}, "0.employees")
    await queue.update("0", {"name": "R&D"})
    await queue.sort("name", direction="desc")

    buffer = queue.get_buffer()
    record = await buffer.load(queue.get("0"))
    buffer.update(record.id, {"name": "Research"})
    await buffer.flush()
    ```
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from functools import cmp_to_key
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence, Set

from nestkit_config import EnvironmentOverrides, load_config

from .buffer import ActiveRecordBuffer
from .persistence import create_persistence
from .types import (
    ActionType,
    BufferOptions,
    FilterOptions,
    QueueAction,
    QueueData,
    QueueOptions,
    SearchOptions,
    SortOptions,
)
from .utils import QueueUtils, copy_along_path, get_value, put_child

logger = logging.getLogger(__name__)

Listener = Callable[[QueueData], Any]


class NestedQueue:
    """Ordered record store with middleware, persistence and subscriptions.

    State is never edited in place: each action replaces the top-level list
    and copies every nested container along the path it touches, so a
    reader holding an earlier :meth:`get_all` result keeps a consistent
    snapshot.

    Actions on one queue run one at a time. Each public mutator first waits
    for the optional autoload from persistence, then holds the queue's
    action lock through middleware, mutation, save and notification.

    Attributes:
        persistence: Backend saved to after each action (None for memory only)
        middleware: Hooks run around each action, in order
    """

    def __init__(
        self,
        initial_data: Sequence[Any] | None = None,
        options: QueueOptions | None = None,
        **kwargs: Any,
    ):
        """Initialize the queue.

        Args:
            initial_data: Records the queue starts with (copied)
            options: Queue options; keyword arguments build one when omitted
            **kwargs: ``persistence``, ``middleware`` and ``autoload``
        """
        options = options or QueueOptions(**kwargs)
        self._data: QueueData = list(initial_data or [])
        self._listeners: Dict[Listener, None] = {}
        self.middleware = list(options.middleware)
        self.persistence = options.persistence
        self.autoload = options.autoload
        self._lock = asyncio.Lock()
        self._bootstrap: asyncio.Future | None = None
        self._hook_tasks: Set[asyncio.Future] = set()

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; the first awaited call starts the autoload.
            pass
        else:
            self._start_bootstrap()

    @classmethod
    def from_config(
        cls,
        config: str | Path | Mapping[str, Any],
        initial_data: Sequence[Any] | None = None,
        middleware: List[Any] | None = None,
    ) -> NestedQueue:
        """Create a queue from a configuration mapping or YAML/JSON file.

        Recognized sections are ``queue`` (``autoload``), ``persistence``
        (``backend`` plus backend options) and, for queues with a buffer,
        ``buffer``. ``NESTKIT_<SECTION>__<KEY>`` environment variables
        override file values.

        Args:
            config: Configuration mapping or file path
            initial_data: Records the queue starts with
            middleware: Middleware to register, in order
        """
        settings = EnvironmentOverrides().apply(load_config(config))
        queue_settings = dict(settings.get("queue") or {})
        if settings.get("persistence"):
            queue_settings["persistence"] = create_persistence(**settings["persistence"])
        if middleware is not None:
            queue_settings["middleware"] = middleware
        options = QueueOptions.from_config(queue_settings)
        return cls._from_settings(settings, options, initial_data)

    @classmethod
    def _from_settings(
        cls,
        settings: Dict[str, Any],
        options: QueueOptions,
        initial_data: Sequence[Any] | None,
    ) -> NestedQueue:
        return cls(initial_data, options)

    # -- Subscriptions --

    def subscribe(self, callback: Listener) -> Callable[[], bool]:
        """Register a callback invoked with the new state after each action.

        Returns:
            A function that unregisters the callback and reports whether
            it was still registered
        """
        self._listeners[callback] = None

        def unsubscribe() -> bool:
            if callback in self._listeners:
                del self._listeners[callback]
                return True
            return False

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback(self._data)

    # -- Bootstrap --

    def _start_bootstrap(self) -> None:
        if self._bootstrap is None and self.autoload and self.persistence is not None:
            self._bootstrap = asyncio.ensure_future(self._load_from_persistence())

    async def ready(self) -> None:
        """Wait until the autoload from persistence (if any) has finished."""
        self._start_bootstrap()
        if self._bootstrap is not None:
            await self._bootstrap

    async def _load_from_persistence(self) -> None:
        if self.persistence is None:
            return

        try:
            persisted = await self.persistence.load()
            if persisted is not None:
                self._data = list(persisted)
                logger.debug(f"Loaded {len(self._data)} items from persistence")
                self._notify()
        except Exception:
            logger.exception("Failed to load persisted data")

    # -- Action pipeline --

    async def _execute_action(self, action: QueueAction) -> None:
        await self.ready()
        async with self._lock:
            current: QueueAction | None = action
            for m in self.middleware:
                hook = getattr(m, "before_action", None)
                if hook is None:
                    continue
                result = hook(current)
                if inspect.isawaitable(result):
                    self._schedule_hook(result)
                    continue
                current = result
                if not current:
                    logger.debug(f"{action.type.value} action cancelled by {type(m).__name__}")
                    return

            if not self._apply(current):
                return

            for m in self.middleware:
                hook = getattr(m, "after_action", None)
                if hook is None:
                    continue
                result = hook(current, self._data)
                if inspect.isawaitable(result):
                    self._schedule_hook(result)

            if self.persistence is not None:
                await self.persistence.save(self._data)

            self._notify()

    def _schedule_hook(self, awaitable: Any) -> None:
        """Run an asynchronous hook result in the background."""
        task = asyncio.ensure_future(awaitable)
        self._hook_tasks.add(task)
        task.add_done_callback(self._hook_done)

    def _hook_done(self, task: asyncio.Future) -> None:
        self._hook_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Asynchronous middleware hook failed", exc_info=task.exception())

    def _apply(self, action: QueueAction) -> bool:
        """Run the mutator for ``action``; False when nothing changed."""
        if action.type is ActionType.ADD:
            return self._execute_add(action.payload, action.path or "")
        elif action.type is ActionType.REMOVE:
            return self._execute_remove(action.path or "")
        elif action.type is ActionType.UPDATE:
            return self._execute_update(action.path or "", action.payload)
        elif action.type is ActionType.SORT:
            payload = action.payload or {}
            return self._execute_sort(payload.get("key"), payload.get("options") or SortOptions())
        elif action.type is ActionType.CLEAR:
            self._data = []
            return True
        raise ValueError(f"Unknown action type: {action.type}")

    def _execute_add(self, item: Any, path: str) -> bool:
        new_data, target = copy_along_path(self._data, QueueUtils.parse_path(path))
        if not isinstance(target, list):
            return False
        target.append(item)
        self._data = new_data
        return True

    def _execute_remove(self, path: str) -> bool:
        keys = QueueUtils.parse_path(path)
        if not keys:
            return False
        index = keys.pop()
        new_data, target = copy_along_path(self._data, keys)
        if not isinstance(target, list) or not _in_range(target, index):
            return False
        del target[int(index)]
        self._data = new_data
        return True

    def _execute_update(self, path: str, value: Mapping[str, Any]) -> bool:
        existing = get_value(self._data, path)
        if not isinstance(existing, Mapping):
            return False
        keys = QueueUtils.parse_path(path)
        last_key = keys.pop()
        new_data, parent = copy_along_path(self._data, keys)
        put_child(parent, last_key, {**existing, **value})
        self._data = new_data
        return True

    def _execute_sort(self, key: str | Sequence[str] | None, options: SortOptions) -> bool:
        new_data, target = copy_along_path(self._data, QueueUtils.parse_path(options.path))
        if not isinstance(target, list):
            return False

        if isinstance(key, str) or key is None:
            def field_value(item: Any) -> Any:
                return item.get(key) if isinstance(item, Mapping) else None
        else:
            segments = list(key)

            def field_value(item: Any) -> Any:
                return get_value(item, segments)

        if options.sort_fn is not None:
            sort_key = cmp_to_key(options.sort_fn)
        else:
            sort_key = cmp_to_key(
                lambda a, b: QueueUtils.compare_values(
                    field_value(a), field_value(b), options.direction
                )
            )

        def sort_list(items: List[Any], depth: int) -> None:
            items.sort(key=sort_key)
            if not options.deep or (options.max_depth is not None and depth >= options.max_depth):
                return
            for i, item in enumerate(items):
                if not isinstance(item, Mapping):
                    continue
                nested = {k: v for k, v in item.items() if isinstance(v, list)}
                if not nested:
                    continue
                copied = dict(item)
                for k, v in nested.items():
                    copied[k] = list(v)
                    sort_list(copied[k], depth + 1)
                items[i] = copied

        sort_list(target, 0)
        self._data = new_data
        return True

    # -- Public mutators --

    async def add(self, item: Any, path: str = "") -> None:
        """Append ``item`` to the list at ``path`` (the root list by default).

        Does nothing if ``path`` does not address a list.
        """
        await self._execute_action(QueueAction(ActionType.ADD, payload=item, path=path))

    async def remove(self, path: str) -> None:
        """Remove the list element addressed by ``path``.

        The last segment is an index into the list addressed by the rest of
        the path. Does nothing if that is not a list or the index is out
        of range.
        """
        await self._execute_action(QueueAction(ActionType.REMOVE, path=path))

    async def update(self, path: str, value: Mapping[str, Any]) -> None:
        """Shallow-merge ``value`` into the mapping at ``path``.

        Does nothing if no mapping exists at ``path``.
        """
        await self._execute_action(QueueAction(ActionType.UPDATE, payload=value, path=path))

    async def sort(
        self,
        key: str | Sequence[str] | None = None,
        options: SortOptions | None = None,
        **kwargs: Any,
    ) -> None:
        """Sort the root list (or the list at ``options.path``).

        Args:
            key: Field name, or a sequence of path segments for a nested field
            options: Sort options; keyword arguments build one when omitted
        """
        options = options or SortOptions(**kwargs)
        await self._execute_action(
            QueueAction(ActionType.SORT, payload={"key": key, "options": options})
        )

    async def clear(self) -> None:
        """Replace the state with an empty list."""
        await self._execute_action(QueueAction(ActionType.CLEAR))

    async def clear_persistence(self) -> None:
        """Erase persisted state; in-memory state is left untouched."""
        if self.persistence is not None:
            await self.persistence.clear()

    # -- Reads --

    def get(self, path: str) -> Any:
        """Return the value at ``path``, or None."""
        return get_value(self._data, path)

    def get_all(self) -> QueueData:
        """Return the current state list (treat it as read-only)."""
        return self._data

    def __len__(self) -> int:
        return len(self._data)

    def search(
        self,
        query: str | Mapping[str, Any],
        options: SearchOptions | None = None,
        **kwargs: Any,
    ) -> QueueData:
        """Return the top-level records matching ``query``.

        A string query matches any string value (substring match unless
        ``exact``). A mapping query requires every key/path in it to hold a
        matching value. ``paths`` restricts a string query to those
        locations; ``deep`` also inspects nested containers.
        """
        options = options or SearchOptions(**kwargs)

        def text_matches(value: Any, text: str) -> bool:
            if not isinstance(value, str):
                return False
            if not options.case_sensitive:
                value, text = value.lower(), text.lower()
            return value == text if options.exact else text in value

        def value_matches(value: Any, expected: Any) -> bool:
            if isinstance(expected, str):
                return text_matches(value, expected)
            return value == expected

        def any_value_matches(value: Any, text: str, deep: bool) -> bool:
            if isinstance(value, Mapping):
                values = list(value.values())
            elif isinstance(value, list):
                values = value
            else:
                return text_matches(value, text)
            return any(
                text_matches(v, text)
                or (deep and isinstance(v, (Mapping, list)) and any_value_matches(v, text, deep))
                for v in values
            )

        def record_matches(record: Any) -> bool:
            if isinstance(query, Mapping):
                return all(
                    value_matches(get_value(record, str(k)), v) for k, v in query.items()
                )
            if options.paths:
                return any(
                    any_value_matches(get_value(record, p), query, options.deep)
                    for p in options.paths
                )
            return any_value_matches(record, query, options.deep)

        return [record for record in self._data if record_matches(record)]

    def filter(
        self,
        predicate: Callable[[Any], bool],
        options: FilterOptions | None = None,
        **kwargs: Any,
    ) -> QueueData:
        """Return the records satisfying ``predicate``.

        With ``deep``, records nested in list-valued fields (down to
        ``max_depth`` levels) are checked too and follow their parent in
        the result.
        """
        options = options or FilterOptions(**kwargs)
        results: QueueData = []

        def visit(items: List[Any], depth: int) -> None:
            for item in items:
                if predicate(item):
                    results.append(item)
                if not options.deep or not isinstance(item, Mapping):
                    continue
                if options.max_depth is not None and depth >= options.max_depth:
                    continue
                for value in item.values():
                    if isinstance(value, list):
                        visit(value, depth + 1)

        visit(self._data, 0)
        return results

    def find_one(self, predicate: Callable[[Any], bool]) -> Any:
        """Return the first top-level record satisfying ``predicate``, or None."""
        return next((record for record in self._data if predicate(record)), None)


def _in_range(target: List[Any], index: str) -> bool:
    try:
        position = int(index)
    except ValueError:
        return False
    return -len(target) <= position < len(target)


class EnhancedNestedQueue(NestedQueue):
    """Nested queue with an attached :class:`ActiveRecordBuffer`."""

    def __init__(
        self,
        initial_data: Sequence[Any] | None = None,
        options: QueueOptions | None = None,
        buffer_options: BufferOptions | None = None,
        **kwargs: Any,
    ):
        super().__init__(initial_data, options, **kwargs)
        self._active_record_buffer = ActiveRecordBuffer(self, buffer_options)

    @classmethod
    def _from_settings(
        cls,
        settings: Dict[str, Any],
        options: QueueOptions,
        initial_data: Sequence[Any] | None,
    ) -> EnhancedNestedQueue:
        buffer_options = BufferOptions.from_config(dict(settings.get("buffer") or {}))
        return cls(initial_data, options, buffer_options)

    def get_buffer(self) -> ActiveRecordBuffer:
        """Return the record buffer attached to this queue."""
        return self._active_record_buffer
