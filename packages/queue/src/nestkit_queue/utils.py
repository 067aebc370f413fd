"""Path access, cloning and comparison helpers for the nested queue.

Paths are dot-delimited key sequences (``"0.employees.1"``); numeric
segments index into lists. Lookups never raise: a missing or
non-indexable step yields None.
"""

from __future__ import annotations

import copy
from typing import Any, List, Mapping, Sequence, Tuple

from .exceptions import MissingIdentifierError


def _resolve_key(container: dict, key: str) -> Any:
    if key in container:
        return key
    if key.lstrip("-").isdigit() and int(key) in container:
        return int(key)
    return key


def _list_index(container: list, key: Any) -> int | None:
    try:
        index = int(key)
    except (TypeError, ValueError):
        return None
    if -len(container) <= index < len(container):
        return index
    return None


def get_child(container: Any, key: Any) -> Any:
    """Return ``container[key]`` for a dict or list, or None."""
    if isinstance(container, list):
        index = _list_index(container, key)
        return container[index] if index is not None else None
    if isinstance(container, dict):
        return container.get(_resolve_key(container, str(key)))
    return None


def put_child(container: Any, key: Any, value: Any) -> bool:
    """Assign ``container[key] = value``; return False if not addressable.

    A list accepts an existing index or the index one past its end
    (which appends).
    """
    if isinstance(container, list):
        index = _list_index(container, key)
        if index is not None:
            container[index] = value
            return True
        if str(key).isdigit() and int(key) == len(container):
            container.append(value)
            return True
        return False
    if isinstance(container, dict):
        container[_resolve_key(container, str(key))] = value
        return True
    return False


def get_value(container: Any, path: str | Sequence[str]) -> Any:
    """Resolve ``path`` inside ``container``; None if it does not resolve."""
    keys = QueueUtils.parse_path(path) if isinstance(path, str) else list(path)
    if not keys:
        return None
    current = container
    for key in keys:
        current = get_child(current, key)
        if current is None:
            return None
    return current


def set_value(container: Any, path: str, value: Any) -> Any:
    """Assign ``value`` at ``path`` inside ``container`` in place.

    Every segment but the last must address a container; a missing (or
    scalar) intermediate is replaced by a new empty dict. A numeric final
    segment is not turned into a list index on a dict: callers needing list
    semantics must create the list first.

    Returns:
        ``container``
    """
    keys = QueueUtils.parse_path(path)
    if not keys:
        return container
    last_key = keys.pop()
    current = container
    for key in keys:
        child = get_child(current, key)
        if not isinstance(child, (dict, list)):
            child = {}
            if not put_child(current, key, child):
                return container
        current = child
    put_child(current, last_key, value)
    return container


def copy_along_path(root: List[Any], keys: Sequence[str]) -> Tuple[List[Any], Any]:
    """Copy ``root`` and every container that ``keys`` walks through.

    Returns:
        The new root and the copied container at the end of ``keys``, or
        None in its place when a step does not address a container. Values
        the path does not touch are shared with the old root.
    """
    new_root = list(root)
    current: Any = new_root
    for key in keys:
        child = get_child(current, key)
        if isinstance(child, list):
            child = list(child)
        elif isinstance(child, dict):
            child = dict(child)
        else:
            return new_root, None
        put_child(current, key, child)
        current = child
    return new_root, current


def _text_key(text: str) -> Tuple[str, str]:
    return text.casefold(), text.swapcase()


def get_record_id(record: Mapping[str, Any]) -> Any:
    """Return a record's ``id`` field, falling back to its ``key`` field.

    Raises:
        MissingIdentifierError: If the record has neither field
    """
    if isinstance(record, Mapping):
        if "id" in record:
            return record["id"]
        if "key" in record:
            return record["key"]
    raise MissingIdentifierError(record)


class QueueUtils:
    """Static helpers mirroring the queue's internal path handling."""

    @staticmethod
    def deep_clone(obj: Any) -> Any:
        return copy.deepcopy(obj)

    @staticmethod
    def create_path(parts: Sequence[str | int]) -> str:
        return ".".join(str(part) for part in parts)

    @staticmethod
    def parse_path(path: str) -> List[str]:
        """Split a dotted path; the empty path has no segments."""
        if not path:
            return []
        return path.split(".")

    @staticmethod
    def get_value_at_path(obj: Any, path: str) -> Any:
        return get_value(obj, path)

    @staticmethod
    def set_value_at_path(obj: Any, path: str, value: Any) -> Any:
        """Return a deep copy of ``obj`` with ``value`` set at ``path``."""
        return set_value(copy.deepcopy(obj), path, value)

    @staticmethod
    def compare_values(a: Any, b: Any, direction: str = "asc") -> int:
        """Three-way comparison used by key based sorting.

        None sorts first in ascending order and last in descending order.
        Values of different types are compared by their string forms.
        Strings compare case-insensitively first, with lowercase before
        uppercase on ties, so ``["b", "A", "a"]`` sorts as ``a, A, b``.
        """
        if a is None and b is None:
            return 0
        if a is None:
            return -1 if direction == "asc" else 1
        if b is None:
            return 1 if direction == "asc" else -1

        numeric = (int, float)
        if type(a) is not type(b) and not (isinstance(a, numeric) and isinstance(b, numeric)):
            a, b = str(a), str(b)

        if isinstance(a, str) and isinstance(b, str):
            a, b = _text_key(a), _text_key(b)

        try:
            result = (a > b) - (a < b)
        except TypeError:
            a, b = str(a), str(b)
            result = (a > b) - (a < b)

        return result if direction == "asc" else -result
