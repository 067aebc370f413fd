"""Path based access to nested dictionaries and lists.

Paths use dot notation with optional bracket indices, e.g.
``"user.contacts[0].email"`` is equivalent to ``"user.contacts.0.email"``.
Numeric segments index into lists.
"""

import re
from typing import Any, Callable, Dict, List

_BRACKET_RE = re.compile(r"\[(\w+)\]")
_EMPTY_BRACKET_RE = re.compile(r"\[\s*\]")


def _split_path(path: str) -> List[str]:
    return [part for part in _BRACKET_RE.sub(r".\1", path).split(".") if part]


def _is_index(key: str) -> bool:
    return key.isdigit()


def _child(container: Any, key: str) -> Any:
    if isinstance(container, list):
        if _is_index(key) and int(key) < len(container):
            return container[int(key)]
        return None
    if isinstance(container, dict):
        if key in container:
            return container[key]
        if _is_index(key):
            return container.get(int(key))
        return None
    return None


def _has_child(container: Any, key: str) -> bool:
    if isinstance(container, list):
        return _is_index(key) and int(key) < len(container)
    return key in container


def _assign(container: Any, key: str, value: Any) -> None:
    if isinstance(container, list):
        index = int(key)
        if index >= len(container):
            container.extend([None] * (index + 1 - len(container)))
        container[index] = value
    else:
        container[key] = value


def get_nested_value(path: str, obj: Any) -> Any:
    """Get a nested value from an object using a path string.

    Args:
        path: Dot notation path (e.g. ``"user.contacts[0].email"``)
        obj: Source object to extract the value from

    Returns:
        The value at ``path``, or None if the path is empty, malformed
        (``..`` or ``[]``) or does not resolve
    """
    if not path or obj is None:
        return None

    if ".." in path or _EMPTY_BRACKET_RE.search(path):
        return None

    parts = _split_path(path)
    if not parts:
        return None

    current = obj
    for part in parts:
        if not isinstance(current, (dict, list)):
            return None
        current = _child(current, part)
    return current


def set_nested_value(path: str, value: Any, obj: Any) -> Any:
    """Set a nested value in an object using a path string.

    Missing intermediate containers are created: a list when the following
    segment is numeric, a dict otherwise. Lists are padded with None up to
    the requested index.

    Args:
        path: Dot notation path (e.g. ``"user.contacts[0].email"``)
        value: Value to set at path
        obj: Target object, modified in place

    Returns:
        ``obj``
    """
    if not path or obj is None:
        return obj

    parts = _split_path(path)
    if not parts:
        return obj

    last_key = parts.pop()
    current = obj

    for i, key in enumerate(parts):
        next_key = parts[i + 1] if i + 1 < len(parts) else last_key
        should_be_list = _is_index(next_key)
        if isinstance(current, list) and not _is_index(key):
            # a named key cannot address a list element
            return obj

        existing = _child(current, key) if _has_child(current, key) else None
        if (
            existing is None
            or (should_be_list and not isinstance(existing, list))
            or (not should_be_list and not isinstance(existing, (dict, list)))
        ):
            existing = [] if should_be_list else {}
            _assign(current, key, existing)

        current = existing

    if isinstance(current, list) and not _is_index(last_key):
        return obj
    _assign(current, last_key, value)
    return obj


def find_object_path(obj: Any, criteria: Dict[str, Any]) -> List[str]:
    """Find the paths of all mappings containing every ``criteria`` pair.

    Paths use bracket notation for list indices and are accepted by
    :func:`get_nested_value` and :func:`set_nested_value`. The root object
    itself is reported as ``""``.
    """
    results: List[str] = []
    if not isinstance(obj, (dict, list)) or not criteria:
        return results

    def search(current: Any, path: str) -> None:
        if isinstance(current, dict):
            if all(key in current and current[key] == value for key, value in criteria.items()):
                results.append(path)
            for key, value in current.items():
                search(value, f"{path}.{key}" if path else str(key))
        elif isinstance(current, list):
            for i, item in enumerate(current):
                search(item, f"{path}[{i}]" if path else f"[{i}]")

    search(obj, "")
    return results


def find_objects_by_key_values(
    obj: Any,
    criteria: Dict[str, Any],
    partial_match: bool = False,
    max_depth: int | None = None,
    return_first_match: bool = False,
    case_sensitive: bool = True,
    custom_compare: Callable[[Any, Any], bool] | None = None,
) -> List[str]:
    """Find paths of objects matching key/value criteria.

    Args:
        obj: Structure to search
        criteria: Key/value pairs to match
        partial_match: Match when any (rather than every) criterion matches
        max_depth: Stop descending below this depth (None for unbounded)
        return_first_match: Stop after the first match
        case_sensitive: Compare strings case-sensitively
        custom_compare: Comparison used instead of equality

    Returns:
        Paths of the matching objects in traversal order
    """
    if not isinstance(obj, (dict, list)) or not criteria:
        return []

    results: List[str] = []

    def values_match(a: Any, b: Any) -> bool:
        if custom_compare is not None:
            return custom_compare(a, b)
        if not case_sensitive and isinstance(a, str) and isinstance(b, str):
            return a.lower() == b.lower()
        return a == b

    def search(current: Any, path: str, depth: int) -> bool:
        if max_depth is not None and depth > max_depth:
            return False

        if isinstance(current, dict):
            matches = sum(
                1 for key, value in criteria.items()
                if key in current and values_match(current[key], value)
            )
            if (matches > 0) if partial_match else (matches == len(criteria)):
                results.append(path)
                if return_first_match:
                    return True
            children = [
                (f"{path}.{key}" if path else str(key), value)
                for key, value in current.items()
            ]
        else:
            children = [
                (f"{path}[{i}]" if path else f"[{i}]", item)
                for i, item in enumerate(current)
            ]

        for child_path, child in children:
            if isinstance(child, (dict, list)) and search(child, child_path, depth + 1):
                return True
        return False

    search(obj, "", 0)
    return results
