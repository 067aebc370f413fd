"""Data types shared by the nested queue, its middleware and its buffer."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List

from nestkit_common import ConfigurationError

if TYPE_CHECKING:
    from .middleware import Middleware
    from .persistence.base import PersistenceAdapter

Record = Dict[str, Any]
QueueData = List[Any]
Comparator = Callable[[Any, Any], int]


class ActionType(str, Enum):
    """Kinds of state-changing actions a queue executes."""

    ADD = "add"
    REMOVE = "remove"
    UPDATE = "update"
    SORT = "sort"
    CLEAR = "clear"


@dataclass
class QueueAction:
    """A single mutation flowing through the middleware chain.

    Attributes:
        type: What kind of mutation this is
        payload: Item to add, partial value to merge, or sort parameters
        path: Dot-delimited location the action applies to
    """

    type: ActionType
    payload: Any = None
    path: str | None = None


@dataclass
class SortOptions:
    """Options for :meth:`NestedQueue.sort`.

    Attributes:
        deep: Also sort list-valued fields of the sorted elements
        max_depth: Maximum recursion depth for ``deep`` (None for unbounded)
        path: Location of the list to sort ("" for the root sequence)
        direction: ``"asc"`` or ``"desc"``
        sort_fn: Comparator returning a negative, zero or positive number;
            replaces the key based comparison when given
    """

    deep: bool = True
    max_depth: int | None = None
    path: str = ""
    direction: str = "asc"
    sort_fn: Comparator | None = None

    def __post_init__(self) -> None:
        if self.direction not in ("asc", "desc"):
            raise ConfigurationError(
                f"Invalid sort direction: {self.direction}",
                context={"direction": self.direction},
            )


@dataclass
class SearchOptions:
    """Options for :meth:`NestedQueue.search`."""

    exact: bool = False
    case_sensitive: bool = False
    deep: bool = False
    paths: List[str] | None = None


@dataclass
class FilterOptions:
    """Options for :meth:`NestedQueue.filter`."""

    deep: bool = False
    max_depth: int | None = None


def _options_from_config(cls: type, config: Dict[str, Any]) -> Any:
    known = {f.name for f in fields(cls)}
    unknown = set(config) - known
    if unknown:
        raise ConfigurationError(
            f"Unknown {cls.__name__} keys: {', '.join(sorted(unknown))}",
            context={"unknown": sorted(unknown), "allowed": sorted(known)},
        )
    return cls(**config)


@dataclass
class QueueOptions:
    """Construction options for :class:`NestedQueue`.

    Attributes:
        persistence: Backend the full state is saved to after every action
        middleware: Hooks run around every action, in order
        autoload: Load the persisted state once before the first action
    """

    persistence: PersistenceAdapter | None = None
    middleware: List[Middleware] = field(default_factory=list)
    autoload: bool = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> QueueOptions:
        """Create options from a ``queue`` configuration section."""
        return _options_from_config(cls, config)


@dataclass
class BufferOptions:
    """Construction options for :class:`ActiveRecordBuffer`.

    Attributes:
        auto_save: Flush on a recurring timer
        buffer_size: Flush after a load leaves more records than this buffered
        flush_interval: Milliseconds between automatic flushes
    """

    auto_save: bool = True
    buffer_size: int = 100
    flush_interval: float = 5000

    def __post_init__(self) -> None:
        if self.buffer_size < 0:
            raise ConfigurationError(
                "buffer_size must not be negative", context={"buffer_size": self.buffer_size}
            )
        if self.flush_interval <= 0:
            raise ConfigurationError(
                "flush_interval must be positive",
                context={"flush_interval": self.flush_interval},
            )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> BufferOptions:
        """Create options from a ``buffer`` configuration section."""
        return _options_from_config(cls, config)


@dataclass(eq=False)
class ActiveRecord:
    """Buffer-local wrapper tracking the unsaved state of one record.

    Attributes:
        data: Current (possibly modified) record value
        id: Identifier fixed when the record entered the buffer
        is_dirty: True while there are unflushed changes or the record is new
        is_new: True for records created in the buffer and not yet flushed
        changes: Cumulative fields changed since the last flush
        original_data: Value to restore on rollback
    """

    data: Record
    id: Any
    is_dirty: bool = False
    is_new: bool = False
    changes: Record = field(default_factory=dict)
    original_data: Record = field(default_factory=dict)
