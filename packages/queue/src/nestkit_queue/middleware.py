"""Middleware hooks run around every queue action.

A middleware may implement either hook:

- ``before_action(action)`` returns the action to execute (possibly a
  transformed copy) or a falsy value to cancel it.
- ``after_action(action, state)`` observes the executed action and the
  resulting state.

Hooks run synchronously in registration order. A hook may also be a
coroutine function: its coroutine is scheduled as a background task and not
awaited by the queue, and an asynchronous ``before_action`` leaves the
action unchanged.

Example:
    ```python
    class StampMiddleware(Middleware):
        def before_action(self, action):
            if action.type is ActionType.ADD:
                action.payload = {**action.payload, "stamped": True}
            return action

    queue = NestedQueue(middleware=[StampMiddleware(), LoggingMiddleware()])
    ```
"""

from __future__ import annotations

import json
import logging
from typing import Iterable

from .types import ActionType, QueueAction, QueueData

logger = logging.getLogger(__name__)


class Middleware:
    """Base class for queue middleware; both hooks default to pass-through."""

    def before_action(self, action: QueueAction) -> QueueAction | None:
        """Called before an action mutates state.

        Args:
            action: The action about to run

        Returns:
            The action to run, or None to cancel it
        """
        return action

    def after_action(self, action: QueueAction, state: QueueData) -> None:
        """Called after an action has mutated state.

        Args:
            action: The action that ran
            state: The queue's state after the action
        """
        return None


class LoggingMiddleware(Middleware):
    """Logs every action and the size of the resulting state.

    Attributes:
        log_level: Logging level to use (default: INFO)
        include_payload: Whether to include action payloads in the log
        json_format: Whether to output logs as JSON objects

    Example:
        ```python
        queue = NestedQueue(middleware=[LoggingMiddleware(log_level="DEBUG")])
        ```
    """

    def __init__(
        self,
        log_level: str = "INFO",
        include_payload: bool = False,
        json_format: bool = False,
    ):
        self.log_level = log_level
        self.include_payload = include_payload
        self.json_format = json_format
        self._level = getattr(logging, log_level.upper())
        self._logger = logging.getLogger(f"{__name__}.ActionLogger")

    def _emit(self, log_data: dict) -> None:
        if self.json_format:
            self._logger.log(self._level, json.dumps(log_data, default=str))
        else:
            details = " ".join(f"{k}={v!r}" for k, v in log_data.items() if k != "event")
            self._logger.log(self._level, f"{log_data['event']}: {details}")

    def before_action(self, action: QueueAction) -> QueueAction:
        log_data = {
            "event": "queue_action",
            "type": action.type.value,
            "path": action.path,
        }
        if self.include_payload:
            log_data["payload"] = action.payload
        self._emit(log_data)
        return action

    def after_action(self, action: QueueAction, state: QueueData) -> None:
        self._emit({
            "event": "queue_state",
            "type": action.type.value,
            "size": len(state),
        })


class ReadOnlyMiddleware(Middleware):
    """Cancels actions of the given types (all types by default).

    Example:
        ```python
        # Items may be added and updated but never removed or cleared
        guard = ReadOnlyMiddleware([ActionType.REMOVE, ActionType.CLEAR])
        ```
    """

    def __init__(self, blocked: Iterable[ActionType | str] | None = None):
        if blocked is None:
            self.blocked = set(ActionType)
        else:
            self.blocked = {ActionType(b) for b in blocked}

    def before_action(self, action: QueueAction) -> QueueAction | None:
        if action.type in self.blocked:
            logger.debug(f"Cancelled {action.type.value} action at path {action.path!r}")
            return None
        return action
