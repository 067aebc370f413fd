"""Async timing helpers: waiting, debouncing, throttling and measuring.

All durations are in milliseconds. ``debounce`` and ``throttle`` schedule
work on the running asyncio event loop, so the wrapped callables must be
invoked from within a running loop.
"""

import asyncio
import functools
import time
from typing import Any, Awaitable, Callable, Tuple, TypeVar

from nestkit_common.exceptions import TimeoutError

R = TypeVar("R")


async def wait_until(
    condition: Callable[[], bool],
    timeout: float = 5000,
    interval: float = 100,
) -> None:
    """Wait until ``condition()`` returns a truthy value.

    Args:
        condition: Callable polled every ``interval`` milliseconds
        timeout: Maximum time to wait in milliseconds
        interval: Delay between checks in milliseconds

    Raises:
        TimeoutError: If the condition is still false after ``timeout``
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout / 1000
    while True:
        await asyncio.sleep(interval / 1000)
        if condition():
            return
        if loop.time() >= deadline:
            raise TimeoutError("Wait Timeout", context={"timeout_ms": timeout})


def debounce(func: Callable[..., Any], wait: float) -> Callable[..., None]:
    """Delay calls to ``func`` until ``wait`` ms have passed since the last call.

    Only the most recent call's arguments are used.
    """
    handle: asyncio.TimerHandle | None = None

    @functools.wraps(func)
    def debounced(*args: Any, **kwargs: Any) -> None:
        nonlocal handle
        if handle is not None:
            handle.cancel()
        loop = asyncio.get_running_loop()
        handle = loop.call_later(wait / 1000, functools.partial(func, *args, **kwargs))

    return debounced


def throttle(func: Callable[..., Any], limit: float) -> Callable[..., None]:
    """Call ``func`` at most once per ``limit`` ms; extra calls are dropped."""
    in_throttle = False

    def release() -> None:
        nonlocal in_throttle
        in_throttle = False

    @functools.wraps(func)
    def throttled(*args: Any, **kwargs: Any) -> None:
        nonlocal in_throttle
        if in_throttle:
            return
        func(*args, **kwargs)
        in_throttle = True
        asyncio.get_running_loop().call_later(limit / 1000, release)

    return throttled


async def measure_time(fn: Callable[[], Awaitable[R]]) -> Tuple[R, float]:
    """Await ``fn()`` and return its result with the elapsed milliseconds."""
    start = time.perf_counter()
    result = await fn()
    return result, (time.perf_counter() - start) * 1000
