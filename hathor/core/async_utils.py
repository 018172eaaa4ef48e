"""Async utilities shared by the registration pipeline and transport."""

import asyncio
import inspect
from collections.abc import Awaitable
from typing import Any, TypeVar


T = TypeVar("T")


async def maybe_await(value: T | Awaitable[T]) -> T:
    """Await ``value`` if it is awaitable, otherwise return it unchanged.

    Lets plugin factories, register callables and hooks be either plain
    functions or coroutines.
    """
    if inspect.isawaitable(value):
        return await value  # type: ignore[no-any-return]
    return value  # type: ignore[return-value]


async def call_maybe_async(
    func: Any, *args: Any, timeout: float | None = None
) -> Any:
    """Call ``func`` and await its result, optionally bounded by ``timeout``.

    Raises:
        TimeoutError: If the awaited result does not finish within timeout
    """
    result = func(*args)
    if not inspect.isawaitable(result):
        return result
    if timeout is not None:
        return await asyncio.wait_for(result, timeout=timeout)
    return await result
