"""
Async utilities for layerconf.

Loading is async end to end (secret lookups run concurrently); these helpers
let sync callers use it and let providers drive sync or async SDK clients.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")


def dual(func: Callable[..., Awaitable[T]]) -> Callable[..., T]:
    """
    Decorator: lets an async entry point be called from sync or async code.

    Outside an event loop the call blocks and returns the result; inside a
    running loop it returns the coroutine for the caller to await.

    Usage:
        @dual
        async def load(options):
            ...

        config = load(options)          # sync script
        config = await load(options)    # inside a service
    """
    if not inspect.iscoroutinefunction(func):
        raise TypeError("@dual can only be applied to async def functions")

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(func(*args, **kwargs))
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


async def call_maybe_async(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """
    Call a backend client method whether it is sync or async.

    Coroutine functions (asyncio SDK clients) are awaited directly. Blocking
    calls run in a worker thread so concurrent callers don't stall the event
    loop; if such a call hands back an awaitable it is awaited too.

    Exceptions raised by ``func`` propagate unchanged.
    """
    if inspect.iscoroutinefunction(func):
        return await func(*args, **kwargs)

    result = await asyncio.to_thread(func, *args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
