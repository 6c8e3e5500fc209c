"""
Sync wrapper generator for async clients.

Generates a blocking class from an async one at import time. Each sync
instance owns a private event loop, so the wrapped client keeps one
connection pool across calls.

Usage:
    class AsyncConManager:
        async def get(self, endpoint: str, data=None) -> Any:
            ...

        async def download_stream(self, remote_path: str) -> AsyncIterator[bytes]:
            ...

    ConManager = create_sync_client(AsyncConManager)
    ConManager("http://server/ContentManager").get("players")
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import inspect
from typing import Any, Callable, Coroutine, Iterator, TypeVar

T = TypeVar("T")


def _run_sync(loop: asyncio.AbstractEventLoop, coro: Coroutine[Any, Any, T]) -> T:
    """Run coroutine to completion on the instance loop."""
    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None

    if running is not None:
        # Called from async code - drive the private loop from a worker thread
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(loop.run_until_complete, coro).result()
    return loop.run_until_complete(coro)


def _make_sync_method(async_method: Callable) -> Callable:
    """Convert async method to sync method."""

    @functools.wraps(async_method)
    def sync_method(self, *args, **kwargs):
        coro = async_method(self._async_client, *args, **kwargs)
        return _run_sync(self._loop, coro)

    return sync_method


def _make_sync_generator(async_method: Callable) -> Callable:
    """Convert async generator method to a lazily-driven sync generator."""

    @functools.wraps(async_method)
    def sync_generator(self, *args, **kwargs) -> Iterator:
        agen = async_method(self._async_client, *args, **kwargs)
        try:
            while True:
                try:
                    yield _run_sync(self._loop, agen.__anext__())
                except StopAsyncIteration:
                    break
        finally:
            _run_sync(self._loop, agen.aclose())

    return sync_generator


def create_sync_client(async_class: type) -> type:
    """
    Create sync client class from async client class.

    Public coroutine methods become blocking methods, async generator methods
    become generators, and public properties are forwarded.

    Args:
        async_class: Async client class

    Returns:
        New sync class; its constructor takes the same arguments.
    """
    sync_name = async_class.__name__
    if sync_name.startswith("Async"):
        sync_name = sync_name[5:]

    class_dict: dict[str, Any] = {}

    for name in dir(async_class):
        if name.startswith("_"):
            continue
        attr = getattr(async_class, name)

        if inspect.isasyncgenfunction(attr):
            class_dict[name] = _make_sync_generator(attr)
        elif inspect.iscoroutinefunction(attr):
            class_dict[name] = _make_sync_method(attr)
        elif isinstance(attr, property):
            class_dict[name] = _make_property_forwarder(name)

    def sync_init(self, *args, **kwargs):
        self._loop = asyncio.new_event_loop()
        self._async_client = async_class(*args, **kwargs)

    async_close = class_dict.get("close")

    def sync_close(self) -> None:
        if self._loop.is_closed():
            return
        if async_close is not None:
            async_close(self)
        self._loop.close()

    def sync_enter(self):
        return self

    def sync_exit(self, *args: Any) -> None:
        self.close()

    def sync_repr(self) -> str:
        return repr(self._async_client).replace(async_class.__name__, sync_name, 1)

    class_dict.update(
        {
            "__init__": sync_init,
            "__doc__": async_class.__doc__,
            "__module__": async_class.__module__,
            "__enter__": sync_enter,
            "__exit__": sync_exit,
            "__repr__": sync_repr,
            "close": sync_close,
        }
    )

    return type(sync_name, (), class_dict)


def _make_property_forwarder(prop_name: str) -> property:
    @property
    def forwarder(self):
        return getattr(self._async_client, prop_name)

    return forwarder
