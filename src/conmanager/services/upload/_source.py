"""
Adapters turning upload sources into byte chunks.

Content Manager does not accept ``Transfer-Encoding: chunked``, so the
length of a source is detected upfront when possible.
"""

from __future__ import annotations

import inspect
import os
from typing import Any, AsyncIterable, AsyncIterator, BinaryIO, Iterable, Union

import httpx

UploadSource = Union[
    bytes,
    bytearray,
    memoryview,
    BinaryIO,
    httpx.Response,
    AsyncIterable[bytes],
    Iterable[bytes],
]


def detect_length(source: Any) -> int:
    """
    Total byte length of ``source``, or 0 when it cannot be known upfront.

    Known lengths come from in-memory buffers, files (``fstat``) and HTTP
    responses carrying a ``content-length`` header. Async file objects are
    read chunk by chunk with unknown length.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return len(source)

    if isinstance(source, httpx.Response):
        if source.is_stream_consumed:
            # Already decoded; the header counts the encoded bytes
            return len(source.content)
        value = source.headers.get("content-length", "")
        return int(value) if value.isdigit() else 0

    # Async file objects (aiofiles) have an awaitable tell()
    if inspect.iscoroutinefunction(getattr(source, "read", None)):
        return 0

    fileno = getattr(source, "fileno", None)
    if fileno is None:
        return 0
    try:
        size = os.fstat(fileno()).st_size
        position = source.tell() if hasattr(source, "tell") else 0
    except (OSError, ValueError):
        return 0
    return max(size - position, 0)


async def iter_chunks(source: Any, chunk_size: int) -> AsyncIterator[bytes]:
    """Yield the bytes of ``source`` in order."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
        for start in range(0, len(data), chunk_size):
            yield data[start : start + chunk_size]
        return

    if isinstance(source, httpx.Response):
        async for chunk in _iter_response(source, chunk_size):
            yield chunk
        return

    read = getattr(source, "read", None)
    if read is not None:
        while True:
            chunk = read(chunk_size)
            if inspect.isawaitable(chunk):
                chunk = await chunk
            if not chunk:
                break
            yield chunk
        return

    if hasattr(source, "__aiter__"):
        async for chunk in source:
            yield chunk
        return

    for chunk in source:
        yield chunk


async def _iter_response(response: httpx.Response, chunk_size: int) -> AsyncIterator[bytes]:
    # Unread streams are relayed raw so the count matches the content-length header
    if response.is_stream_consumed:
        content = response.content
        for start in range(0, len(content), chunk_size):
            yield content[start : start + chunk_size]
    elif isinstance(response.stream, httpx.AsyncByteStream):
        async for chunk in response.aiter_raw():
            yield chunk
    else:
        for chunk in response.iter_raw():
            yield chunk
