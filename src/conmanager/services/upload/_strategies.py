"""
Part upload strategies.

- Known length: the whole source goes out in one PUT at offset 0.
- Unknown length: every chunk the source produces is PUT at the running
  offset, strictly in order.

Both raise on the first failure; cleanup is done by the caller.
"""

from __future__ import annotations

from contextlib import aclosing
from typing import TYPE_CHECKING, Any, AsyncIterator

from conmanager.exceptions import UploadError
from conmanager.logging import get_logger
from conmanager.services.upload._config import PART_FAILURE_STATUS
from conmanager.services.upload._models import TransferStats, UploadChunk
from conmanager.services.upload._source import iter_chunks

if TYPE_CHECKING:
    import httpx

    from conmanager.session import SessionState

logger = get_logger(__name__)


class PartUploader:
    """Sends raw bytes to ``fileupload/part/{uuid}/{offset}``."""

    def __init__(self, http: httpx.AsyncClient, session: SessionState, uuid: str) -> None:
        self._http = http
        self._session = session
        self._uuid = uuid

    def chunk(self, offset: int, length: int) -> UploadChunk:
        return UploadChunk(uuid=self._uuid, offset=offset, length=length)

    async def put(self, chunk: UploadChunk, content: bytes | AsyncIterator[bytes]) -> None:
        """
        Upload one part.

        Raises:
            UploadError: Server answered with status >= 300.
        """
        headers = {
            "Content-Type": "application/octet-stream",
            "Content-Length": str(chunk.length),
            **self._session.auth_headers(),
        }
        url = self._session.api_endpoint(chunk.endpoint)

        logger.debug(f"PUT {url.path} ({chunk.length} bytes)")

        response = await self._http.request("PUT", url, content=content, headers=headers)

        logger.debug(
            f"HTTP {response.status_code} {response.reason_phrase} {dict(response.headers)}"
        )

        if response.status_code >= PART_FAILURE_STATUS:
            raise UploadError(response.status_code, response.reason_phrase)


async def upload_whole(
    parts: PartUploader,
    source: Any,
    length: int,
    chunk_size: int,
) -> TransferStats:
    """Upload a source of known ``length`` as a single part."""
    stats = TransferStats(parts_count=1)

    async def body() -> AsyncIterator[bytes]:
        async with aclosing(iter_chunks(source, chunk_size)) as chunks:
            async for chunk in chunks:
                stats.bytes_transferred += len(chunk)
                stats.chunks_count += 1
                yield chunk

    await parts.put(parts.chunk(0, length), body())
    return stats


async def upload_chunked(
    parts: PartUploader,
    source: Any,
    chunk_size: int,
) -> TransferStats:
    """Upload a source of unknown length, one part per chunk."""
    stats = TransferStats()
    offset = 0

    async with aclosing(iter_chunks(source, chunk_size)) as chunks:
        async for chunk in chunks:
            if not chunk:
                continue
            await parts.put(parts.chunk(offset, len(chunk)), bytes(chunk))
            offset += len(chunk)
            stats.bytes_transferred += len(chunk)
            stats.parts_count += 1
            stats.chunks_count += 1

    return stats
