"""
Asynchronous download service.

Download paths are resolved against the Content Manager root URL, not the
REST API base. They may also be absolute URLs on another host.
"""

from __future__ import annotations

from contextlib import aclosing
from pathlib import Path
from typing import AsyncIterator

from conmanager.exceptions import DownloadError
from conmanager.logging import get_logger
from conmanager.services.base import BaseService

logger = get_logger(__name__)


class AsyncDownloadService(BaseService):
    """
    Asynchronous download service.

    Example:
        >>> async with AsyncConManager("https://server/ContentManager") as cm:
        ...     await cm.login("user", "pass")
        ...     await cm.download(item["downloadPath"], "./picture.jpg")
        ...
        ...     async for chunk in cm.download_stream(item["downloadPath"]):
        ...         sink.write(chunk)
    """

    async def stream(self, remote_path: str) -> AsyncIterator[bytes]:
        """
        Stream remote content.

        Nothing is requested until iteration starts. A status other than 200
        raises ``DownloadError`` before any data is produced. Chunks are the
        decoded body: a ``Content-Encoding`` such as gzip is undone, so the
        bytes are the stored media.

        Args:
            remote_path: Download path (relative to the root URL, or absolute).

        Raises:
            DownloadError: Server answered with a status other than 200.
            httpx.TransportError: Connection-level failure.
        """
        url = self._session.content_url(remote_path)
        headers = self._session.auth_headers()

        logger.debug(f"GET {url}")

        async with self._http.stream("GET", url, headers=headers) as response:
            logger.debug(
                f"HTTP {response.status_code} {response.reason_phrase} {dict(response.headers)}"
            )

            if response.status_code != 200:
                raise DownloadError(response.status_code, response.reason_phrase)

            async for chunk in response.aiter_bytes():
                yield chunk

    async def download(self, remote_path: str, local_path: str | Path) -> Path:
        """
        Download remote content to a local file.

        The local file is removed if the transfer or the local write fails.

        Args:
            remote_path: Download path (relative to the root URL, or absolute).
            local_path: Local file to create/overwrite.

        Returns:
            Path of the written file.
        """
        local_path = Path(local_path)
        size = 0

        try:
            with open(local_path, "wb") as f:
                async with aclosing(self.stream(remote_path)) as chunks:
                    async for chunk in chunks:
                        f.write(chunk)
                        size += len(chunk)
        except BaseException as e:
            # Also covers cancellation (asyncio.wait_for timeouts)
            logger.debug(f"Download of {remote_path} failed: {e!r}")
            local_path.unlink(missing_ok=True)
            raise

        logger.debug(f"Saved {size:,} bytes to {local_path}")
        return local_path
