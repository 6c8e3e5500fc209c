"""
Asynchronous upload service.

Upload protocol:
1. ``POST fileupload/init`` creates the upload session (uuid, mediaId)
2. ``PUT fileupload/part/{uuid}/{offset}`` once or per chunk
3. ``POST fileupload/complete/{uuid}``

If any part fails, the half-created media item is deleted before the error
is raised.
"""

from __future__ import annotations

import posixpath
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from conmanager.logging import get_logger
from conmanager.services.base import BaseService
from conmanager.services.upload._config import (
    COMPLETE_ENDPOINT,
    INIT_ENDPOINT,
    MAINTENANCE_EXTENSIONS,
    MEDIA_ENDPOINT,
    UPLOAD_TYPE_AUTO,
    UPLOAD_TYPE_MAINTENANCE,
    UPLOAD_TYPE_MEDIA,
)
from conmanager.services.upload._models import UploadInitResult
from conmanager.services.upload._source import UploadSource, detect_length
from conmanager.services.upload._strategies import PartUploader, upload_chunked, upload_whole

logger = get_logger(__name__)


def resolve_upload_type(filename: str, upload_type: str | None = None) -> str:
    """
    Resolve the upload classification.

    Explicit values are lowercased and passed through. ``auto`` (or None)
    picks ``maint_item`` for script/executable/archive extensions and
    ``media_item`` for everything else.
    """
    upload_type = (upload_type or UPLOAD_TYPE_AUTO).lower()
    if upload_type != UPLOAD_TYPE_AUTO:
        return upload_type

    extension = posixpath.splitext(filename)[1].lower()
    if extension in MAINTENANCE_EXTENSIONS:
        return UPLOAD_TYPE_MAINTENANCE
    return UPLOAD_TYPE_MEDIA


def split_remote_path(remote_path: str) -> tuple[str, str]:
    """Split ``folder/sub/name.jpg`` into ``("name.jpg", "folder/sub")``."""
    return posixpath.basename(remote_path), posixpath.dirname(remote_path)


class AsyncUploadService(BaseService):
    """
    Asynchronous upload service.

    Example:
        >>> async with AsyncConManager("https://server/ContentManager") as cm:
        ...     await cm.login("user", "pass")
        ...     item = await cm.upload("./intro.mp4", "Videos/intro.mp4")
        ...     print(item.media_id)
    """

    async def upload(
        self,
        local_path: str | Path,
        remote_path: str | None = None,
        upload_type: str | None = None,
    ) -> UploadInitResult:
        """
        Upload local file.

        Args:
            local_path: Path to local file.
            remote_path: Path on Content Manager (defaults to file name).
            upload_type: media_item, maint_item or auto.
        """
        local_path = Path(local_path)
        if remote_path is None:
            remote_path = local_path.name

        with open(local_path, "rb") as f:
            return await self.upload_stream(f, remote_path, upload_type)

    async def upload_stream(
        self,
        source: UploadSource,
        remote_path: str,
        upload_type: str | None = None,
    ) -> UploadInitResult:
        """
        Upload bytes from ``source``.

        Args:
            source: File object, httpx.Response, bytes, or (async) iterable of bytes.
            remote_path: Path on Content Manager.
            upload_type: media_item, maint_item or auto.

        Returns:
            UploadInitResult of the created upload session.

        Raises:
            UploadError: A part was rejected (after the media item was deleted).
            ApiError: init, complete or the cleanup delete failed.
        """
        filename, subfolder = split_remote_path(remote_path)
        upload_type = resolve_upload_type(filename, upload_type)
        length = detect_length(source)
        chunk_size = self._settings.chunk_size

        logger.debug(f"Uploading {filename} to {subfolder or '(root)'} as {upload_type}...")

        response = await self._client.post(
            INIT_ENDPOINT,
            {"filename": filename, "filepath": subfolder, "uploadType": upload_type},
        )
        init = UploadInitResult.model_validate(response)

        logger.debug(f"    {init.uuid} - {init.filename}")

        parts = PartUploader(self._http, self._session, init.uuid)

        async with self._discard_on_failure(init):
            if length > 0:
                stats = await upload_whole(parts, source, length, chunk_size)
            else:
                stats = await upload_chunked(parts, source, chunk_size)

        await self._client.post(COMPLETE_ENDPOINT.format(uuid=init.uuid))

        logger.debug(
            f"Uploaded {stats.bytes_transferred:,} bytes in {stats.parts_count} part(s)"
        )
        return init

    @asynccontextmanager
    async def _discard_on_failure(self, init: UploadInitResult) -> AsyncIterator[None]:
        """Delete the media item once if the body raises, then re-raise."""
        try:
            yield
        except Exception as e:
            logger.warning(f"Upload of {init.filename} failed ({e}); deleting media {init.media_id}")
            await self._client.delete(MEDIA_ENDPOINT.format(media_id=init.media_id))
            raise
