"""
Upload service.

Uploads local files or byte streams through the three-step
``fileupload`` protocol (init, part(s), complete).

Features:
- Single-part upload when the source length is known
- Per-chunk upload at running offsets when it is not
- Deletes the partially created media item when a part fails
"""

from conmanager.services.upload._aio import (
    AsyncUploadService,
    resolve_upload_type,
    split_remote_path,
)
from conmanager.services.upload._models import TransferStats, UploadChunk, UploadInitResult
from conmanager.services.upload._source import UploadSource, detect_length, iter_chunks

__all__ = [
    "AsyncUploadService",
    "TransferStats",
    "UploadChunk",
    "UploadInitResult",
    "UploadSource",
    "detect_length",
    "iter_chunks",
    "resolve_upload_type",
    "split_remote_path",
]
