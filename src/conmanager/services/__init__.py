"""
Client services.

Session, upload and download services shared by ``AsyncConManager``.
"""

from __future__ import annotations

from conmanager.services.auth import AsyncAuthService
from conmanager.services.base import BaseService
from conmanager.services.download import AsyncDownloadService
from conmanager.services.upload import AsyncUploadService

__all__ = [
    "AsyncAuthService",
    "AsyncDownloadService",
    "AsyncUploadService",
    "BaseService",
]
