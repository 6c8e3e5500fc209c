"""
Download service.

Streams media content from Content Manager, either as an async iterator of
byte chunks or straight into a local file.
"""

from conmanager.services.download._aio import AsyncDownloadService

__all__ = ["AsyncDownloadService"]
