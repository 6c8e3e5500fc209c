"""
Client for Content Manager REST web-services.

Usage:
    >>> from conmanager import AsyncConManager
    >>>
    >>> async with AsyncConManager("http://localhost/ContentManager") as cm:
    ...     await cm.login("user", "pass")
    ...     players = await cm.get("players", {"limit": 0})

Blocking usage:
    >>> from conmanager import ConManager
    >>>
    >>> with ConManager("http://localhost/ContentManager") as cm:
    ...     cm.login("user", "pass")
    ...     cm.upload("LocalFolder/MyPicture.jpg", "RemoteFolder/MyPicture.jpg")
"""

from __future__ import annotations

from conmanager.client import AsyncConManager, ConManager
from conmanager.config import (
    ConManagerSettings,
    configure_settings,
    get_settings,
    reset_settings,
)
from conmanager.exceptions import (
    ApiError,
    ConManagerError,
    DownloadError,
    InsecureLoginWarning,
    MissingTokenError,
    TransferError,
    UploadError,
)
from conmanager.logging import configure_logging
from conmanager.models import ApiResponse, ErrorBody
from conmanager.services.upload import UploadInitResult

__version__ = "1.1.1"

__all__ = [
    # Clients
    "AsyncConManager",
    "ConManager",
    # Config
    "ConManagerSettings",
    "configure_settings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    # Models
    "ApiResponse",
    "ErrorBody",
    "UploadInitResult",
    # Exceptions
    "ConManagerError",
    "ApiError",
    "MissingTokenError",
    "TransferError",
    "UploadError",
    "DownloadError",
    "InsecureLoginWarning",
]
