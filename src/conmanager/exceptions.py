"""
Exceptions raised by the Content Manager client.

Transport failures (connection refused, TLS errors, read errors) are not
wrapped: they surface as the original ``httpx.TransportError`` subclasses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from conmanager.models import ErrorBody


class ConManagerError(Exception):
    """Base exception for all Content Manager client errors."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self._original_cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message


class ApiError(ConManagerError):
    """
    API call answered with HTTP status >= 400.

    Attributes:
        status_code: Status reported by the transport.
        payload: Parsed JSON body, or the synthesized error mapping when the
            body was not valid JSON.
        error: Structured view of an error-shaped payload, if any.
    """

    def __init__(
        self,
        status_code: int,
        payload: Any = None,
        error: ErrorBody | None = None,
    ) -> None:
        self.status_code = status_code
        self.payload = payload
        self.error = error

        detail = None
        if error is not None:
            detail = error.description or error.code
        elif payload:
            detail = payload
        message = f"HTTP {status_code}: {detail}" if detail else f"HTTP {status_code}"
        super().__init__(message)


class MissingTokenError(ConManagerError):
    """Login succeeded at the HTTP level but no session token was returned."""

    def __init__(self, token_name: str, response: Any = None) -> None:
        self.token_name = token_name
        self.response = response
        super().__init__(f"No token received! Expected field '{token_name}' in login response")


class TransferError(ConManagerError):
    """Raw byte transfer rejected by the server."""

    def __init__(self, status_code: int, reason: str | None = None) -> None:
        self.status_code = status_code
        self.reason = reason
        super().__init__(reason or f"HTTP {status_code}")

    @property
    def code(self) -> int:
        """Alias of ``status_code``."""
        return self.status_code


class UploadError(TransferError):
    """Upload part rejected (status >= 300)."""


class DownloadError(TransferError):
    """Download answered with a status other than 200."""


class InsecureLoginWarning(UserWarning):
    """Credentials are about to be sent in clear text across the network."""


__all__ = [
    "ConManagerError",
    "ApiError",
    "MissingTokenError",
    "TransferError",
    "UploadError",
    "DownloadError",
    "InsecureLoginWarning",
]
