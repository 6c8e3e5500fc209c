"""
Content Manager REST client.

Example (set ``CONMANAGER_LOG_LEVEL=DEBUG`` for request tracing):

    >>> async with AsyncConManager("http://localhost/ContentManager") as cm:
    ...     await cm.login("user", "pass")
    ...     players = await cm.get("players", {"limit": 0, "fields": "id,name,enabled"})
    ...     media = await cm.get("media", {"limit": 10, "filters": '{"type":{"values":["IMAGE"]}}'})
    ...     for item in media["list"]:
    ...         await cm.download(item["downloadPath"], item["name"])
    ...     item = await cm.upload("LocalFolder/MyPicture.jpg", "RemoteFolder/MyPicture.jpg")

A blocking ``ConManager`` with the same methods is generated from
``AsyncConManager``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, AsyncIterator, Mapping

import httpx

from conmanager.config import ConManagerSettings, get_settings
from conmanager.exceptions import ApiError
from conmanager.logging import get_logger
from conmanager.models import ApiResponse
from conmanager.services._sync_wrapper import create_sync_client
from conmanager.services.auth import AsyncAuthService
from conmanager.services.download import AsyncDownloadService
from conmanager.services.upload import AsyncUploadService, UploadInitResult, UploadSource
from conmanager.session import SessionState

logger = get_logger(__name__)

READ_METHODS = frozenset({"GET", "HEAD", "DELETE"})
WRITE_METHODS = frozenset({"POST", "PUT"})
SUPPORTED_METHODS = READ_METHODS | WRITE_METHODS


class AsyncConManager:
    """
    Async client for Content Manager web-services (REST API 2.x).

    Keeps the session token obtained by ``login()`` and sends it on every
    call. When the server reports an expired session, the client logs in
    again with the stored credentials and retries that call once.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token_name: str | None = None,
        *,
        timeout: float | None = None,
        settings: ConManagerSettings | None = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize client.

        Args:
            base_url: URL to Content Manager (``http://server/ContentManager``),
                or set CONMANAGER_BASE_URL
            token_name: Alternative token name, mainly for older (<10.2)
                Content Manager releases where the token was named ``token``
            timeout: Request timeout in seconds
            settings: Settings to use instead of the environment
            **kwargs: Additional httpx.AsyncClient kwargs

        Raises:
            ValueError: If no base URL provided
        """
        self._settings = settings or get_settings()

        base_url = base_url or self._settings.base_url
        if not base_url:
            raise ValueError(
                "Content Manager URL required. "
                "Pass base_url or set CONMANAGER_BASE_URL environment variable."
            )

        self._session = SessionState.from_base_url(
            base_url, token_name or self._settings.token_name
        )
        self._http = httpx.AsyncClient(
            timeout=timeout or self._settings.timeout,
            **kwargs,
        )

        self._auth = AsyncAuthService(self)
        self._uploads = AsyncUploadService(self)
        self._downloads = AsyncDownloadService(self)

    # -------------------------------------------------------------------------
    # Generic requests
    # -------------------------------------------------------------------------

    async def request(
        self,
        method: str,
        endpoint: str,
        data: Mapping[str, Any] | None = None,
        *,
        retry_on_expiry: bool = True,
    ) -> Any:
        """
        Issue one API call.

        Args:
            method: GET, HEAD, DELETE, POST or PUT
            endpoint: Path relative to ``<base>/api/rest/``
            data: Query parameters (read methods) or JSON body (write methods)
            retry_on_expiry: Log in again and retry once if the session expired

        Returns:
            Parsed JSON response (None for an empty body)

        Raises:
            ApiError: Response status >= 400
            httpx.TransportError: Connection-level failure
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported method {method!r}")

        url = self._session.api_endpoint(endpoint)
        params = None
        content = None
        headers = {"Content-Type": "application/json"}

        if method in READ_METHODS:
            if data:
                params = dict(data)
        else:
            content = json.dumps(data).encode("utf-8") if data is not None else b""
            headers["Content-Length"] = str(len(content))

        response = await self._send(method, url, params, content, headers)

        if retry_on_expiry and response.is_session_expired and self._session.username is not None:
            logger.debug("Auth token has expired, logging in...")
            self._session.clear_tokens()
            await self._auth.relogin()
            # Single retry; a second expiry is reported like any other failure
            response = await self._send(method, url, params, content, headers)

        if not response.is_success:
            raise ApiError(response.status_code, response.value, response.error)
        return response.value

    async def _send(
        self,
        method: str,
        url: httpx.URL,
        params: dict[str, Any] | None,
        content: bytes | None,
        headers: dict[str, str],
    ) -> ApiResponse:
        headers = {**headers, **self._session.auth_headers()}

        logger.debug(f"{method} {url.path}  {content.decode('utf-8') if content else ''}")

        http_response = await self._http.request(
            method,
            url,
            params=params,
            content=content,
            headers=headers,
        )

        logger.debug(
            f"HTTP {http_response.status_code} {http_response.reason_phrase} "
            f"{dict(http_response.headers)}"
        )

        response = ApiResponse.parse(
            http_response.status_code,
            http_response.reason_phrase,
            http_response.content,
        )
        logger.debug(f"{response.value!r}")
        return response

    async def get(self, endpoint: str, data: Mapping[str, Any] | None = None) -> Any:
        """API GET request."""
        return await self.request("GET", endpoint, data)

    async def head(self, endpoint: str, data: Mapping[str, Any] | None = None) -> Any:
        """API HEAD request."""
        return await self.request("HEAD", endpoint, data)

    async def post(self, endpoint: str, data: Mapping[str, Any] | None = None) -> Any:
        """API POST request."""
        return await self.request("POST", endpoint, data)

    async def put(self, endpoint: str, data: Mapping[str, Any] | None = None) -> Any:
        """API PUT request."""
        return await self.request("PUT", endpoint, data)

    async def delete(self, endpoint: str, data: Mapping[str, Any] | None = None) -> Any:
        """API DELETE request."""
        return await self.request("DELETE", endpoint, data)

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    async def login(self, username: str, password: str) -> Any:
        """
        Log in to Content Manager (logs out a previously logged in user).

        Returns:
            Login response object
        """
        return await self._auth.login(username, password)

    async def logout(self) -> Any:
        """Log out the current session, ignoring failures."""
        return await self._auth.logout()

    # -------------------------------------------------------------------------
    # Media transfer
    # -------------------------------------------------------------------------

    async def upload(
        self,
        local_path: str | Path,
        remote_path: str | None = None,
        upload_type: str | None = None,
    ) -> UploadInitResult:
        """
        Upload file to Content Manager.

        Args:
            local_path: Path to local file
            remote_path: Path on Content Manager (defaults to the file name)
            upload_type: media_item, maint_item or auto (default)
        """
        return await self._uploads.upload(local_path, remote_path, upload_type)

    async def upload_stream(
        self,
        source: UploadSource,
        remote_path: str,
        upload_type: str | None = None,
    ) -> UploadInitResult:
        """
        Upload a byte stream to Content Manager.

        Args:
            source: File object, httpx.Response, bytes, or (async) iterable of bytes
            remote_path: Path on Content Manager
            upload_type: media_item, maint_item or auto (default)
        """
        return await self._uploads.upload_stream(source, remote_path, upload_type)

    async def download(self, remote_path: str, local_path: str | Path) -> Path:
        """Download file from Content Manager to ``local_path``."""
        return await self._downloads.download(remote_path, local_path)

    async def download_stream(self, remote_path: str) -> AsyncIterator[bytes]:
        """Download file from Content Manager as a stream of byte chunks."""
        async for chunk in self._downloads.stream(remote_path):
            yield chunk

    # -------------------------------------------------------------------------
    # Properties / lifecycle
    # -------------------------------------------------------------------------

    @property
    def login_response(self) -> Any:
        """Cached response of the last login attempt."""
        return self._session.login_response

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    @property
    def settings(self) -> ConManagerSettings:
        return self._settings

    @property
    def base_url(self) -> str:
        return str(self._session.root_url)

    async def __aenter__(self) -> AsyncConManager:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close HTTP connections."""
        await self._http.aclose()

    def __repr__(self) -> str:
        return (
            f"<AsyncConManager base_url={self.base_url!r} "
            f"authenticated={self._session.is_authenticated}>"
        )


ConManager = create_sync_client(AsyncConManager)


__all__ = ["AsyncConManager", "ConManager", "READ_METHODS", "WRITE_METHODS"]
