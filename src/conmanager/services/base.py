"""
Base class for client services.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from conmanager.client import AsyncConManager
    from conmanager.config import ConManagerSettings
    from conmanager.session import SessionState


class BaseService:
    """
    Service bound to one ``AsyncConManager``.

    Services share the client's HTTP connection pool and session state.
    """

    def __init__(self, client: AsyncConManager) -> None:
        self._client = client

    @property
    def _session(self) -> SessionState:
        return self._client.session

    @property
    def _http(self) -> httpx.AsyncClient:
        return self._client.http

    @property
    def _settings(self) -> ConManagerSettings:
        return self._client.settings
