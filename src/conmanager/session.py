"""
Per-client session state.

Holds the service URLs, the token header name and the tokens obtained from
the last login. One ``SessionState`` belongs to exactly one client.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, Field

from conmanager.config import DEFAULT_TOKEN_NAME

API_PATH = "api/rest/"

LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


class SessionState(BaseModel):
    """Mutable authentication state of one client."""

    model_config = {"arbitrary_types_allowed": True}

    root_url: httpx.URL
    api_url: httpx.URL
    token_name: str = DEFAULT_TOKEN_NAME

    token: Any = None
    previous_token: Any = None

    username: str | None = None
    password: str | None = None

    login_response: Any = Field(default_factory=dict)

    @classmethod
    def from_base_url(cls, base_url: str, token_name: str | None = None) -> SessionState:
        """
        Build session state from the Content Manager URL.

        Args:
            base_url: e.g. ``http://server/ContentManager``
            token_name: Token header/field name (``apiToken`` when omitted)
        """
        root = base_url if base_url.endswith("/") else f"{base_url}/"
        root_url = httpx.URL(root)
        return cls(
            root_url=root_url,
            api_url=root_url.join(API_PATH),
            token_name=token_name or DEFAULT_TOKEN_NAME,
        )

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_secure(self) -> bool:
        return self.api_url.scheme == "https"

    @property
    def is_loopback(self) -> bool:
        return self.api_url.host in LOOPBACK_HOSTS

    def auth_headers(self) -> dict[str, str]:
        """Token header for authenticated calls (empty when logged out)."""
        if not self.token:
            return {}
        return {self.token_name: str(self.token)}

    def clear_tokens(self) -> None:
        self.token = None
        self.previous_token = None

    def api_endpoint(self, endpoint: str) -> httpx.URL:
        """Resolve an endpoint relative to ``<base>/api/rest/``."""
        return self.api_url.join(endpoint)

    def content_url(self, remote_path: str) -> httpx.URL:
        """
        Resolve a download path against the root URL.

        Absolute URLs are kept as they are; a leading slash is dropped so the
        path stays below the Content Manager root.
        """
        if remote_path.startswith("/"):
            remote_path = remote_path[1:]
        return self.root_url.join(remote_path)


__all__ = ["API_PATH", "LOOPBACK_HOSTS", "SessionState"]
