"""
Login/logout handling.

Logging in while a session exists first logs the old session out. The logout
is best-effort: whatever happens, the old tokens are discarded before the new
login is attempted.
"""

from __future__ import annotations

import asyncio
import warnings
from typing import TYPE_CHECKING, Any

import httpx

from conmanager.exceptions import ApiError, InsecureLoginWarning, MissingTokenError
from conmanager.logging import get_logger
from conmanager.services.base import BaseService

if TYPE_CHECKING:
    from conmanager.client import AsyncConManager

logger = get_logger(__name__)

LOGIN_ENDPOINT = "auth/login"
LOGOUT_ENDPOINT = "auth/logout"


class AsyncAuthService(BaseService):
    """
    Session manager.

    Logins on one client are serialized. Requests issued from here never go
    through the expired-session retry, so a rejected login cannot recurse.
    """

    def __init__(self, client: AsyncConManager) -> None:
        super().__init__(client)
        self._lock = asyncio.Lock()

    async def login(self, username: str | None, password: str | None) -> Any:
        """
        Log in, logging out the current session first.

        Returns:
            The login response object (also cached as ``login_response``).

        Raises:
            MissingTokenError: Response lacks the configured token field.
            ApiError: Login rejected by the server.
        """
        async with self._lock:
            return await self._login(username, password)

    async def relogin(self) -> Any:
        """Log in again with the credentials of the last login."""
        return await self.login(self._session.username, self._session.password)

    async def logout(self) -> Any:
        """
        Log out the current session (best-effort).

        Returns:
            The logout response, the error payload if it failed, or None when
            there was no session.
        """
        async with self._lock:
            if not self._session.is_authenticated:
                return None
            return await self._logout()

    async def _login(self, username: str | None, password: str | None) -> Any:
        session = self._session
        session.username = username
        session.password = password

        if session.is_authenticated:
            logger.debug("LOGOUT")
            await self._logout()
            logger.debug("Logged out...")
        session.clear_tokens()

        logger.debug(f"LOGIN {username}")

        if not session.is_secure and not session.is_loopback:
            message = (
                f"Password sent in clear across the network to {session.api_url.host}. "
                "Use https:// to protect credentials."
            )
            logger.warning(message)
            warnings.warn(message, InsecureLoginWarning, stacklevel=3)

        try:
            response = await self._client.request(
                "POST",
                LOGIN_ENDPOINT,
                {"username": username, "password": password},
                retry_on_expiry=False,
            )
        except ApiError as e:
            session.login_response = e.payload
            raise

        session.login_response = response

        if not isinstance(response, dict) or session.token_name not in response:
            raise MissingTokenError(session.token_name, response)

        session.token = response[session.token_name]
        session.previous_token = response.get("token")
        logger.debug(f"token {session.token_name} is: {session.token}")
        return response

    async def _logout(self) -> Any:
        session = self._session
        session.login_response = {}
        try:
            return await self._client.request(
                "GET",
                LOGOUT_ENDPOINT,
                {"token": session.previous_token},
                retry_on_expiry=False,
            )
        except ApiError as e:
            # failure is always an option
            logger.debug(f"Logout failed: {e}")
            return e.payload
        except httpx.HTTPError as e:
            logger.debug(f"Logout failed: {e}")
            return None
        finally:
            session.clear_tokens()
