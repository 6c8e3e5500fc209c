"""
Pytest configuration and fixtures for Content Manager client tests.

``FakeContentManager`` answers the REST API behind ``httpx.MockTransport``
and records every request it receives.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from conmanager import AsyncConManager, ConManagerSettings
from conmanager.config import reset_settings

BASE_URL = "http://localhost/ContentManager"
API_PREFIX = "/ContentManager/api/rest/"


def json_response(status_code: int = 200, data: Any = None) -> httpx.Response:
    """Build a JSON response."""
    return httpx.Response(status_code, json=data)


def expired_response() -> httpx.Response:
    """Response sent by Content Manager when the session token is no longer valid."""
    return json_response(
        401,
        {"httpErrorCode": 401, "code": "NoUserLogon", "description": "User not logged in"},
    )


class FakeContentManager:
    """In-memory Content Manager REST service."""

    def __init__(self, token_name: str = "apiToken") -> None:
        self.token_name = token_name
        self.requests: list[httpx.Request] = []
        self.queued: dict[tuple[str, str], list[Any]] = {}
        self.files: dict[str, bytes] = {}
        self.parts: list[tuple[str, int, bytes]] = []
        self.logins = 0
        self.uploads = 0
        self.media_id = 42

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------

    def queue(self, method: str, endpoint: str, *responses: Any) -> None:
        """
        Queue one-shot answers for ``method endpoint``.

        Each answer is an httpx.Response, an exception to raise, or a
        callable taking the request.
        """
        self.queued.setdefault((method, endpoint), []).extend(responses)

    @staticmethod
    def endpoint_of(request: httpx.Request) -> str:
        path = request.url.path
        if path.startswith(API_PREFIX):
            return path[len(API_PREFIX) :]
        return path

    def calls(self, method: str, endpoint: str | None = None) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method and (endpoint is None or self.endpoint_of(r) == endpoint)
        ]

    def calls_starting(self, method: str, prefix: str) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.method == method and self.endpoint_of(r).startswith(prefix)
        ]

    # -------------------------------------------------------------------------
    # Transport handler
    # -------------------------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = self.endpoint_of(request)

        queued = self.queued.get((request.method, endpoint))
        if queued:
            answer = queued.pop(0)
            if isinstance(answer, Exception):
                raise answer
            if callable(answer):
                return answer(request)
            return answer

        return self._default(request, endpoint)

    def _default(self, request: httpx.Request, endpoint: str) -> httpx.Response:
        body = _json_body(request)

        if request.method == "POST" and endpoint == "auth/login":
            self.logins += 1
            return json_response(
                200,
                {
                    # Alternate token first; the configured name may also be "token"
                    "token": f"old-{self.logins}",
                    self.token_name: f"token-{self.logins}",
                    "user": {"username": body["username"]},
                },
            )

        if request.method == "GET" and endpoint == "auth/logout":
            return httpx.Response(204)

        if request.method == "POST" and endpoint == "fileupload/init":
            self.uploads += 1
            return json_response(
                200,
                {
                    "uuid": f"upload-{self.uploads}",
                    "filename": body["filename"],
                    "mediaId": self.media_id,
                },
            )

        if request.method == "PUT" and endpoint.startswith("fileupload/part/"):
            _, _, uuid, offset = endpoint.split("/")
            self.parts.append((uuid, int(offset), request.content))
            return httpx.Response(204)

        if request.method == "POST" and endpoint.startswith("fileupload/complete/"):
            return httpx.Response(204)

        if request.method == "DELETE" and endpoint.startswith("media/"):
            return httpx.Response(204)

        if not request.url.path.startswith(API_PREFIX):
            content = self.files.get(request.url.path)
            if content is None:
                return httpx.Response(404, text="Not Found")
            return httpx.Response(200, content=content)

        return json_response(
            200,
            {
                "method": request.method,
                "endpoint": endpoint,
                "query": dict(request.url.params),
                "body": body,
            },
        )

    def uploaded_content(self, uuid: str) -> bytes:
        """Reassemble the parts received for ``uuid``."""
        data = bytearray()
        for part_uuid, offset, content in sorted(self.parts, key=lambda p: p[1]):
            if part_uuid == uuid:
                assert offset == len(data)
                data.extend(content)
        return bytes(data)


def _json_body(request: httpx.Request) -> Any:
    if not request.content or request.headers.get("content-type") != "application/json":
        return None
    return json.loads(request.content)


@pytest.fixture(autouse=True)
def reset_client_settings():
    """Reset client settings before and after test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fake_cm() -> FakeContentManager:
    """Provide fake Content Manager service."""
    return FakeContentManager()


@pytest.fixture
def make_client(fake_cm) -> Callable[..., AsyncConManager]:
    """Factory for async clients talking to ``fake_cm``."""

    def _make(base_url: str = BASE_URL, **kwargs: Any) -> AsyncConManager:
        kwargs.setdefault("settings", ConManagerSettings())
        return AsyncConManager(base_url, transport=httpx.MockTransport(fake_cm.handler), **kwargs)

    return _make


@pytest.fixture
def client(make_client) -> AsyncConManager:
    """Provide async client with mock transport."""
    return make_client()
