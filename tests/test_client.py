"""
Tests for the generic request executor.
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from conmanager import ApiError, AsyncConManager, ConManagerSettings

from .conftest import BASE_URL, expired_response, json_response


class TestAsyncConManagerInit:
    """Tests for client construction."""

    def test_api_base_url(self, client):
        assert client.base_url == f"{BASE_URL}/"
        assert str(client.session.api_url) == f"{BASE_URL}/api/rest/"

    def test_trailing_slash_kept(self, make_client):
        client = make_client(f"{BASE_URL}/")
        assert client.base_url == f"{BASE_URL}/"

    def test_default_token_name(self, client):
        assert client.session.token_name == "apiToken"

    def test_custom_token_name(self, make_client):
        client = make_client(token_name="token")
        assert client.session.token_name == "token"

    def test_base_url_from_settings(self):
        client = AsyncConManager(settings=ConManagerSettings(base_url="https://cm.example.com/CM"))
        assert client.base_url == "https://cm.example.com/CM/"

    def test_missing_base_url(self):
        with pytest.raises(ValueError, match="CONMANAGER_BASE_URL"):
            AsyncConManager(settings=ConManagerSettings())

    def test_login_response_empty(self, client):
        assert client.login_response == {}

    def test_repr(self, client):
        assert "AsyncConManager" in repr(client)
        assert "ContentManager" in repr(client)


class TestRequestEncoding:
    """Tests for request construction."""

    @pytest.mark.asyncio
    async def test_write_without_data_sends_empty_body(self, client, fake_cm):
        await client.post("storage")

        request = fake_cm.calls("POST", "storage")[0]
        assert request.content == b""
        assert request.headers["content-length"] == "0"

    @pytest.mark.asyncio
    async def test_put_without_data_sends_empty_body(self, client, fake_cm):
        await client.put("media/1")

        request = fake_cm.calls("PUT", "media/1")[0]
        assert request.content == b""
        assert request.headers["content-length"] == "0"

    @pytest.mark.asyncio
    async def test_write_with_data_sends_json(self, client, fake_cm):
        data = {"id": 5, "description": "Tëst"}

        result = await client.put("media/5", data)

        request = fake_cm.calls("PUT", "media/5")[0]
        assert json.loads(request.content) == data
        assert request.headers["content-length"] == str(len(request.content))
        assert request.headers["content-type"] == "application/json"
        assert result["body"] == data

    @pytest.mark.asyncio
    async def test_read_with_data_encodes_query(self, client, fake_cm):
        data = {"limit": 0, "offset": 10, "fields": "id,name,enabled", "filters": '{"a":[1]}'}

        await client.get("players", data)

        request = fake_cm.calls("GET", "players")[0]
        assert request.content == b""
        decoded = parse_qs(request.url.query.decode(), keep_blank_values=True)
        assert decoded == {key: [str(value)] for key, value in data.items()}

    @pytest.mark.asyncio
    async def test_delete_with_data_encodes_query(self, client, fake_cm):
        await client.delete("media/3", {"force": "true"})

        request = fake_cm.calls("DELETE", "media/3")[0]
        assert request.url.params["force"] == "true"

    @pytest.mark.asyncio
    async def test_read_without_data_has_no_query(self, client, fake_cm):
        await client.get("players")
        assert fake_cm.calls("GET", "players")[0].url.query == b""

    @pytest.mark.asyncio
    async def test_no_token_header_before_login(self, client, fake_cm):
        await client.get("players")
        assert "apitoken" not in fake_cm.calls("GET", "players")[0].headers

    @pytest.mark.asyncio
    async def test_token_header_after_login(self, client, fake_cm):
        await client.login("user", "pass")
        await client.get("players")

        assert fake_cm.calls("GET", "players")[0].headers["apiToken"] == "token-1"

    @pytest.mark.asyncio
    async def test_unsupported_method(self, client):
        with pytest.raises(ValueError, match="PATCH"):
            await client.request("PATCH", "players")

    @pytest.mark.asyncio
    async def test_lowercase_method(self, client, fake_cm):
        await client.request("get", "players")
        assert len(fake_cm.calls("GET", "players")) == 1


class TestResponseHandling:
    """Tests for response parsing and status handling."""

    @pytest.mark.asyncio
    async def test_nested_json_roundtrip(self, client, fake_cm):
        payload = {
            "list": [{"id": 1, "name": "Lobby", "tags": ["a", "b"]}, {"id": 2, "ratio": 0.5}],
            "count": 2,
            "meta": {"nested": {"deep": None, "flag": True}},
        }
        fake_cm.queue("GET", "players", json_response(200, payload))

        assert await client.get("players") == payload

    @pytest.mark.asyncio
    async def test_scalar_json(self, client, fake_cm):
        fake_cm.queue("GET", "players/count", json_response(200, 17))
        assert await client.get("players/count") == 17

    @pytest.mark.asyncio
    async def test_empty_body_returns_none(self, client, fake_cm):
        fake_cm.queue("DELETE", "players/1", httpx.Response(204))
        assert await client.delete("players/1") is None

    @pytest.mark.asyncio
    async def test_error_status_raises_with_payload(self, client, fake_cm):
        body = {"httpErrorCode": 404, "code": "NotFound", "description": "No such player"}
        fake_cm.queue("GET", "players/9", json_response(404, body))

        with pytest.raises(ApiError) as exc:
            await client.get("players/9")

        assert exc.value.status_code == 404
        assert exc.value.payload == body
        assert exc.value.error.code == "NotFound"
        assert "No such player" in str(exc.value)

    @pytest.mark.asyncio
    async def test_non_json_error_body_is_synthesized(self, client, fake_cm):
        fake_cm.queue("GET", "players", httpx.Response(502, text="<html>Bad Gateway</html>"))

        with pytest.raises(ApiError) as exc:
            await client.get("players")

        assert exc.value.status_code == 502
        assert exc.value.payload == {
            "httpErrorCode": 502,
            "code": "Bad Gateway",
            "description": "<html>Bad Gateway</html>",
        }
        assert exc.value.error.effective_status == 500

    @pytest.mark.asyncio
    async def test_non_json_success_body_keeps_original_status(self, client, fake_cm):
        fake_cm.queue("GET", "version", httpx.Response(200, text="10.4.1"))

        result = await client.get("version")

        assert result == {"httpErrorCode": 200, "code": "OK", "description": "10.4.1"}

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, client, fake_cm):
        fake_cm.queue("GET", "players", httpx.ConnectError("Connection refused"))

        with pytest.raises(httpx.ConnectError, match="Connection refused"):
            await client.get("players")


class TestSessionExpiry:
    """Tests for the expired-session re-login and retry."""

    @pytest.mark.asyncio
    async def test_relogin_and_single_retry(self, client, fake_cm):
        await client.login("user", "pass")
        fake_cm.queue("GET", "players", expired_response())

        result = await client.get("players", {"limit": 1})

        assert result["endpoint"] == "players"
        assert fake_cm.logins == 2
        players = fake_cm.calls("GET", "players")
        assert len(players) == 2
        assert players[0].headers["apiToken"] == "token-1"
        assert players[1].headers["apiToken"] == "token-2"
        assert players[1].url.params["limit"] == "1"
        assert client.session.token == "token-2"

    @pytest.mark.asyncio
    async def test_relogin_skips_logout(self, client, fake_cm):
        await client.login("user", "pass")
        fake_cm.queue("GET", "players", expired_response())

        await client.get("players")

        assert fake_cm.calls("GET", "auth/logout") == []

    @pytest.mark.asyncio
    async def test_retry_resends_same_body(self, client, fake_cm):
        await client.login("user", "pass")
        fake_cm.queue("POST", "storage", expired_response())

        await client.post("storage", {"ids": [1, 2, 3]})

        first, second = fake_cm.calls("POST", "storage")
        assert first.content == second.content == b'{"ids": [1, 2, 3]}'

    @pytest.mark.asyncio
    async def test_second_expiry_is_not_retried(self, client, fake_cm):
        await client.login("user", "pass")
        fake_cm.queue("GET", "players", expired_response(), expired_response())

        with pytest.raises(ApiError) as exc:
            await client.get("players")

        assert exc.value.status_code == 401
        assert exc.value.error.is_session_expired()
        assert fake_cm.logins == 2
        assert len(fake_cm.calls("GET", "players")) == 2

    @pytest.mark.asyncio
    async def test_retry_failure_is_raised(self, client, fake_cm):
        await client.login("user", "pass")
        fake_cm.queue(
            "GET",
            "players",
            expired_response(),
            json_response(403, {"httpErrorCode": 403, "code": "Forbidden"}),
        )

        with pytest.raises(ApiError) as exc:
            await client.get("players")

        assert exc.value.status_code == 403

    @pytest.mark.asyncio
    async def test_relogin_failure_is_raised(self, client, fake_cm):
        await client.login("user", "pass")
        fake_cm.queue("GET", "players", expired_response())
        fake_cm.queue(
            "POST",
            "auth/login",
            json_response(401, {"httpErrorCode": 401, "code": "BadCredentials"}),
        )

        with pytest.raises(ApiError) as exc:
            await client.get("players")

        assert exc.value.error.code == "BadCredentials"
        assert len(fake_cm.calls("GET", "players")) == 1
        assert client.session.token is None

    @pytest.mark.asyncio
    async def test_expiry_without_credentials_is_raised(self, client, fake_cm):
        fake_cm.queue("GET", "players", expired_response())

        with pytest.raises(ApiError) as exc:
            await client.get("players")

        assert exc.value.status_code == 401
        assert fake_cm.calls("POST", "auth/login") == []

    @pytest.mark.asyncio
    async def test_expired_login_does_not_recurse(self, client, fake_cm):
        await client.login("user", "pass")
        fake_cm.queue("GET", "players", expired_response())
        fake_cm.queue("POST", "auth/login", expired_response())

        with pytest.raises(ApiError):
            await client.get("players")

        assert len(fake_cm.calls("POST", "auth/login")) == 2


class TestContextManager:
    """Tests for client lifecycle."""

    @pytest.mark.asyncio
    async def test_close_on_exit(self, make_client):
        async with make_client() as client:
            await client.get("players")
        assert client.http.is_closed
