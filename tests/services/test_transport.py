"""Tests for the HTTP transport (mocked HTTP responses)."""

import httpx
import pytest

from scorelink.services.transport import HttpResponse, LeaderboardTransport, TransportError


class TestRequest:
    """Tests for request dispatch."""

    @pytest.mark.asyncio
    async def test_returns_status_and_body(self, transport: LeaderboardTransport, server) -> None:
        server.statuses = [201]
        server.body = {"ok": True}

        response = await transport.post("/leaderboards/main/scores/post/", json={"score": 1})

        assert response.status_code == 201
        assert response.is_success
        assert response.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_service_token_sent_by_default(
        self, transport: LeaderboardTransport, server
    ) -> None:
        await transport.get("/leaderboards/main/scores/")
        assert server.requests[0].headers["Authorization"] == "Token service-token"

    @pytest.mark.asyncio
    async def test_player_token_overrides_service_token(
        self, transport: LeaderboardTransport, server
    ) -> None:
        await transport.get("/leaderboards/main/scores/", token="abc")
        assert server.requests[0].headers["Authorization"] == "Token abc"

    @pytest.mark.asyncio
    async def test_no_token_no_header(self, server) -> None:
        transport = LeaderboardTransport("https://lb.test", transport=httpx.MockTransport(server))
        await transport.get("/x")
        assert "Authorization" not in server.requests[0].headers

    @pytest.mark.asyncio
    async def test_error_status_is_not_raised(
        self, transport: LeaderboardTransport, server
    ) -> None:
        server.statuses = [503]
        response = await transport.get("/x")
        assert response.status_code == 503
        assert not response.is_success

    @pytest.mark.parametrize(
        "error",
        [
            pytest.param(httpx.ConnectError("refused"), id="connect"),
            pytest.param(httpx.ReadTimeout("slow"), id="timeout"),
            pytest.param(httpx.RemoteProtocolError("eof"), id="protocol"),
        ],
    )
    @pytest.mark.asyncio
    async def test_network_errors_wrapped(
        self, transport: LeaderboardTransport, server, error: Exception
    ) -> None:
        server.statuses = [error]

        with pytest.raises(TransportError) as exc_info:
            await transport.get("/x")

        assert exc_info.value.status_code == 0
        assert isinstance(exc_info.value.__cause__, httpx.HTTPError)


class TestErrorMessage:
    """Tests for extracting a readable message from error bodies."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            pytest.param('{"detail": "Invalid token"}', "Invalid token", id="detail"),
            pytest.param('{"message": "Nope"}', "Nope", id="message"),
            pytest.param('{"error": "Bad"}', "Bad", id="error"),
            pytest.param('{"other": 1}', "HTTP 418", id="unknown_shape"),
            pytest.param("<html>", "HTTP 418", id="not_json"),
            pytest.param("[1]", "HTTP 418", id="json_list"),
        ],
    )
    def test_error_message(self, text: str, expected: str) -> None:
        assert HttpResponse(status_code=418, text=text).error_message() == expected
