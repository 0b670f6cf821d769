"""HTTP transport for the leaderboard REST API.

Uses httpx to issue one request at a time and hand back the raw status
and decoded body. Classifying the status is left to the callers.
"""

import json
from dataclasses import dataclass
from typing import Any

import httpx


class TransportError(Exception):
    """The request could not be dispatched or no response arrived."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class HttpResponse:
    """Status code and body of a completed exchange."""

    status_code: int
    text: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON
        """
        return json.loads(self.text)

    def error_message(self) -> str:
        """Extract a human-readable message from an error response.

        Avoids leaking raw response bodies that may contain internal details.
        """
        try:
            data = self.json()
        except ValueError:
            return f"HTTP {self.status_code}"
        if isinstance(data, dict):
            for key in ("detail", "message", "error"):
                if isinstance(data.get(key), str):
                    return data[key]
        return f"HTTP {self.status_code}"


class LeaderboardTransport:
    """Async HTTP client for the leaderboard service."""

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if api_token:
            headers["Authorization"] = f"Token {api_token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> HttpResponse:
        """Send one request. A player token overrides the service token.

        Raises:
            TransportError: If the request could not be completed
        """
        headers = {"Authorization": f"Token {token}"} if token else None
        try:
            response = await self._client.request(
                method, path, headers=headers, json=json, params=params
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e
        return HttpResponse(status_code=response.status_code, text=response.text)

    async def get(self, path: str, **kwargs: Any) -> HttpResponse:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> HttpResponse:
        return await self.request("POST", path, **kwargs)
