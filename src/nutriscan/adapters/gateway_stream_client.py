"""Streaming chat completions client that relays raw SSE bytes."""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol

import httpx

from nutriscan.domain.errors import (
    GATEWAY_UNREACHABLE_STATUS,
    GatewayError,
    gateway_error_for_status,
)


class ByteStream(Protocol):
    """An open streaming response body."""

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Yield body chunks as they arrive."""

    async def aclose(self) -> None:
        """Release the underlying connection."""


class ChatStreamClient(Protocol):
    """Interface for streaming chat completions."""

    async def open_stream(
        self, *, model: str, messages: list[dict[str, object]]
    ) -> ByteStream:
        """Open a stream; raise a gateway error before any bytes are read."""


@dataclass
class HttpxChatStreamClient(ChatStreamClient):
    """HTTPX-backed streaming client for the AI gateway."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 60.0

    @classmethod
    def create(
        cls, api_key: str, base_url: str, timeout_seconds: float = 60.0
    ) -> "HttpxChatStreamClient":
        """Create a streaming client with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def open_stream(
        self, *, model: str, messages: list[dict[str, object]]
    ) -> ByteStream:
        """POST a streaming completion and return the open response."""
        request = self.http_client.build_request(
            "POST",
            f"{self.base_url}/chat/completions",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={"model": model, "messages": messages, "stream": True},
            timeout=self.timeout_seconds,
        )
        try:
            response = await self.http_client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise GatewayError(GATEWAY_UNREACHABLE_STATUS, str(exc)) from exc
        if response.is_error:
            await response.aread()
            await response.aclose()
            raise gateway_error_for_status(response.status_code, response.text)
        return response

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
