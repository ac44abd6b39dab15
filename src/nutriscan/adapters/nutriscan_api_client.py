"""HTTP client used by the capture client to reach the NutriScan API."""

from dataclasses import dataclass
from uuid import UUID

import httpx

from nutriscan.adapters.gateway_stream_client import ByteStream
from nutriscan.domain.errors import (
    GATEWAY_UNREACHABLE_STATUS,
    CoachUnavailableError,
    gateway_error_for_status,
)
from nutriscan.domain.nutrition import ImagePayload


@dataclass
class HttpxNutriScanClient:
    """HTTPX-backed client for the NutriScan HTTP API."""

    base_url: str
    http_client: httpx.AsyncClient
    api_key: str | None = None
    timeout_seconds: float = 60.0

    @classmethod
    def create(
        cls, base_url: str, api_key: str | None = None, timeout_seconds: float = 60.0
    ) -> "HttpxNutriScanClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            api_key=api_key,
            timeout_seconds=timeout_seconds,
        )

    async def analyze(
        self,
        *,
        barcode: str | None = None,
        image: ImagePayload | None = None,
        user_id: UUID | None = None,
    ) -> dict[str, object]:
        """Submit a scan and return the JSON body, including error bodies."""
        payload: dict[str, object] = {}
        if barcode:
            payload["barcode"] = barcode
        if image is not None:
            payload["image"] = image.to_data_url()
        if user_id is not None:
            payload["userId"] = str(user_id)
        response = await self.http_client.post(
            f"{self.base_url}/analyze-nutrition",
            json=payload,
            headers=self._headers(),
            timeout=self.timeout_seconds,
        )
        body = response.json()
        if not isinstance(body, dict):
            response.raise_for_status()
            return {"error": "Unexpected response from server"}
        return body

    async def load_history(self, user_id: UUID) -> dict[str, object]:
        """Return the latest coach conversation for a user."""
        response = await self.http_client.get(
            f"{self.base_url}/nutricoach/history/{user_id}",
            headers=self._headers(),
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def open_coach_stream(
        self,
        messages: list[dict[str, str]],
        user_preferences: dict[str, list[str]] | None = None,
        conversation_id: UUID | None = None,
    ) -> ByteStream:
        """Open a coach reply stream; map 429/402 before reading the body."""
        request = self.http_client.build_request(
            "POST",
            f"{self.base_url}/nutricoach",
            json={
                "messages": messages,
                "userPreferences": user_preferences,
                "conversationId": str(conversation_id) if conversation_id else None,
            },
            headers=self._headers(),
            timeout=self.timeout_seconds,
        )
        try:
            response = await self.http_client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise CoachUnavailableError(GATEWAY_UNREACHABLE_STATUS, str(exc)) from exc
        if response.is_error:
            await response.aread()
            await response.aclose()
            raise gateway_error_for_status(
                response.status_code, response.text, fallback=CoachUnavailableError
            )
        return response

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}"}
