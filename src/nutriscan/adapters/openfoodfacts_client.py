"""Open Food Facts product API client."""

from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import httpx


class ProductDatabaseClient(Protocol):
    """Interface for barcode product database lookups."""

    async def fetch_product(
        self, barcode: str, region: str | None = None
    ) -> dict[str, object]:
        """Return the raw lookup payload for a barcode."""


@dataclass
class HttpxOpenFoodFactsClient(ProductDatabaseClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    http_client: httpx.AsyncClient
    mirror_url_template: str = "https://{region}.openfoodfacts.org"
    timeout_seconds: float = 15.0

    @classmethod
    def create(
        cls, base_url: str, timeout_seconds: float = 15.0
    ) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def fetch_product(
        self, barcode: str, region: str | None = None
    ) -> dict[str, object]:
        """Look up a barcode on the primary host or a regional mirror."""
        host = self.base_url
        if region:
            host = self.mirror_url_template.format(region=region)
        url = f"{host}/api/v0/product/{quote(barcode, safe='')}.json"
        response = await self.http_client.get(url, timeout=self.timeout_seconds)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("Unexpected Open Food Facts payload")
        return payload

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
