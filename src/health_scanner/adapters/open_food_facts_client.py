"""Open Food Facts product API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class ProductSourceClient(Protocol):
    """Interface for product database lookups."""

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        """Return the raw lookup payload, or None when the product is unknown."""


@dataclass
class HttpxOpenFoodFactsClient(ProductSourceClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15.0

    @classmethod
    def create(
        cls, base_url: str, user_agent: str, timeout_seconds: float = 15.0
    ) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(headers={"User-Agent": user_agent}),
            timeout_seconds=timeout_seconds,
        )

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        """Fetch a product by barcode."""
        url = f"{self.base_url.rstrip('/')}/product/{barcode}.json"
        response = await self.http_client.get(url, timeout=self.timeout_seconds)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
