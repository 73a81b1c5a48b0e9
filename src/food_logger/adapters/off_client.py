"""Open Food Facts API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

USER_AGENT = "food-logger/1.0 (personal app)"
_SEARCH_FIELDS = "code,product_name,brands,nutriments,serving_size"


class OpenFoodFactsClient(Protocol):
    """Interface for Open Food Facts API interactions."""

    async def search_products(
        self, query: str, page_size: int = 10
    ) -> dict[str, object]:
        """Search products by free text and return raw API data."""

    async def get_product(self, code: str) -> dict[str, object]:
        """Fetch a product by barcode and return raw API data."""


@dataclass
class HttpxOpenFoodFactsClient(OpenFoodFactsClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(cls, base_url: str) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(headers={"User-Agent": USER_AGENT}),
        )

    async def search_products(
        self, query: str, page_size: int = 10
    ) -> dict[str, object]:
        """Search products sorted by scan popularity."""
        response = await self.http_client.get(
            f"{self.base_url}/api/v2/search",
            params={
                "search": query,
                "fields": _SEARCH_FIELDS,
                "page_size": page_size,
                "sort_by": "unique_scans_n",
            },
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def get_product(self, code: str) -> dict[str, object]:
        """Fetch a product by barcode; unknown codes yield status 0."""
        response = await self.http_client.get(
            f"{self.base_url}/api/v2/product/{code}.json",
            timeout=self.timeout_seconds,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return {"status": 0}
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
