"""Nutritionix instant search client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class NutritionixClient(Protocol):
    """Interface for Nutritionix API interactions."""

    async def search_instant(self, query: str) -> dict[str, object]:
        """Run an instant search and return raw API data."""


@dataclass
class HttpxNutritionixClient(NutritionixClient):
    """HTTPX-backed Nutritionix client."""

    app_id: str
    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(
        cls, app_id: str, api_key: str, base_url: str
    ) -> "HttpxNutritionixClient":
        """Create a client with a managed httpx session."""
        return cls(
            app_id=app_id,
            api_key=api_key,
            base_url=base_url,
            http_client=httpx.AsyncClient(),
        )

    async def search_instant(self, query: str) -> dict[str, object]:
        """Search branded and common foods with nutrient details."""
        response = await self.http_client.get(
            f"{self.base_url}/search/instant",
            params={"query": query, "detailed": "true", "self": "true"},
            headers={"x-app-id": self.app_id, "x-app-key": self.api_key},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
