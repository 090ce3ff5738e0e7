"""Client for the food safety certification product API."""

from dataclasses import dataclass

import httpx

from fridge_nutrition.services.food_info import FoodCertClient


@dataclass
class HttpxFoodCertClient(FoodCertClient):
    """HTTPX-backed certification API client returning raw XML."""

    base_url: str
    service_key: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, service_key: str) -> "HttpxFoodCertClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url,
            service_key=service_key,
            http_client=httpx.AsyncClient(),
        )

    async def fetch_products(self, product_name: str) -> str:
        """Search certified products by name."""
        response = await self.http_client.get(
            self.base_url,
            params={"ServiceKey": self.service_key, "prdlstNm": product_name},
            timeout=15,
        )
        response.raise_for_status()
        return response.text

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
