"""Open Food Facts catalog API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from nutrition_lookup.domain.errors import UpstreamError


class CatalogClient(Protocol):
    """Interface for food catalog API interactions."""

    async def search_products(
        self, query: str, page_size: int = 5
    ) -> dict[str, object]:
        """Search products by free text and return raw API data."""

    async def get_product(self, product_id: str) -> dict[str, object] | None:
        """Fetch a product by code, or None when the catalog has no such product."""


@dataclass
class HttpxOpenFoodFactsClient(CatalogClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(
        cls, base_url: str, user_agent: str, timeout_seconds: float = 15
    ) -> "HttpxOpenFoodFactsClient":
        """Create a catalog client with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(headers={"User-Agent": user_agent}),
            timeout_seconds=timeout_seconds,
        )

    async def search_products(
        self, query: str, page_size: int = 5
    ) -> dict[str, object]:
        """Search products by free text."""
        url = f"{self.base_url}/cgi/search.pl"
        response = await self._get(
            url,
            params={
                "search_terms": query,
                "search_simple": 1,
                "action": "process",
                "json": 1,
                "page_size": page_size,
            },
        )
        _raise_for_status(response)
        return _json_object(response)

    async def get_product(self, product_id: str) -> dict[str, object] | None:
        """Fetch a single product by code."""
        url = f"{self.base_url}/api/v2/product/{product_id}.json"
        response = await self._get(url)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        _raise_for_status(response)
        payload = _json_object(response)
        product = payload.get("product")
        if payload.get("status") != 1 or not isinstance(product, dict):
            return None
        return product

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _get(
        self, url: str, params: dict[str, object] | None = None
    ) -> httpx.Response:
        try:
            return await self.http_client.get(
                url, params=params, timeout=self.timeout_seconds
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Open Food Facts request failed: {exc}") from exc


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    raise UpstreamError(
        f"Open Food Facts API responded with status: {response.status_code}",
        status_code=response.status_code,
    )


def _json_object(response: httpx.Response) -> dict[str, object]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise UpstreamError("Open Food Facts returned an unparseable body") from exc
    if not isinstance(payload, dict):
        raise UpstreamError("Open Food Facts returned an unexpected body")
    return payload
