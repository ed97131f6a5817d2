"""GMB Dashboard: GMB Data API Client.

Thin async client for the third-party API that fronts Google Business
Profile data (reviews, search keyword impressions). Every call is a JSON
POST to a single endpoint; the request body selects the operation.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from gmb_dashboard.config import settings
from gmb_dashboard.core.logging import get_logger

logger = get_logger("gmb.client")

RETRY_BASE_DELAY = 2  # seconds


class GMBAPIError(Exception):
    """Raised when the GMB data API fails or returns unusable data."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class GMBClient:
    """Async HTTP client for the GMB data API."""

    def __init__(
        self,
        base_url: str | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_base_delay: float = RETRY_BASE_DELAY,
    ):
        self.base_url = base_url or settings.gmb_api_url
        self.max_retries = max(1, max_retries or settings.gmb_max_retries)
        self.retry_base_delay = retry_base_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=settings.gmb_timeout_seconds, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Core Request Method ──

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a JSON body with retry on 429, 5xx and transport errors."""
        client = await self._get_client()

        for attempt in range(1, self.max_retries + 1):
            wait = self.retry_base_delay * (2 ** (attempt - 1))
            try:
                resp = await client.post(self.base_url, json=payload)

                if resp.status_code == 429 and attempt < self.max_retries:
                    logger.warning(
                        f"Rate limited (429). Retrying in {wait}s (attempt {attempt}/{self.max_retries})"
                    )
                    await asyncio.sleep(wait)
                    continue

                resp.raise_for_status()

            except httpx.HTTPStatusError as e:
                if attempt < self.max_retries and e.response.status_code >= 500:
                    logger.warning(f"Server error {e.response.status_code}. Retrying in {wait}s")
                    await asyncio.sleep(wait)
                    continue
                raise GMBAPIError(
                    f"GMB API returned {e.response.status_code}", e.response.status_code
                ) from e

            except httpx.RequestError as e:
                if attempt < self.max_retries:
                    logger.warning(f"Request error: {e}. Retrying in {wait}s")
                    await asyncio.sleep(wait)
                    continue
                raise GMBAPIError(
                    f"Connection failed after {self.max_retries} attempts: {e}"
                ) from e

            try:
                return resp.json()
            except ValueError as e:
                logger.error(f"Error parsing external API response: {e}")
                raise GMBAPIError("Failed to parse external API response", resp.status_code) from e

        raise GMBAPIError("Max retries exhausted")

    # ── Operations ──

    async def search_keywords_impressions(
        self,
        email: str,
        location_id: str,
        start_year: int,
        start_month: int,
        end_year: int,
        end_month: int,
    ) -> Dict[str, Any]:
        """Monthly search-keyword impression counts for one location."""
        return await self._post(
            {
                "action": "search_keywords_impressions",
                "email": email,
                "locationId": location_id,
                "startYear": start_year,
                "startMonth": start_month,
                "endYear": end_year,
                "endMonth": end_month,
            }
        )

    async def fetch_review_page(
        self, email: str, location: str, page_token: str = ""
    ) -> Dict[str, Any]:
        """One page of reviews; `nextPageToken` in the result points at the next."""
        return await self._post(
            {
                "function": "reviews",
                "email": email,
                "location": location,
                "pageToken": page_token,
            }
        )
