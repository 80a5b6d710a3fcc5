"""Ahrefs integration for the pages ranking on a niche query."""

import logging
from typing import Any, Optional

import httpx

from sitegenie.exceptions import ProviderError
from sitegenie.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

AHREFS_POSITIONS_URL = "https://apiv2.ahrefs.com/positions"


class AhrefsClient:
    """Client for top-ranking page metrics.

    Usage::

        ahrefs = AhrefsClient(api_key="...")
        pages = await ahrefs.get_top_pages("hydroponics", limit=10)
    """

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        requests_per_minute: int = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._limiter = RateLimiter(requests_per_minute, name="ahrefs")

    async def get_top_pages(self, target: str, limit: int = 10) -> list[dict[str, Any]]:
        """Return the top ranking pages for ``target``.

        Each page dict carries url, domain_rating, organic_traffic and
        backlinks (missing numbers default to 0).

        Raises:
            ProviderError: on transport, HTTP or payload errors.
        """
        params = {
            "token": self._api_key,
            "target": target,
            "mode": "domain",
            "limit": limit,
            "output": "json",
        }
        try:
            async with self._limiter:
                async with httpx.AsyncClient(
                    timeout=self._timeout, transport=self._transport,
                ) as client:
                    response = await client.get(AHREFS_POSITIONS_URL, params=params)
                    response.raise_for_status()
                    data = response.json()
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"Ahrefs returned HTTP {exc.response.status_code}",
                provider="ahrefs",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Ahrefs request failed: {exc}", provider="ahrefs") from exc
        except ValueError as exc:
            raise ProviderError(f"Ahrefs returned invalid JSON: {exc}", provider="ahrefs") from exc

        if not isinstance(data, dict) or "pages" not in data:
            raise ProviderError("Ahrefs response has no 'pages' field", provider="ahrefs")

        pages: list[dict[str, Any]] = []
        for page in (data.get("pages") or [])[:limit]:
            pages.append({
                "url": str(page.get("url", "")),
                "domain_rating": float(page.get("domain_rating", 0) or 0),
                "organic_traffic": int(page.get("organic_traffic", 0) or 0),
                "backlinks": int(page.get("backlinks", 0) or 0),
            })
        logger.info("Ahrefs top pages for %r: %d pages", target, len(pages))
        return pages
