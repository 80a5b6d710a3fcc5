"""Google Ads Keyword Planner integration for keyword metrics."""

import logging
from typing import Any, Optional

import httpx

from sitegenie.exceptions import ProviderError
from sitegenie.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

GOOGLE_ADS_API_BASE = "https://googleads.googleapis.com/v11"

_METRICS_QUERY = """
SELECT
  keyword_view.resource_name,
  keyword_plan_keyword.keyword_text,
  keyword_plan_keyword_historical_metrics.avg_monthly_searches,
  keyword_plan_keyword_historical_metrics.competition,
  keyword_plan_keyword_historical_metrics.competition_index,
  keyword_plan_keyword_historical_metrics.high_top_of_page_bid_micros,
  keyword_plan_keyword_historical_metrics.low_top_of_page_bid_micros
FROM keyword_plan_keyword
WHERE keyword_plan_keyword.keyword_text = '{keyword}'
"""

_RELATED_QUERY = """
SELECT
  keyword_view.resource_name,
  keyword_plan_keyword.keyword_text,
  keyword_plan_keyword_historical_metrics.avg_monthly_searches,
  keyword_plan_keyword_historical_metrics.competition_index
FROM keyword_plan_keyword
WHERE keyword_plan_keyword.keyword_text LIKE '%{keyword}%'
ORDER BY keyword_plan_keyword_historical_metrics.avg_monthly_searches DESC
LIMIT {limit}
"""


def _quote(keyword: str) -> str:
    return keyword.replace("\\", "\\\\").replace("'", "\\'")


class KeywordPlannerClient:
    """Client for keyword metrics from the Google Ads search stream.

    Usage::

        planner = KeywordPlannerClient(api_key="...", customer_id="1234567890")
        metrics = await planner.get_keyword_metrics("hydroponics")
        related = await planner.get_related_keywords("hydroponics")
    """

    def __init__(
        self,
        api_key: str,
        customer_id: str = "",
        timeout: float = 30.0,
        requests_per_minute: int = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._customer_id = customer_id
        self._timeout = timeout
        self._transport = transport
        self._limiter = RateLimiter(requests_per_minute, name="keyword_planner")

    @property
    def _search_url(self) -> str:
        return f"{GOOGLE_ADS_API_BASE}/customers/{self._customer_id}/googleAds:searchStream"

    async def _search(self, query: str) -> list[dict[str, Any]]:
        """POST a GAQL query and return the ``results`` rows."""
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with self._limiter:
                async with httpx.AsyncClient(
                    timeout=self._timeout, transport=self._transport,
                ) as client:
                    response = await client.post(
                        self._search_url, json={"query": query}, headers=headers,
                    )
                    response.raise_for_status()
                    data = response.json()
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"Keyword planner returned HTTP {exc.response.status_code}",
                provider="keyword_planner",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"Keyword planner request failed: {exc}", provider="keyword_planner",
            ) from exc
        except ValueError as exc:
            raise ProviderError(
                f"Keyword planner returned invalid JSON: {exc}", provider="keyword_planner",
            ) from exc

        if isinstance(data, list):
            # searchStream may return a list of batches
            rows: list[dict[str, Any]] = []
            for batch in data:
                rows.extend(batch.get("results", []) or [])
            return rows
        return data.get("results", []) or []

    async def get_keyword_metrics(self, keyword: str) -> Optional[dict[str, Any]]:
        """Fetch volume, competition (0-1) and CPC (dollars) for a keyword.

        Returns:
            Dict with keyword, search_volume, competition, cpc, or None
            when the API has no data for the keyword.

        Raises:
            ProviderError: on transport, HTTP or payload errors.
        """
        rows = await self._search(_METRICS_QUERY.format(keyword=_quote(keyword)))
        if not rows:
            logger.warning("No keyword data found for: %s", keyword)
            return None
        try:
            metrics = rows[0]["keyword_plan_keyword_historical_metrics"]
            result = {
                "keyword": keyword,
                "search_volume": int(metrics.get("avg_monthly_searches", 0) or 0),
                "competition": float(metrics.get("competition_index", 0) or 0) / 100,
                "cpc": float(metrics.get("high_top_of_page_bid_micros", 0) or 0) / 1_000_000,
            }
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(
                f"Malformed keyword metrics for {keyword!r}: {exc}", provider="keyword_planner",
            ) from exc
        logger.info(
            "Keyword planner metrics for %r: vol=%d comp=%.2f cpc=%.2f",
            keyword, result["search_volume"], result["competition"], result["cpc"],
        )
        return result

    async def get_related_keywords(self, keyword: str, limit: int = 15) -> list[str]:
        """Fetch up to ``limit`` related keyword texts ordered by volume.

        Raises:
            ProviderError: on transport, HTTP or payload errors.
        """
        rows = await self._search(
            _RELATED_QUERY.format(keyword=_quote(keyword), limit=int(limit))
        )
        related: list[str] = []
        for row in rows:
            text = (row.get("keyword_plan_keyword") or {}).get("keyword_text")
            if text:
                related.append(str(text))
        return related[:limit]
