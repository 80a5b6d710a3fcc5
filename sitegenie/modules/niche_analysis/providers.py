"""Provider adapters: turn integration clients into ``ProviderResult`` values.

Integration clients raise ``ProviderError``; these adapters catch it and
return a fallback or error result so nothing is raised into the scorers.
"""

import logging
import math
import random
from typing import Optional

from sitegenie.exceptions import ProviderError
from sitegenie.integrations.ahrefs import AhrefsClient
from sitegenie.integrations.google_trends import GoogleTrendsClient
from sitegenie.integrations.keyword_planner import KeywordPlannerClient
from sitegenie.modules.niche_analysis.models import KeywordRecord, ProviderResult
from sitegenie.utils.randomness import RandomSource

logger = logging.getLogger(__name__)

RELATED_PREFIXES = ("best", "top", "affordable", "premium", "how to", "why", "when to")
RELATED_SUFFIXES = ("guide", "tutorial", "review", "tips", "for beginners", "services", "near me")
MOCK_RELATED_LIMIT = 10


def related_keyword_variants(keyword: str, limit: int = MOCK_RELATED_LIMIT) -> list[str]:
    """Prefix and suffix variants of ``keyword``, in a fixed order."""
    variants = [f"{prefix} {keyword}" for prefix in RELATED_PREFIXES]
    variants.extend(f"{keyword} {suffix}" for suffix in RELATED_SUFFIXES)
    return variants[:limit]


def mock_keyword_data(keyword: str, rng: random.Random) -> KeywordRecord:
    """Stand-in metrics derived from the keyword's length plus three draws of ``rng``."""
    length = len(keyword)
    search_volume = math.floor(1000 + (length * 500) * (0.5 + rng.random()))
    competition = min(0.1 + (length % 10) / 20 + rng.random() * 0.3, 1.0)
    cpc = 0.5 + (length % 5) * 0.3 + rng.random()
    return KeywordRecord(
        keyword=keyword,
        search_volume=search_volume,
        competition=competition,
        cpc=cpc,
        related_keywords=tuple(related_keyword_variants(keyword)),
    )


class KeywordDataProvider:
    """Keyword metrics from the keyword planner, with a mock fallback.

    Without a client, or when the client fails, the provider answers with
    ``mock_keyword_data``.  When the API answers but has no row for the
    keyword the result is an error and the keyword is dropped.
    """

    def __init__(
        self,
        client: Optional[KeywordPlannerClient] = None,
        random_source: Optional[RandomSource] = None,
        related_limit: int = 15,
    ):
        self._client = client
        self._random = random_source or RandomSource()
        self._related_limit = related_limit

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _mock(self, keyword: str, reason: str) -> ProviderResult[KeywordRecord]:
        return ProviderResult.fallback(
            mock_keyword_data(keyword, self._random.for_key(keyword)), reason,
        )

    async def fetch(self, keyword: str) -> ProviderResult[KeywordRecord]:
        logger.info("Fetching keyword data for: %s", keyword)
        if self._client is None:
            logger.warning("Using mock keyword data (KEYWORD_PLANNER_API_KEY not set)")
            return self._mock(keyword, "keyword planner not configured")

        try:
            metrics = await self._client.get_keyword_metrics(keyword)
        except ProviderError as exc:
            logger.warning("Falling back to mock keyword data for %r: %s", keyword, exc)
            return self._mock(keyword, str(exc))

        if metrics is None:
            return ProviderResult.failure(f"No data found for keyword {keyword!r}")

        try:
            related = await self._client.get_related_keywords(keyword, limit=self._related_limit)
        except ProviderError as exc:
            logger.error("Error fetching related keywords for %s: %s", keyword, exc)
            related = []

        return ProviderResult.success(KeywordRecord(
            keyword=keyword,
            search_volume=max(0, int(metrics["search_volume"])),
            competition=min(max(float(metrics["competition"]), 0.0), 1.0),
            cpc=max(0.0, float(metrics["cpc"])),
            related_keywords=tuple(related),
        ))


class BacklinkProvider:
    """Top ranking pages for a niche via Ahrefs."""

    def __init__(self, client: AhrefsClient, page_limit: int = 10):
        self._client = client
        self._page_limit = page_limit

    async def top_pages(self, niche_name: str) -> ProviderResult[list[dict]]:
        try:
            pages = await self._client.get_top_pages(niche_name, limit=self._page_limit)
        except ProviderError as exc:
            return ProviderResult.failure(str(exc))
        return ProviderResult.success(pages)


class TrendsProvider:
    """Interest-over-time series for a niche via Google Trends."""

    def __init__(self, client: GoogleTrendsClient, timeframe: str = "today 12-m"):
        self._client = client
        self._timeframe = timeframe

    async def interest_series(self, niche_name: str) -> ProviderResult[list[float]]:
        try:
            series = await self._client.get_interest_series(niche_name, timeframe=self._timeframe)
        except ProviderError as exc:
            return ProviderResult.failure(str(exc))
        return ProviderResult.success(series)
