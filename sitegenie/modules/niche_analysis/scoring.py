"""Competition, monetization and trending scorers for candidate niches."""

import logging
import math
from typing import Optional

import numpy as np

from sitegenie.modules.niche_analysis.models import CandidateNiche, ScoredNiche
from sitegenie.modules.niche_analysis.providers import BacklinkProvider, TrendsProvider
from sitegenie.utils.helpers import clamp, extract_domain
from sitegenie.utils.randomness import RandomSource

logger = logging.getLogger(__name__)

COMMERCIAL_TERMS = (
    "buy", "price", "review", "best", "top", "vs", "cheap", "affordable", "deal", "sale",
)
NEUTRAL_TRENDING_SCORE = 5.0


def _log10(value: float) -> float:
    return math.log10(max(value, 1))


# ----------------------------------------------------------------------
# Competition
# ----------------------------------------------------------------------

def primary_competition_score(niche: CandidateNiche) -> float:
    """Keyword-signal competition score (0-100) used without backlink data."""
    score = (
        0.6 * (niche.competition * 100)
        + 0.2 * (_log10(niche.monthly_search_volume) * 2)
        + 0.2 * (niche.estimated_cpc * 5)
    )
    return clamp(score, 0.0, 100.0)


class CompetitionScorer:
    """Score how hard a niche is to rank in, 0 (easy) to 100 (hard).

    With a ``BacklinkProvider`` the score comes from the authority and
    backlinks of the top ranking pages, and ``niche.top_competitors`` is
    filled in.  Without one the keyword competition index, volume and CPC
    are blended instead.
    """

    def __init__(self, backlinks: Optional[BacklinkProvider] = None):
        self._backlinks = backlinks

    async def score(self, niche: CandidateNiche) -> float:
        if self._backlinks is None:
            return primary_competition_score(niche)

        result = await self._backlinks.top_pages(niche.niche_name)
        if not result.ok:
            logger.error(
                "Error calculating competition score for %s: %s", niche.niche_name, result.error,
            )
            return clamp(niche.competition * 80 + 20, 0.0, 100.0)

        pages = result.value or []
        if not pages:
            return clamp(niche.competition * 100, 0.0, 100.0)

        niche.top_competitors = [
            {
                "domain": extract_domain(page["url"]),
                "domain_authority": page["domain_rating"],
                "estimated_traffic": page["organic_traffic"],
            }
            for page in pages
        ]
        avg_authority = sum(p["domain_rating"] for p in pages) / len(pages)
        avg_backlinks = sum(p["backlinks"] for p in pages) / len(pages)
        return clamp(0.7 * avg_authority + 3 * _log10(avg_backlinks), 0.0, 100.0)


# ----------------------------------------------------------------------
# Monetization
# ----------------------------------------------------------------------

def commercial_intent_matches(niche: CandidateNiche) -> list[str]:
    """Commercial terms found (case-sensitive) in the name or related keywords."""
    texts = [niche.niche_name, *niche.related_keywords]
    return [term for term in COMMERCIAL_TERMS if any(term in text for text in texts)]


def evaluate_monetization_potential(niche: CandidateNiche) -> float:
    """Estimate revenue potential on a 0-10 scale.

    Sum of a CPC factor (up to 5), a volume factor (up to 3, negative
    below 100 searches) and 0.2 per commercial term (up to 2).  Only the
    upper bound is applied here; the engine owns the floor.
    """
    cpc_factor = min(5.0, niche.estimated_cpc * 2)
    volume_factor = min(3.0, _log10(niche.monthly_search_volume) - 2)
    commercial_factor = min(2.0, 0.2 * len(commercial_intent_matches(niche)))
    return min(10.0, cpc_factor + volume_factor + commercial_factor)


# ----------------------------------------------------------------------
# Trending
# ----------------------------------------------------------------------

def series_trending_score(series: list[float]) -> float:
    """Average plus least-squares slope of an interest series, mapped to 0-10."""
    if not series:
        return NEUTRAL_TRENDING_SCORE
    values = np.asarray(series, dtype=float)
    average = float(values.mean())
    slope = 0.0
    if len(values) > 1:
        slope = float(np.polyfit(np.arange(len(values)), values, 1)[0])
    return clamp(average / 20 + slope * 20, 0.0, 10.0)


class TrendingScorer:
    """Score search-interest momentum, 0 (declining) to 10 (rising).

    Without a ``TrendsProvider`` the score is a character-sum hash of the
    name plus a jitter of up to one point either way.
    """

    def __init__(
        self,
        trends: Optional[TrendsProvider] = None,
        random_source: Optional[RandomSource] = None,
    ):
        self._trends = trends
        self._random = random_source or RandomSource()

    def hash_score(self, name: str) -> float:
        base = (sum(ord(ch) for ch in name) % 60) / 10 + 2
        jitter = self._random.for_key(name).random() * 2 - 1
        return clamp(base + jitter, 0.0, 10.0)

    async def score(self, name: str) -> float:
        if self._trends is None:
            return self.hash_score(name)
        result = await self._trends.interest_series(name)
        if not result.ok:
            logger.error("Error calculating trending score for %s: %s", name, result.error)
            return NEUTRAL_TRENDING_SCORE
        return series_trending_score(result.value or [])


# ----------------------------------------------------------------------
# Ranking
# ----------------------------------------------------------------------

def weighted_score(niche: ScoredNiche) -> float:
    """Ranking key: low competition, high monetization, then trend."""
    return (
        0.4 * (10 - niche.competition_score)
        + 0.4 * niche.monetization_potential
        + 0.2 * niche.trending_score
    )
