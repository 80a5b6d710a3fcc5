"""Niche recommendation engine: keywords in, ranked niche recommendations out."""

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional, Union

from sitegenie.config import AnalysisConfig
from sitegenie.database import NicheStore
from sitegenie.exceptions import InputError, PersistenceError
from sitegenie.modules.niche_analysis.models import (
    AnalysisRequest,
    CandidateNiche,
    KeywordRecord,
    NichePreferences,
    ScoredNiche,
)
from sitegenie.modules.niche_analysis.providers import KeywordDataProvider
from sitegenie.modules.niche_analysis.scoring import (
    CompetitionScorer,
    TrendingScorer,
    evaluate_monetization_potential,
    weighted_score,
)
from sitegenie.utils.helpers import clamp
from sitegenie.utils.randomness import RandomSource

logger = logging.getLogger(__name__)

NO_VALID_DATA_ERROR = "Failed to retrieve valid data for any of the provided keywords"


class NicheAnalyzer:
    """Turn seed keywords into ranked niche recommendations.

    Pipeline: fetch keyword records concurrently, expand them into
    candidate niches, score every candidate concurrently, drop low
    monetization, rank by weighted score and truncate.

    Usage::

        analyzer = NicheAnalyzer(store=store)
        result = await analyzer.analyze_niche({"keywords": ["hydroponics"]})

    Every collaborator is optional; the defaults run entirely on mock and
    hash data with no network access and no persistence.
    """

    def __init__(
        self,
        keyword_provider: Optional[KeywordDataProvider] = None,
        competition_scorer: Optional[CompetitionScorer] = None,
        trending_scorer: Optional[TrendingScorer] = None,
        store: Optional[NicheStore] = None,
        config: Optional[AnalysisConfig] = None,
        random_source: Optional[RandomSource] = None,
    ):
        self.config = config or AnalysisConfig()
        self._random = random_source or RandomSource(seed=self.config.random_seed)
        self._keywords = keyword_provider or KeywordDataProvider(random_source=self._random)
        self._competition = competition_scorer or CompetitionScorer()
        self._trending = trending_scorer or TrendingScorer(random_source=self._random)
        self._store = store

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    async def analyze_niche(
        self, request: Union[AnalysisRequest, dict[str, Any]],
    ) -> dict[str, Any]:
        """Run the full analysis and return a response dict.

        Never raises: invalid input and unexpected errors come back as
        ``{"success": False, "error": ...}``.  A failed save is reported
        with ``persisted: False`` and ``persistence_error`` alongside the
        recommendations.
        """
        try:
            if isinstance(request, AnalysisRequest):
                request.validate()
            else:
                request = AnalysisRequest.from_dict(request, self.config.default_limit)
        except InputError as exc:
            logger.warning("Rejected niche analysis request: %s", exc)
            return {"success": False, "error": str(exc)}

        try:
            return await self._run(request)
        except Exception as exc:
            logger.exception("Error in niche analysis: %s", exc)
            return {"success": False, "error": f"Niche analysis failed: {exc}"}

    async def _run(self, request: AnalysisRequest) -> dict[str, Any]:
        logger.info("Starting niche analysis for %d keywords", len(request.keywords))

        results = await asyncio.gather(*(self._keywords.fetch(kw) for kw in request.keywords))
        records: list[KeywordRecord] = []
        for keyword, result in zip(request.keywords, results):
            if result.ok:
                records.append(result.value)
            else:
                logger.error("Discarding keyword %r: %s", keyword, result.error)
        if not records:
            return {"success": False, "error": NO_VALID_DATA_ERROR}

        candidates = self.generate_candidates(records, request.preferences)
        logger.info("Generated %d candidate niches", len(candidates))

        scored = await asyncio.gather(*(self.score_candidate(c) for c in candidates))
        recommendations = self.rank(scored, request.limit)

        response: dict[str, Any] = {
            "success": True,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "niche_recommendations": [
                niche.to_dict(
                    max_related=self.config.max_related_keywords,
                    max_competitors=self.config.max_top_competitors,
                )
                for niche in recommendations
            ],
            "persisted": False,
        }
        if request.include_keyword_data:
            response["keyword_data"] = [record.to_dict() for record in records]

        if request.save_results or self.config.save_results:
            self._persist(recommendations, response)

        logger.info("Niche analysis complete. Found %d viable niches.", len(recommendations))
        return response

    def _persist(self, niches: list[ScoredNiche], response: dict[str, Any]) -> None:
        if self._store is None:
            logger.warning("Saving requested but no niche store is configured")
            response["persistence_error"] = "No niche store configured"
            return
        try:
            self._store.save_niches(niches)
        except PersistenceError as exc:
            response["persistence_error"] = str(exc)
            return
        response["persisted"] = True

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def generate_candidates(
        self,
        records: list[KeywordRecord],
        preferences: Optional[NichePreferences] = None,
    ) -> list[CandidateNiche]:
        """Expand keyword records into candidate niches.

        Each record is a candidate itself.  Its related keywords become
        candidates too when they are long enough and a scaled share
        (30-100%) of the source volume still clears the volume floor.
        """
        cfg = self.config
        candidates: list[CandidateNiche] = []
        for record in records:
            candidates.append(CandidateNiche(
                niche_name=record.keyword,
                monthly_search_volume=record.search_volume,
                competition=record.competition,
                estimated_cpc=record.cpc,
                related_keywords=list(record.related_keywords),
            ))
            for related in record.related_keywords:
                if len(related) < cfg.min_related_length or related == record.keyword:
                    continue
                rng = self._random.for_key(related)
                volume = math.floor(record.search_volume * rng.uniform(0.3, 1.0))
                if volume < cfg.min_related_volume:
                    continue
                others = [kw for kw in record.related_keywords if kw != related][:5]
                candidates.append(CandidateNiche(
                    niche_name=related,
                    monthly_search_volume=volume,
                    competition=record.competition * rng.uniform(0.8, 1.2),
                    estimated_cpc=record.cpc * rng.uniform(0.8, 1.2),
                    related_keywords=[record.keyword, *others],
                ))

        industry = preferences.industry if preferences else None
        if industry:
            candidates = [
                c for c in candidates
                if industry in c.niche_name or any(industry in kw for kw in c.related_keywords)
            ]
        return candidates

    async def score_candidate(self, candidate: CandidateNiche) -> ScoredNiche:
        """Attach clamped competition, monetization and trending scores."""
        competition_score, trending_score = await asyncio.gather(
            self._competition.score(candidate),
            self._trending.score(candidate.niche_name),
        )
        monetization = evaluate_monetization_potential(candidate)
        if self.config.clamp_monetization_floor:
            monetization = clamp(monetization, 0.0, 10.0)
        return ScoredNiche.from_candidate(
            candidate,
            competition_score=clamp(competition_score, 0.0, 100.0),
            monetization_potential=monetization,
            trending_score=clamp(trending_score, 0.0, 10.0),
        )

    def rank(self, scored: list[ScoredNiche], limit: int) -> list[ScoredNiche]:
        """Filter by monetization threshold, sort by weighted score, truncate."""
        viable = [n for n in scored if n.monetization_potential >= self.config.min_monetization]
        return sorted(viable, key=weighted_score, reverse=True)[:limit]
