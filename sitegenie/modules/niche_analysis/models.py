"""Data structures flowing through the niche recommendation pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from sitegenie.exceptions import InputError
from sitegenie.utils.helpers import round2
from sitegenie.utils.validators import validate_keywords

T = TypeVar("T")


class ProviderStatus(str, Enum):
    SUCCESS = "success"
    FALLBACK = "fallback"
    ERROR = "error"


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    """Outcome of one call across the provider boundary.

    ``SUCCESS`` carries live data, ``FALLBACK`` carries substitute data
    (mock or degraded) and ``ERROR`` carries only a message.
    """
    status: ProviderStatus
    value: Optional[T] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status is not ProviderStatus.ERROR

    @classmethod
    def success(cls, value: T) -> "ProviderResult[T]":
        return cls(ProviderStatus.SUCCESS, value)

    @classmethod
    def fallback(cls, value: T, error: str = "") -> "ProviderResult[T]":
        return cls(ProviderStatus.FALLBACK, value, error)

    @classmethod
    def failure(cls, error: str) -> "ProviderResult[T]":
        return cls(ProviderStatus.ERROR, None, error)


@dataclass(frozen=True)
class KeywordRecord:
    """Search metrics for one keyword, immutable once fetched."""
    keyword: str
    search_volume: int
    competition: float
    cpc: float
    related_keywords: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "keyword": self.keyword,
            "search_volume": self.search_volume,
            "cpc": self.cpc,
            "competition": self.competition,
        }


@dataclass
class CandidateNiche:
    """A keyword-derived niche before scoring.

    ``top_competitors`` stays empty until the competition scorer fills it
    from backlink data.
    """
    niche_name: str
    monthly_search_volume: int
    competition: float
    estimated_cpc: float
    related_keywords: list[str] = field(default_factory=list)
    top_competitors: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class ScoredNiche(CandidateNiche):
    """Candidate plus its three clamped scores."""
    competition_score: float = 0.0
    monetization_potential: float = 0.0
    trending_score: float = 0.0

    @classmethod
    def from_candidate(
        cls,
        candidate: CandidateNiche,
        competition_score: float,
        monetization_potential: float,
        trending_score: float,
    ) -> "ScoredNiche":
        return cls(
            niche_name=candidate.niche_name,
            monthly_search_volume=candidate.monthly_search_volume,
            competition=candidate.competition,
            estimated_cpc=candidate.estimated_cpc,
            related_keywords=list(candidate.related_keywords),
            top_competitors=list(candidate.top_competitors),
            competition_score=competition_score,
            monetization_potential=monetization_potential,
            trending_score=trending_score,
        )

    def to_dict(self, max_related: int = 10, max_competitors: int = 5) -> dict[str, Any]:
        """Display form: numbers rounded to 2 places, lists truncated."""
        return {
            "niche_name": self.niche_name,
            "monthly_search_volume": int(self.monthly_search_volume),
            "competition_score": round2(self.competition_score),
            "monetization_potential": round2(self.monetization_potential),
            "trending_score": round2(self.trending_score),
            "estimated_cpc": round2(self.estimated_cpc),
            "related_keywords": list(self.related_keywords[:max_related]),
            "top_competitors": [dict(c) for c in self.top_competitors[:max_competitors]],
        }


@dataclass
class NichePreferences:
    """Optional user preferences narrowing the candidate set."""
    industry: Optional[str] = None
    investment_level: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "NichePreferences":
        """Build preferences from a plain dict.

        Raises:
            InputError: when ``data`` is not a mapping.
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise InputError("preferences must be a mapping")
        return cls(
            industry=data.get("industry") or None,
            investment_level=data.get("investment_level") or data.get("investmentLevel") or None,
        )


@dataclass
class AnalysisRequest:
    """One niche analysis request.

    Attributes:
        keywords: Seed keywords, at least one.
        limit: Maximum recommendations returned (default 5).
        preferences: Industry / investment preferences.
        include_keyword_data: Echo the fetched keyword metrics in the response.
        save_results: Persist the recommendations (needs a store).
    """
    keywords: list[str]
    limit: int = 5
    preferences: NichePreferences = field(default_factory=NichePreferences)
    include_keyword_data: bool = False
    save_results: bool = False

    def validate(self) -> None:
        ok, error = validate_keywords(self.keywords)
        if not ok:
            raise InputError(error)
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 1:
            raise InputError(f"limit must be a positive integer, got {self.limit!r}")
        if not isinstance(self.preferences, NichePreferences):
            raise InputError("preferences must be a NichePreferences instance")

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_limit: int = 5) -> "AnalysisRequest":
        """Build and validate a request from a plain dict.

        camelCase keys (``includeKeywordData``, ``saveResults``) are accepted.

        Raises:
            InputError: when keywords or limit are invalid.
        """
        if not isinstance(data, dict):
            raise InputError("Request must be a mapping")
        limit = data.get("limit")
        request = cls(
            keywords=data.get("keywords") or [],
            limit=default_limit if limit is None else limit,
            preferences=NichePreferences.from_dict(data.get("preferences")),
            include_keyword_data=bool(
                data.get("include_keyword_data", data.get("includeKeywordData", False))
            ),
            save_results=bool(data.get("save_results", data.get("saveResults", False))),
        )
        request.validate()
        return request
