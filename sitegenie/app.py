"""Application wiring: builds the store, providers and services from Settings."""

import logging
from typing import Any, Optional

from sitegenie.config import Settings
from sitegenie.database import NicheStore
from sitegenie.integrations.ahrefs import AhrefsClient
from sitegenie.integrations.cloudflare import CloudflareClient
from sitegenie.integrations.google_trends import GoogleTrendsClient
from sitegenie.integrations.keyword_planner import KeywordPlannerClient
from sitegenie.integrations.namecheap import NamecheapClient
from sitegenie.modules.domains import DomainRegistry
from sitegenie.modules.niche_analysis import NicheAnalyzer
from sitegenie.modules.niche_analysis.providers import (
    BacklinkProvider,
    KeywordDataProvider,
    TrendsProvider,
)
from sitegenie.modules.niche_analysis.scoring import CompetitionScorer, TrendingScorer
from sitegenie.modules.reporting import (
    PerformanceFilters,
    generate_niche_comparison_report,
    generate_report,
    get_niche_performance_data,
)
from sitegenie.utils.randomness import RandomSource

logger = logging.getLogger(__name__)


class SiteGenie:
    """Central application class that wires every collaborator together.

    Providers whose credentials are missing are left out, so the
    pipeline runs on its fallbacks.

    Usage::

        app = SiteGenie(Settings.load())
        app.initialize()
        result = await app.analyze({"keywords": ["hydroponics"]})
        app.close()
    """

    def __init__(self, settings: Optional[Settings] = None, store: Optional[NicheStore] = None):
        self.settings = settings or Settings()
        self._store = store
        self._initialized = False
        self._random = RandomSource(seed=self.settings.analysis.random_seed)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Create the store (when not injected) and make sure its tables exist."""
        if self._initialized:
            return
        if self._store is None:
            self._store = NicheStore(
                self.settings.database_url, echo=self.settings.database_echo,
            )
        self._store.init_schema()
        self._initialized = True
        logger.info("SiteGenie initialised.")

    def close(self) -> None:
        if self._store is not None:
            self._store.dispose()
        self._initialized = False

    @property
    def store(self) -> NicheStore:
        self._ensure_initialized()
        return self._store

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("Call initialize() before using the application.")

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def build_analyzer(self) -> NicheAnalyzer:
        providers = self.settings.providers

        planner = None
        if providers.keyword_planner_api_key:
            planner = KeywordPlannerClient(
                providers.keyword_planner_api_key,
                customer_id=providers.keyword_planner_customer_id,
                timeout=providers.timeout,
                requests_per_minute=providers.requests_per_minute,
            )
        backlinks = None
        if providers.ahrefs_api_key:
            backlinks = BacklinkProvider(AhrefsClient(
                providers.ahrefs_api_key,
                timeout=providers.timeout,
                requests_per_minute=providers.requests_per_minute,
            ))
        trends = TrendsProvider(GoogleTrendsClient()) if providers.google_trends_enabled else None

        return NicheAnalyzer(
            keyword_provider=KeywordDataProvider(planner, random_source=self._random),
            competition_scorer=CompetitionScorer(backlinks),
            trending_scorer=TrendingScorer(trends, random_source=self._random),
            store=self.store,
            config=self.settings.analysis,
            random_source=self._random,
        )

    def build_domain_registry(self) -> DomainRegistry:
        """Registry backed by Namecheap (and Cloudflare when configured).

        Raises:
            RuntimeError: when Namecheap credentials are missing.
        """
        providers = self.settings.providers
        if not (providers.namecheap_api_user and providers.namecheap_api_key):
            raise RuntimeError("Namecheap credentials are not configured (NAMECHEAP_API_USER/KEY).")
        registrar = NamecheapClient(
            providers.namecheap_api_user,
            providers.namecheap_api_key,
            username=providers.namecheap_username,
            client_ip=providers.namecheap_client_ip,
            sandbox=providers.namecheap_sandbox,
            timeout=providers.timeout,
        )
        dns = None
        if providers.cloudflare_api_token:
            dns = CloudflareClient(
                providers.cloudflare_api_token,
                account_id=providers.cloudflare_account_id,
                timeout=providers.timeout,
            )
        return DomainRegistry(registrar, dns=dns, store=self.store, random_source=self._random)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def analyze(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self.build_analyzer().analyze_niche(request)

    def performance(self, filters: Optional[PerformanceFilters] = None) -> dict[str, Any]:
        return get_niche_performance_data(self.store, filters)

    def report(
        self,
        filters: Optional[PerformanceFilters] = None,
        output_dir: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> dict[str, Any]:
        return generate_report(
            self.store, output_dir or self.settings.reports_dir, filename, filters,
        )

    def compare(
        self,
        niche1_id: int,
        niche2_id: int,
        output_dir: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> dict[str, Any]:
        return generate_niche_comparison_report(
            self.store, niche1_id, niche2_id, output_dir or self.settings.reports_dir, filename,
        )
