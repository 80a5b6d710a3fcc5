"""Domain availability checks, ranking and registration for a niche."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sitegenie.database import NicheStore
from sitegenie.exceptions import PersistenceError, RegistrarError
from sitegenie.integrations.cloudflare import CloudflareClient
from sitegenie.integrations.namecheap import DEFAULT_NAMESERVERS, NamecheapClient
from sitegenie.modules.domains.generator import DomainPreferences, generate_domain_options
from sitegenie.modules.domains.scorer import DomainCandidate
from sitegenie.utils.randomness import RandomSource
from sitegenie.utils.validators import validate_domain

logger = logging.getLogger(__name__)

DEFAULT_REGISTRATION_COST = 12.99
REGISTRATION_DAYS = 365


class DomainRegistry:
    """Pick and register the best available domain for a niche.

    Usage::

        registry = DomainRegistry(NamecheapClient(...), dns=CloudflareClient(...))
        result = await registry.register_domain(
            {"niche_name": "hydroponics", "related_keywords": ["indoor garden"]},
        )

    Args:
        registrar: Namecheap client used for availability and registration.
        dns: Optional Cloudflare client; a zone is created after registration.
        store: Optional niche store; the new site is recorded against the niche.
    """

    def __init__(
        self,
        registrar: NamecheapClient,
        dns: Optional[CloudflareClient] = None,
        store: Optional[NicheStore] = None,
        random_source: Optional[RandomSource] = None,
    ):
        self._registrar = registrar
        self._dns = dns
        self._store = store
        self._random = random_source or RandomSource()

    async def check_availability(self, domain: str) -> bool:
        """True when the registrar reports ``domain`` as available.

        Malformed names and registrar errors are logged and count as
        unavailable.
        """
        valid, reason = validate_domain(domain)
        if not valid:
            logger.warning("Skipping invalid domain %r: %s", domain, reason)
            return False
        try:
            result = await self._registrar.check_availability([domain])
        except RegistrarError as exc:
            logger.error("Error checking domain availability for %s: %s", domain, exc)
            return False
        return result.get(domain.lower(), False)

    async def rank_available_domains(self, options: list[str]) -> list[DomainCandidate]:
        """Check every option concurrently; return the available ones best-first."""
        logger.info("Checking availability for %d domain options", len(options))
        available = await asyncio.gather(*(self.check_availability(d) for d in options))
        candidates = [
            DomainCandidate.from_domain(domain)
            for domain, is_free in zip(options, available)
            if is_free
        ]
        return sorted(candidates, key=lambda c: c.score, reverse=True)

    async def register_domain(
        self,
        niche: dict[str, Any],
        preferences: Optional[DomainPreferences] = None,
    ) -> dict[str, Any]:
        """Generate options for ``niche``, register the top available one.

        Returns:
            On success a dict with domain, registration_date,
            expiration_date, nameservers, domain_score, registration_cost
            and dns_configured, plus dns_error when the zone could not be
            created.  On failure ``{"success": False, "error": ...}``.
        """
        keywords = [niche["niche_name"], *list(niche.get("related_keywords") or [])[:5]]
        options = generate_domain_options(keywords, preferences, self._random)
        try:
            ranked = await self.rank_available_domains(options)
            if not ranked:
                return {"success": False, "error": "No available domains found"}

            best = ranked[0]
            logger.info("Registering domain: %s (score: %.2f)", best.domain, best.score)
            result = await self._registrar.register_domain(
                best.domain, years=1, nameservers=DEFAULT_NAMESERVERS,
            )
            if not result.get("success"):
                return {
                    "success": False,
                    "error": f"Domain registration failed: {result.get('error') or 'Unknown error'}",
                    "attempted_domain": best.domain,
                }

        except RegistrarError as exc:
            logger.error("Error registering domain: %s", exc)
            return {"success": False, "error": f"Domain registration error: {exc}"}

        # the domain is bought at this point; later failures only annotate the result
        dns_error = None
        if self._dns is not None:
            try:
                await self._dns.add_zone(best.domain)
            except RegistrarError as exc:
                logger.error("Registered %s but DNS zone setup failed: %s", best.domain, exc)
                dns_error = str(exc)

        if self._store is not None:
            try:
                self._store.add_site(niche["niche_name"], best.domain)
            except PersistenceError as exc:
                logger.error("Registered %s but could not record the site: %s", best.domain, exc)

        now = datetime.now(timezone.utc)
        response = {
            "success": True,
            "domain": best.domain,
            "registration_date": now.isoformat(),
            "expiration_date": (now + timedelta(days=REGISTRATION_DAYS)).isoformat(),
            "nameservers": list(DEFAULT_NAMESERVERS),
            "domain_score": best.score,
            "registration_cost": result.get("cost") or DEFAULT_REGISTRATION_COST,
            "dns_configured": self._dns is not None and dns_error is None,
        }
        if dns_error is not None:
            response["dns_error"] = dns_error
        return response
