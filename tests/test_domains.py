"""Tests for domain scoring, generation and registration."""

import re
from unittest.mock import AsyncMock, MagicMock

import pytest

from sitegenie.exceptions import PersistenceError, RegistrarError
from sitegenie.integrations.namecheap import DEFAULT_NAMESERVERS
from sitegenie.modules.domains import (
    DomainCandidate,
    DomainPreferences,
    DomainRegistry,
    generate_domain_options,
    score_domain,
)
from sitegenie.modules.domains.generator import clean_keyword


# ===========================================================================
# Scoring
# ===========================================================================

class TestScoreDomain:

    @pytest.mark.parametrize("domain,expected", [
        ("short.com", 8.5),
        ("mysite.com", 9.5),
        ("my-site.com", 9.0),
        ("mysite1.com", 9.0),
        ("mysite.org", 8.5),
        ("mysite.io", 8.0),
        ("mysite.xyz", 7.5),
        ("averylongdomainnamewithoutbreaks.com", 6.7),
    ])
    def test_scores(self, domain, expected):
        assert score_domain(domain) == pytest.approx(expected)

    def test_case_insensitive(self):
        assert score_domain("MySite.COM") == score_domain("mysite.com")

    def test_within_bounds(self):
        for domain in ("x.com", "bcdfghjklmnpqrstvwxz-123.biz", "aaaa.io"):
            assert 0 <= score_domain(domain) <= 10

    def test_candidate_from_domain(self):
        candidate = DomainCandidate.from_domain("yogahub.com")
        assert candidate.name == "yogahub"
        assert candidate.tld == "com"
        assert candidate.domain == "yogahub.com"
        assert candidate.score == pytest.approx(9.5)


# ===========================================================================
# Generation
# ===========================================================================

class TestGenerateDomainOptions:

    def test_clean_keyword(self):
        assert clean_keyword("Indoor Garden!") == "indoorgarden"
        assert clean_keyword("e-bike  Parts") == "e-bikeparts"

    def test_defaults(self):
        options = generate_domain_options(["Hydroponics!", "Indoor Garden"])
        assert len(options) == 25
        assert options[:4] == [
            "hydroponics.com", "hydroponics.org", "hydroponics.net", "hydroponics.io",
        ]
        assert options[4] == "hydroponicsindoorgarden.com"
        assert len(set(options)) == len(options)

    def test_order_with_hyphens(self):
        prefs = DomainPreferences(use_hyphens=True, preferred_tlds=[".com"])
        assert generate_domain_options(["yoga", "mats"], prefs) == [
            "yoga.com",
            "yogamats.com", "yoga-mats.com", "yogaandmats.com",
            "bestyoga.com", "topyoga.com", "myyoga.com", "theyoga.com",
            "yogaguide.com", "yogahub.com", "yogapro.com", "yogaexpert.com", "yogahq.com",
        ]

    def test_short_domains(self):
        prefs = DomainPreferences(short_domains=True)
        options = generate_domain_options(["Hydroponics", "Indoor Garden"], prefs)
        assert len(options) == 20
        assert all(len(d.split(".")[0]) <= 15 for d in options)
        assert "hydroponicsindoorgarden.com" not in options

    def test_numbers(self, mid_random):
        prefs = DomainPreferences(include_numbers=True, preferred_tlds=[".com"])
        options = generate_domain_options(["yoga", "mats"], prefs, mid_random)
        assert any(re.fullmatch(r"yoga\d{1,2}\.com", d) for d in options)
        assert any(re.fullmatch(r"yogamats\d\.com", d) for d in options)

    def test_duplicate_keywords_are_not_paired(self):
        prefs = DomainPreferences(preferred_tlds=[".com"])
        options = generate_domain_options(["yoga", "Yoga!"], prefs)
        assert "yogayoga.com" not in options

    def test_only_first_four_keywords_are_paired(self):
        prefs = DomainPreferences(preferred_tlds=[".com"])
        options = generate_domain_options(["a", "b", "c", "d", "e"], prefs)
        assert "ad.com" in options
        assert "ae.com" not in options
        assert "cd.com" in options

    def test_empty_keywords(self):
        assert generate_domain_options([]) == []
        assert generate_domain_options(["!!!", "  "]) == []

    def test_preferences_from_dict(self):
        prefs = DomainPreferences.from_dict({
            "useHyphens": True, "preferredTLDs": ["com", ".io"], "shortDomains": True,
        })
        assert prefs.use_hyphens is True
        assert prefs.preferred_tlds == [".com", ".io"]
        assert prefs.short_domains is True
        assert prefs.include_numbers is False

    def test_preferences_from_none(self):
        assert DomainPreferences.from_dict(None) == DomainPreferences()


# ===========================================================================
# Registration
# ===========================================================================

def _registrar(free, register_result=None):
    registrar = MagicMock()
    registrar.check_availability = AsyncMock(
        side_effect=lambda domains: {domains[0].lower(): domains[0] in free}
    )
    registrar.register_domain = AsyncMock(
        return_value=register_result or {"success": True, "domain": "", "cost": 10.87}
    )
    return registrar


YOGA = {"niche_name": "yoga", "related_keywords": []}
PREFS = DomainPreferences(preferred_tlds=[".com", ".org"])


class TestDomainRegistry:

    @pytest.mark.asyncio
    async def test_check_availability(self):
        registry = DomainRegistry(_registrar({"yoga.com"}))
        assert await registry.check_availability("yoga.com") is True
        assert await registry.check_availability("yoga.org") is False

    @pytest.mark.asyncio
    async def test_invalid_domain_is_not_checked(self):
        registrar = _registrar({"-yoga.com"})
        assert await DomainRegistry(registrar).check_availability("-yoga.com") is False
        registrar.check_availability.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_check_availability_error_is_unavailable(self):
        registrar = MagicMock()
        registrar.check_availability = AsyncMock(side_effect=RegistrarError("2011166:IP not whitelisted"))
        assert await DomainRegistry(registrar).check_availability("yoga.com") is False

    @pytest.mark.asyncio
    async def test_rank_available_domains(self):
        registry = DomainRegistry(_registrar({"yoga.org", "yogahub.com"}))
        ranked = await registry.rank_available_domains(["yoga.com", "yoga.org", "yogahub.com"])
        assert [c.domain for c in ranked] == ["yogahub.com", "yoga.org"]

    @pytest.mark.asyncio
    async def test_register_best_domain(self):
        registrar = _registrar({"yoga.org", "yogahub.com"})
        dns = MagicMock()
        dns.add_zone = AsyncMock(return_value={"id": "z1"})
        result = await DomainRegistry(registrar, dns=dns).register_domain(YOGA, PREFS)

        assert result["success"] is True
        assert result["domain"] == "yogahub.com"
        assert result["domain_score"] == pytest.approx(9.5)
        assert result["registration_cost"] == pytest.approx(10.87)
        assert result["nameservers"] == list(DEFAULT_NAMESERVERS)
        assert result["expiration_date"] > result["registration_date"]
        registrar.register_domain.assert_awaited_once_with(
            "yogahub.com", years=1, nameservers=DEFAULT_NAMESERVERS,
        )
        dns.add_zone.assert_awaited_once_with("yogahub.com")

    @pytest.mark.asyncio
    async def test_default_cost(self):
        registrar = _registrar({"yoga.com"}, {"success": True, "domain": "yoga.com", "cost": None})
        result = await DomainRegistry(registrar).register_domain(YOGA, PREFS)
        assert result["registration_cost"] == pytest.approx(12.99)

    @pytest.mark.asyncio
    async def test_nothing_available(self):
        result = await DomainRegistry(_registrar(set())).register_domain(YOGA, PREFS)
        assert result == {"success": False, "error": "No available domains found"}

    @pytest.mark.asyncio
    async def test_registration_not_confirmed(self):
        registrar = _registrar(
            {"yoga.com"},
            {"success": False, "domain": "yoga.com", "error": "Registration was not confirmed"},
        )
        result = await DomainRegistry(registrar).register_domain(YOGA, PREFS)
        assert result == {
            "success": False,
            "error": "Domain registration failed: Registration was not confirmed",
            "attempted_domain": "yoga.com",
        }

    @pytest.mark.asyncio
    async def test_registrar_error(self):
        registrar = _registrar({"yoga.com"})
        registrar.register_domain = AsyncMock(side_effect=RegistrarError("timeout"))
        result = await DomainRegistry(registrar).register_domain(YOGA, PREFS)
        assert result == {"success": False, "error": "Domain registration error: timeout"}

    @pytest.mark.asyncio
    async def test_records_site_in_store(self, store, make_niche):
        store.save_niches([make_niche("yoga")])
        registry = DomainRegistry(_registrar({"yoga.com"}), store=store)
        result = await registry.register_domain(YOGA, PREFS)

        assert result["success"] is True
        rows, _ = store.query_niches()
        assert rows[0]["site_count"] == 1

    @pytest.mark.asyncio
    async def test_store_failure_does_not_undo_registration(self):
        broken = MagicMock()
        broken.add_site.side_effect = PersistenceError("database is locked")
        registry = DomainRegistry(_registrar({"yoga.com"}), store=broken)
        result = await registry.register_domain(YOGA, PREFS)
        assert result["success"] is True
        assert result["domain"] == "yoga.com"
        broken.add_site.assert_called_once_with("yoga", "yoga.com")

    @pytest.mark.asyncio
    async def test_dns_failure_still_reports_registration(self, store, make_niche):
        store.save_niches([make_niche("yoga")])
        dns = MagicMock()
        dns.add_zone = AsyncMock(side_effect=RegistrarError("Cloudflare rejected zone yoga.com"))
        registry = DomainRegistry(_registrar({"yoga.com"}), dns=dns, store=store)
        result = await registry.register_domain(YOGA, PREFS)

        assert result["success"] is True
        assert result["domain"] == "yoga.com"
        assert result["dns_configured"] is False
        assert result["dns_error"] == "Cloudflare rejected zone yoga.com"
        rows, _ = store.query_niches()
        assert rows[0]["site_count"] == 1

    @pytest.mark.asyncio
    async def test_dns_configured_flag(self):
        dns = MagicMock()
        dns.add_zone = AsyncMock(return_value={"id": "z1"})
        with_dns = await DomainRegistry(_registrar({"yoga.com"}), dns=dns).register_domain(YOGA, PREFS)
        without_dns = await DomainRegistry(_registrar({"yoga.com"})).register_domain(YOGA, PREFS)
        assert with_dns["dns_configured"] is True
        assert "dns_error" not in with_dns
        assert without_dns["dns_configured"] is False
