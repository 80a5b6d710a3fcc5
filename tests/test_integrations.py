"""Tests for the external API clients, driven through httpx.MockTransport."""

import json
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import httpx
import pandas as pd
import pytest

from sitegenie.exceptions import ProviderError, RegistrarError
from sitegenie.integrations.ahrefs import AhrefsClient
from sitegenie.integrations.cloudflare import CloudflareClient
from sitegenie.integrations.google_trends import GoogleTrendsClient
from sitegenie.integrations.keyword_planner import KeywordPlannerClient
from sitegenie.integrations.namecheap import NamecheapClient
from sitegenie.utils.rate_limiter import RateLimiter


def _transport(handler):
    return httpx.MockTransport(handler)


# ===========================================================================
# Keyword Planner
# ===========================================================================

class TestKeywordPlannerClient:

    @pytest.mark.asyncio
    async def test_metrics(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["url"] = str(request.url)
            seen["query"] = json.loads(request.content)["query"]
            return httpx.Response(200, json={"results": [{
                "keyword_plan_keyword_historical_metrics": {
                    "avg_monthly_searches": "12000",
                    "competition_index": 45,
                    "high_top_of_page_bid_micros": 2500000,
                },
            }]})

        client = KeywordPlannerClient("token", customer_id="123", transport=_transport(handler))
        metrics = await client.get_keyword_metrics("hydroponics")

        assert metrics == {
            "keyword": "hydroponics", "search_volume": 12000, "competition": 0.45, "cpc": 2.5,
        }
        assert seen["auth"] == "Bearer token"
        assert seen["url"].endswith("/customers/123/googleAds:searchStream")
        assert "keyword_text = 'hydroponics'" in seen["query"]

    @pytest.mark.asyncio
    async def test_quotes_are_escaped(self):
        queries = []

        def handler(request):
            queries.append(json.loads(request.content)["query"])
            return httpx.Response(200, json={"results": []})

        client = KeywordPlannerClient("token", transport=_transport(handler))
        await client.get_keyword_metrics("kid's toys")
        assert "kid\\'s toys" in queries[0]

    @pytest.mark.asyncio
    async def test_no_rows_is_none(self):
        client = KeywordPlannerClient(
            "token", transport=_transport(lambda r: httpx.Response(200, json={"results": []})),
        )
        assert await client.get_keyword_metrics("zzqx") is None

    @pytest.mark.asyncio
    async def test_stream_batches(self):
        batches = [
            {"results": [{"keyword_plan_keyword": {"keyword_text": "nft system"}}]},
            {"results": [{"keyword_plan_keyword": {"keyword_text": "hydroponic kit"}}, {}]},
        ]
        client = KeywordPlannerClient(
            "token", transport=_transport(lambda r: httpx.Response(200, json=batches)),
        )
        assert await client.get_related_keywords("hydroponics") == ["nft system", "hydroponic kit"]

    @pytest.mark.asyncio
    async def test_http_error(self):
        client = KeywordPlannerClient(
            "token", transport=_transport(lambda r: httpx.Response(500, text="oops")),
        )
        with pytest.raises(ProviderError) as excinfo:
            await client.get_keyword_metrics("hydroponics")
        assert excinfo.value.status_code == 500
        assert excinfo.value.provider == "keyword_planner"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = KeywordPlannerClient("token", transport=_transport(handler))
        with pytest.raises(ProviderError) as excinfo:
            await client.get_related_keywords("hydroponics")
        assert excinfo.value.status_code is None

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = KeywordPlannerClient(
            "token", transport=_transport(lambda r: httpx.Response(200, text="<html>")),
        )
        with pytest.raises(ProviderError, match="invalid JSON"):
            await client.get_keyword_metrics("hydroponics")


# ===========================================================================
# Ahrefs
# ===========================================================================

class TestAhrefsClient:

    @pytest.mark.asyncio
    async def test_top_pages(self):
        def handler(request):
            assert request.url.params["target"] == "hydroponics"
            assert request.url.params["limit"] == "2"
            return httpx.Response(200, json={"pages": [
                {"url": "https://a.com/x", "domain_rating": 50, "organic_traffic": 1000, "backlinks": 10},
                {"url": "https://b.com/", "domain_rating": None},
                {"url": "https://c.com/"},
            ]})

        client = AhrefsClient("key", transport=_transport(handler))
        pages = await client.get_top_pages("hydroponics", limit=2)
        assert pages == [
            {"url": "https://a.com/x", "domain_rating": 50.0, "organic_traffic": 1000, "backlinks": 10},
            {"url": "https://b.com/", "domain_rating": 0.0, "organic_traffic": 0, "backlinks": 0},
        ]

    @pytest.mark.asyncio
    async def test_missing_pages_field(self):
        client = AhrefsClient("key", transport=_transport(lambda r: httpx.Response(200, json={"error": "x"})))
        with pytest.raises(ProviderError, match="pages"):
            await client.get_top_pages("hydroponics")

    @pytest.mark.asyncio
    async def test_http_error(self):
        client = AhrefsClient("key", transport=_transport(lambda r: httpx.Response(403)))
        with pytest.raises(ProviderError) as excinfo:
            await client.get_top_pages("hydroponics")
        assert excinfo.value.status_code == 403


# ===========================================================================
# Google Trends
# ===========================================================================

class TestGoogleTrendsClient:

    @pytest.mark.asyncio
    async def test_interest_series(self):
        fake = MagicMock()
        fake.interest_over_time.return_value = pd.DataFrame({"hydroponics": [10, 20, 30]})
        client = GoogleTrendsClient()
        with patch.object(client, "_get_pytrends", return_value=fake):
            series = await client.get_interest_series("hydroponics", geo="US")
        assert series == [10.0, 20.0, 30.0]
        fake.build_payload.assert_called_once_with(["hydroponics"], timeframe="today 12-m", geo="US")

    @pytest.mark.asyncio
    async def test_empty_frame(self):
        fake = MagicMock()
        fake.interest_over_time.return_value = pd.DataFrame()
        client = GoogleTrendsClient()
        with patch.object(client, "_get_pytrends", return_value=fake):
            assert await client.get_interest_series("zzqx") == []

    @pytest.mark.asyncio
    async def test_failure_becomes_provider_error(self):
        fake = MagicMock()
        fake.build_payload.side_effect = RuntimeError("429 Too Many Requests")
        client = GoogleTrendsClient()
        with patch.object(client, "_get_pytrends", return_value=fake):
            with pytest.raises(ProviderError, match="429"):
                await client.get_interest_series("hydroponics")

    def test_throttle_waits_when_budget_is_spent(self):
        client = GoogleTrendsClient(requests_per_minute=2)
        held = []
        with patch("sitegenie.integrations.google_trends.time.monotonic", return_value=100.0), \
                patch("sitegenie.integrations.google_trends.time.sleep",
                      side_effect=lambda _: held.append(client._lock.locked())) as sleep:
            for _ in range(3):
                client._throttle()
        sleep.assert_called_once_with(60.0)
        assert held == [True]
        assert len(client._recent_calls) == 2

    def test_throttle_from_many_threads(self):
        client = GoogleTrendsClient(requests_per_minute=100)
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: client._throttle(), range(40)))
        assert len(client._recent_calls) == 40
        assert not client._lock.locked()


# ===========================================================================
# Namecheap
# ===========================================================================

NC = "http://api.namecheap.com/xml.response"

CHECK_XML = f"""<?xml version="1.0" encoding="utf-8"?>
<ApiResponse Status="OK" xmlns="{NC}">
  <Errors />
  <CommandResponse Type="namecheap.domains.check">
    <DomainCheckResult Domain="yogahub.com" Available="true" />
    <DomainCheckResult Domain="Yoga.com" Available="false" />
  </CommandResponse>
</ApiResponse>"""

CREATE_XML = f"""<?xml version="1.0" encoding="utf-8"?>
<ApiResponse Status="OK" xmlns="{NC}">
  <Errors />
  <CommandResponse Type="namecheap.domains.create">
    <DomainCreateResult Domain="yogahub.com" Registered="true" ChargedAmount="10.8700" />
  </CommandResponse>
</ApiResponse>"""

ERROR_XML = f"""<?xml version="1.0" encoding="utf-8"?>
<ApiResponse Status="ERROR" xmlns="{NC}">
  <Errors><Error Number="1011102">Parameter APIKey is missing</Error></Errors>
</ApiResponse>"""


class TestNamecheapClient:

    @pytest.mark.asyncio
    async def test_check_availability(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(200, text=CHECK_XML)

        client = NamecheapClient("me", "key", client_ip="1.2.3.4", sandbox=True,
                                 transport=_transport(handler))
        result = await client.check_availability(["yogahub.com", "yoga.com"])
        assert result == {"yogahub.com": True, "yoga.com": False}
        assert seen["Command"] == "namecheap.domains.check"
        assert seen["DomainList"] == "yogahub.com,yoga.com"
        assert seen["UserName"] == "me"

    @pytest.mark.asyncio
    async def test_register_domain(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(200, text=CREATE_XML)

        client = NamecheapClient("me", "key", registrant={"FirstName": "Ada"},
                                 transport=_transport(handler))
        result = await client.register_domain("yogahub.com")
        assert result == {"success": True, "domain": "yogahub.com", "cost": 10.87, "error": None}
        assert seen["Nameservers"] == "ns1.cloudflare.com,ns2.cloudflare.com"
        assert seen["RegistrantFirstName"] == "Ada"
        assert seen["AuxBillingFirstName"] == "Ada"

    @pytest.mark.asyncio
    async def test_api_errors(self):
        client = NamecheapClient("me", "", transport=_transport(lambda r: httpx.Response(200, text=ERROR_XML)))
        with pytest.raises(RegistrarError, match="1011102:Parameter APIKey is missing"):
            await client.check_availability(["yoga.com"])

    @pytest.mark.asyncio
    async def test_invalid_xml(self):
        client = NamecheapClient("me", "key", transport=_transport(lambda r: httpx.Response(200, text="{")))
        with pytest.raises(RegistrarError, match="invalid XML"):
            await client.check_availability(["yoga.com"])

    @pytest.mark.asyncio
    async def test_http_error(self):
        client = NamecheapClient("me", "key", transport=_transport(lambda r: httpx.Response(502)))
        with pytest.raises(RegistrarError):
            await client.register_domain("yoga.com")


# ===========================================================================
# Cloudflare
# ===========================================================================

class TestCloudflareClient:

    @pytest.mark.asyncio
    async def test_add_zone(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "result": {
                "id": "z1", "name": "yogahub.com", "name_servers": ["a.ns", "b.ns"],
            }})

        client = CloudflareClient("token", account_id="acc", transport=_transport(handler))
        zone = await client.add_zone("yogahub.com")
        assert zone == {"id": "z1", "name": "yogahub.com", "name_servers": ["a.ns", "b.ns"]}
        assert seen["body"] == {"name": "yogahub.com", "type": "full", "account": {"id": "acc"}}

    @pytest.mark.asyncio
    async def test_rejected_zone(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "errors": [{"message": "zone exists"}]})

        client = CloudflareClient("token", transport=_transport(handler))
        with pytest.raises(RegistrarError, match="zone exists"):
            await client.add_zone("yogahub.com")


# ===========================================================================
# Rate limiter
# ===========================================================================

class TestRateLimiter:

    @pytest.mark.asyncio
    async def test_counts_requests(self):
        limiter = RateLimiter(requests_per_minute=5, name="test")
        for _ in range(3):
            async with limiter:
                pass
        assert limiter.requests_in_last_minute == 3

    @pytest.mark.asyncio
    async def test_waits_when_window_is_full(self):
        limiter = RateLimiter(requests_per_minute=1, name="test")
        await limiter.acquire()
        with patch("sitegenie.utils.rate_limiter.asyncio.sleep") as sleep:
            async def fake_sleep(seconds):
                limiter._window.clear()
            sleep.side_effect = fake_sleep
            await limiter.acquire()
        sleep.assert_called_once()
        assert 0 < sleep.call_args.args[0] <= 60
