"""Tests for the provider adapters and the keyword mock."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from sitegenie.exceptions import ProviderError
from sitegenie.modules.niche_analysis.models import ProviderStatus
from sitegenie.modules.niche_analysis.providers import (
    BacklinkProvider,
    KeywordDataProvider,
    TrendsProvider,
    mock_keyword_data,
    related_keyword_variants,
)
from sitegenie.utils.randomness import RandomSource


class TestMockKeywordData:

    def test_formulas(self, fixed_rng):
        record = mock_keyword_data("hydroponics", fixed_rng(0.95))
        # len 11: 1000 + 5500*1.45, 0.1 + 1/20 + 0.285, 0.5 + 0.3 + 0.95
        assert record.search_volume == 8975
        assert record.competition == pytest.approx(0.435)
        assert record.cpc == pytest.approx(1.75)

    def test_competition_for_long_keyword(self, fixed_rng):
        # 9 chars: 0.1 + 9/20 + 0.99*0.3
        record = mock_keyword_data("ninechars", fixed_rng(0.99))
        assert record.competition == pytest.approx(0.847)

    def test_related_keywords(self, fixed_rng):
        related = related_keyword_variants("yoga")
        assert related == [
            "best yoga", "top yoga", "affordable yoga", "premium yoga",
            "how to yoga", "why yoga", "when to yoga",
            "yoga guide", "yoga tutorial", "yoga review",
        ]
        assert mock_keyword_data("yoga", fixed_rng(0.1)).related_keywords == tuple(related)

    def test_seeded_source_is_reproducible(self):
        first = mock_keyword_data("garden", RandomSource(seed=3).for_key("garden"))
        second = mock_keyword_data("garden", RandomSource(seed=3).for_key("garden"))
        assert first == second


class TestKeywordDataProvider:

    @pytest.mark.asyncio
    async def test_without_client_falls_back_to_mock(self, high_random):
        result = await KeywordDataProvider(random_source=high_random).fetch("hydroponics")
        assert result.status is ProviderStatus.FALLBACK
        assert result.ok
        assert result.value.search_volume == 8975

    @pytest.mark.asyncio
    async def test_client_error_falls_back_to_mock(self, high_random):
        client = MagicMock()
        client.get_keyword_metrics = AsyncMock(side_effect=ProviderError("HTTP 500", status_code=500))
        result = await KeywordDataProvider(client, random_source=high_random).fetch("hydroponics")
        assert result.status is ProviderStatus.FALLBACK
        assert "HTTP 500" in result.error
        assert result.value.cpc == pytest.approx(1.75)

    @pytest.mark.asyncio
    async def test_empty_answer_is_an_error(self):
        client = MagicMock()
        client.get_keyword_metrics = AsyncMock(return_value=None)
        result = await KeywordDataProvider(client).fetch("zzqx")
        assert result.status is ProviderStatus.ERROR
        assert not result.ok
        assert result.value is None

    @pytest.mark.asyncio
    async def test_live_data(self):
        client = MagicMock()
        client.get_keyword_metrics = AsyncMock(return_value={
            "keyword": "hydroponics", "search_volume": 12000, "competition": 0.45, "cpc": 2.5,
        })
        client.get_related_keywords = AsyncMock(return_value=["hydroponic kit", "nft system"])
        result = await KeywordDataProvider(client).fetch("hydroponics")

        assert result.status is ProviderStatus.SUCCESS
        assert result.value.search_volume == 12000
        assert result.value.related_keywords == ("hydroponic kit", "nft system")
        client.get_related_keywords.assert_awaited_once_with("hydroponics", limit=15)

    @pytest.mark.asyncio
    async def test_related_failure_gives_empty_list(self):
        client = MagicMock()
        client.get_keyword_metrics = AsyncMock(return_value={
            "keyword": "hydroponics", "search_volume": 12000, "competition": 0.45, "cpc": 2.5,
        })
        client.get_related_keywords = AsyncMock(side_effect=ProviderError("timeout"))
        result = await KeywordDataProvider(client).fetch("hydroponics")

        assert result.status is ProviderStatus.SUCCESS
        assert result.value.related_keywords == ()


class TestBacklinkAndTrendsProviders:

    @pytest.mark.asyncio
    async def test_backlink_success(self):
        client = MagicMock()
        client.get_top_pages = AsyncMock(return_value=[{"url": "https://a.com"}])
        result = await BacklinkProvider(client).top_pages("hydroponics")
        assert result.status is ProviderStatus.SUCCESS
        client.get_top_pages.assert_awaited_once_with("hydroponics", limit=10)

    @pytest.mark.asyncio
    async def test_backlink_error(self):
        client = MagicMock()
        client.get_top_pages = AsyncMock(side_effect=ProviderError("no pages"))
        result = await BacklinkProvider(client).top_pages("hydroponics")
        assert result.status is ProviderStatus.ERROR
        assert result.error == "no pages"

    @pytest.mark.asyncio
    async def test_trends_error(self):
        client = MagicMock()
        client.get_interest_series = AsyncMock(side_effect=ProviderError("429"))
        result = await TrendsProvider(client).interest_series("hydroponics")
        assert not result.ok
