"""Shared pytest fixtures for the SiteGenie test suite."""

import random
import sys
from pathlib import Path
from typing import Optional

import pytest

# Ensure project root is on sys.path so 'sitegenie' is importable.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from sitegenie.database import NicheStore
from sitegenie.modules.niche_analysis.models import ScoredNiche
from sitegenie.utils.randomness import RandomSource


class FixedRandom(random.Random):
    """``random.Random`` whose ``random()`` always returns the same value.

    ``uniform(a, b)`` is derived from ``random()``, so it is fixed too.
    """

    def __init__(self, value: float):
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture()
def store():
    """In-memory SQLite niche store with all tables created."""
    niche_store = NicheStore("sqlite://")
    niche_store.init_schema()
    yield niche_store
    niche_store.dispose()


@pytest.fixture()
def fixed_rng():
    """Factory: ``fixed_rng(0.95)`` is a generator whose draws are all 0.95."""
    return FixedRandom


@pytest.fixture()
def high_random():
    """Random source whose draws are always 0.95."""
    return RandomSource(rng=FixedRandom(0.95))


@pytest.fixture()
def mid_random():
    """Random source whose draws are always 0.5 (no jitter, x1.0 scaling)."""
    return RandomSource(rng=FixedRandom(0.5))


@pytest.fixture()
def make_niche():
    """Factory for scored niches with sensible defaults."""

    def _make(
        name: str,
        volume: int = 5000,
        competition_score: float = 25.0,
        monetization: float = 7.0,
        trending: float = 6.0,
        cpc: float = 1.5,
        related: Optional[list[str]] = None,
        competitors: Optional[list[dict]] = None,
    ) -> ScoredNiche:
        return ScoredNiche(
            niche_name=name,
            monthly_search_volume=volume,
            competition=competition_score / 100,
            estimated_cpc=cpc,
            related_keywords=list(related or []),
            top_competitors=list(competitors or []),
            competition_score=competition_score,
            monetization_potential=monetization,
            trending_score=trending,
        )

    return _make
