"""Niche analysis module -- keyword expansion, scoring and ranking of niches."""

from sitegenie.modules.niche_analysis.engine import NicheAnalyzer
from sitegenie.modules.niche_analysis.models import AnalysisRequest, NichePreferences, ScoredNiche
from sitegenie.modules.niche_analysis.scoring import evaluate_monetization_potential

__all__ = [
    "NicheAnalyzer",
    "AnalysisRequest",
    "NichePreferences",
    "ScoredNiche",
    "evaluate_monetization_potential",
]
