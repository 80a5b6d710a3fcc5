"""Domains module -- name generation, scoring and registration."""

from sitegenie.modules.domains.generator import DomainPreferences, generate_domain_options
from sitegenie.modules.domains.registry import DomainRegistry
from sitegenie.modules.domains.scorer import DomainCandidate, score_domain

__all__ = [
    "DomainPreferences",
    "generate_domain_options",
    "DomainRegistry",
    "DomainCandidate",
    "score_domain",
]
