"""Heuristic brandability score for domain names."""

import re
from dataclasses import dataclass

from sitegenie.utils.helpers import clamp
from sitegenie.utils.validators import split_domain

_CONSONANTS_RE = re.compile(r"[bcdfghjklmnpqrstvwxyz]")
_VOWELS_RE = re.compile(r"[aeiou]")
_DOUBLE_LETTER_RE = re.compile(r"([a-z])\1")

TLD_BONUS = {"com": 2.0, "org": 1.0, "net": 1.0, "io": 0.5, "co": 0.5}


@dataclass(frozen=True)
class DomainCandidate:
    name: str
    tld: str
    score: float

    @property
    def domain(self) -> str:
        return f"{self.name}.{self.tld}" if self.tld else self.name

    @classmethod
    def from_domain(cls, domain: str) -> "DomainCandidate":
        name, tld = split_domain(domain)
        return cls(name=name, tld=tld, score=score_domain(domain))


def score_domain(domain: str) -> float:
    """Score a domain from 0 to 10 on length, TLD and pronounceability.

    Examples:
        >>> score_domain("short.com")
        8.5
    """
    name, tld = split_domain(domain)
    score = 5.0

    length = len(name)
    if length <= 5:
        score += 2
    elif length <= 10:
        score += 1.5
    elif length <= 15:
        score += 1
    elif length > 20:
        score -= 1

    score += TLD_BONUS.get(tld, 0.0)

    if "-" in name:
        score -= 0.5
    if any(ch.isdigit() for ch in name):
        score -= 0.5
    if _DOUBLE_LETTER_RE.search(name):
        score -= 0.3

    consonants = len(_CONSONANTS_RE.findall(name))
    vowels = len(_VOWELS_RE.findall(name))
    ratio = consonants / (vowels or 1)
    if 1 <= ratio <= 2.5:
        score += 1
    elif ratio > 2.5:
        score -= 0.5

    return clamp(score, 0.0, 10.0)
