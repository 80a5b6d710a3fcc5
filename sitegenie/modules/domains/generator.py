"""Domain name generation from niche keywords."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from sitegenie.utils.randomness import RandomSource

logger = logging.getLogger(__name__)

DEFAULT_TLDS = (".com", ".org", ".net", ".io")
DOMAIN_PREFIXES = ("best", "top", "my", "the")
DOMAIN_SUFFIXES = ("guide", "hub", "pro", "expert", "hq")
MAX_LABEL_LENGTH = 63
SHORT_LABEL_LENGTH = 15
MAX_SHORT_OPTIONS = 20
MAX_OPTIONS = 25

_STRIP_RE = re.compile(r"[^\w\s-]")


@dataclass
class DomainPreferences:
    """Knobs for ``generate_domain_options``.

    Attributes:
        use_hyphens: Also emit hyphen-joined keyword pairs.
        preferred_tlds: TLDs (with leading dot) appended to every label.
        short_domains: Keep labels of at most 15 characters, 20 options max.
        include_numbers: Also emit keyword pairs with a random number.
    """
    use_hyphens: bool = False
    preferred_tlds: list[str] = field(default_factory=lambda: list(DEFAULT_TLDS))
    short_domains: bool = False
    include_numbers: bool = False

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "DomainPreferences":
        data = data or {}
        tlds = data.get("preferred_tlds") or data.get("preferredTLDs") or list(DEFAULT_TLDS)
        return cls(
            use_hyphens=bool(data.get("use_hyphens", data.get("useHyphens", False))),
            preferred_tlds=[t if t.startswith(".") else f".{t}" for t in tlds],
            short_domains=bool(data.get("short_domains", data.get("shortDomains", False))),
            include_numbers=bool(data.get("include_numbers", data.get("includeNumbers", False))),
        )


def clean_keyword(keyword: str) -> str:
    """Lowercase, drop punctuation (hyphens survive) and squeeze out spaces."""
    cleaned = _STRIP_RE.sub("", keyword.lower()).strip()
    return re.sub(r"\s+", "", cleaned)


def generate_domain_options(
    keywords: list[str],
    preferences: Optional[DomainPreferences] = None,
    random_source: Optional[RandomSource] = None,
) -> list[str]:
    """Build candidate domain names from a niche's keywords.

    The first keyword is the main one: it is tried bare, with each prefix
    and with each suffix.  Pairs drawn from the first four keywords are
    joined plainly, with "and", and optionally with a hyphen or a number.
    Every label is combined with every preferred TLD.

    Returns:
        At most 25 unique domains (20 when ``short_domains`` is set).
    """
    prefs = preferences or DomainPreferences()
    random_source = random_source or RandomSource()
    cleaned = [kw for kw in (clean_keyword(k) for k in keywords) if kw]
    if not cleaned:
        return []

    options: list[str] = []

    def add(label: str) -> None:
        if len(label) <= MAX_LABEL_LENGTH:
            options.extend(f"{label}{tld}" for tld in prefs.preferred_tlds)

    main = cleaned[0]
    add(main)

    for i in range(min(len(cleaned), 3)):
        for j in range(i + 1, min(len(cleaned), 4)):
            first, second = cleaned[i], cleaned[j]
            if first == second:
                continue
            combos = [f"{first}{second}"]
            if prefs.use_hyphens:
                combos.append(f"{first}-{second}")
            combos.append(f"{first}and{second}")
            if prefs.include_numbers:
                rng = random_source.for_key(f"{first}{second}")
                combos.append(f"{first}{rng.randrange(100)}")
                combos.append(f"{first}{second}{rng.randrange(10)}")
            for combo in combos:
                add(combo)

    for prefix in DOMAIN_PREFIXES:
        add(f"{prefix}{main}")
    for suffix in DOMAIN_SUFFIXES:
        add(f"{main}{suffix}")

    unique = list(dict.fromkeys(options))
    if prefs.short_domains:
        short = [d for d in unique if len(d.split(".")[0]) <= SHORT_LABEL_LENGTH]
        return short[:MAX_SHORT_OPTIONS]
    logger.debug("Generated %d domain options from %d keywords", len(unique), len(cleaned))
    return unique[:MAX_OPTIONS]
