"""Input validation for keyword lists and domain names."""

import re
from typing import Any

_LABEL_RE = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")


def validate_keywords(keywords: Any) -> tuple[bool, str]:
    """Validate a keyword list for niche analysis.

    Args:
        keywords: Expected to be a non-empty list of non-blank strings.

    Returns:
        Tuple of (is_valid, error_message).  error_message is empty on success.
    """
    if not keywords or not isinstance(keywords, (list, tuple)):
        return False, "No keywords provided for niche analysis"
    for kw in keywords:
        if not isinstance(kw, str):
            return False, f"Keyword must be a string, got {type(kw).__name__}."
        if not kw.strip():
            return False, "Keywords must not be blank."
    return True, ""


def validate_domain(domain: str) -> tuple[bool, str]:
    """Validate a domain name such as ``example.com``.

    Args:
        domain: The domain name to validate.  May include protocol prefix.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not domain or not isinstance(domain, str):
        return False, "Domain is empty or not a string."
    domain = domain.strip().lower()
    if "://" in domain:
        domain = domain.split("://", 1)[1]
    domain = domain.split("/")[0].split(":")[0]
    if len(domain) > 253:
        return False, "Domain exceeds maximum length (253 chars)."
    if "." not in domain:
        return False, "Domain must contain at least one dot."
    for label in domain.split("."):
        if not label:
            return False, "Domain contains empty label (double dot)."
        if len(label) > 63:
            return False, f"Label '{label}' exceeds 63 chars."
        if not _LABEL_RE.match(label):
            return False, f"Label '{label}' contains invalid characters."
    return True, ""


def split_domain(domain: str) -> tuple[str, str]:
    """Split ``name.tld`` into ``("name", "tld")`` at the first dot."""
    name, _, tld = domain.strip().lower().partition(".")
    return name, tld
