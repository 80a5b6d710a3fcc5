"""General-purpose numeric and URL helpers."""

from urllib.parse import urlparse


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into ``[low, high]``; NaN collapses to ``low``."""
    if value != value:  # NaN
        return low
    return max(low, min(high, value))


def round2(value: float) -> float:
    """Round to two decimal places for display."""
    return round(float(value), 2)


def extract_domain(url: str) -> str:
    """Extract the host from a URL, without a leading ``www.``.

    Examples:
        >>> extract_domain("https://www.example.com/page")
        'example.com'
        >>> extract_domain("example.org/path")
        'example.org'
    """
    parsed = urlparse(url if "://" in url else f"https://{url}")
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host
