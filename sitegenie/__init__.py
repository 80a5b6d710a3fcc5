"""SiteGenie -- niche research and recommendation for content sites."""

__version__ = "0.1.0"
