"""Shared utilities: validation, helpers, rate limiting and randomness."""
