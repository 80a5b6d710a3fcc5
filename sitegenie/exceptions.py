"""Exception hierarchy shared by the SiteGenie modules."""


class SiteGenieError(Exception):
    """Base class for all SiteGenie errors."""


class InputError(SiteGenieError, ValueError):
    """Raised when a request is malformed (empty keyword list, bad limit...)."""


class ProviderError(SiteGenieError):
    """Raised by integration clients when an external API call fails.

    Never crosses the scoring boundary: provider adapters catch it and
    return a fallback or error result instead.
    """

    def __init__(self, message: str, provider: str = "", status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class PersistenceError(SiteGenieError):
    """Raised by the store after a failed (and rolled back) save."""


class RegistrarError(SiteGenieError):
    """Raised by domain registrar / DNS clients."""
