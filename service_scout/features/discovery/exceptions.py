"""
Service discovery errors.

Only CompanyDirectoryError is fatal for a run. Everything else is caught at
the step that raised it and turned into a logged, skipped outcome.
"""


class ServiceDiscoveryError(Exception):
    """Base class for discovery failures."""


class MalformedUrlError(ServiceDiscoveryError, ValueError):
    """A URL could not be parsed into a hostname."""

    def __init__(self, url: str, reason: str = "no hostname"):
        self.url = url
        super().__init__(f"Malformed URL {url!r}: {reason}")


class NavigationError(ServiceDiscoveryError):
    """A page could not be loaded after the configured retries."""

    def __init__(self, url: str, attempts: int, reason: str):
        self.url = url
        self.attempts = attempts
        super().__init__(f"Failed to load {url} after {attempts} attempt(s): {reason}")


class ActivationError(ServiceDiscoveryError):
    """An element could not be clicked (detached, hidden or timed out)."""


class CompanyDirectoryError(ServiceDiscoveryError):
    """The company directory input is missing, unreadable or malformed."""
