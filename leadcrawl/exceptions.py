"""Custom exceptions for leadcrawl services."""
from typing import Optional


class LeadCrawlError(Exception):
    """Base class for leadcrawl errors."""


class InvalidUrlError(LeadCrawlError):
    """Raised when an href cannot be resolved into an absolute http(s) URL."""

    def __init__(self, href: str, reason: str = "unresolvable"):
        self.href = href
        self.reason = reason
        super().__init__(f"Invalid URL {href!r}: {reason}")


class NavigationError(LeadCrawlError):
    """Raised by a page driver when navigation fails (timeout, DNS, refused connection)."""

    def __init__(self, url: str, original: Optional[Exception] = None, transient: bool = False):
        self.url = url
        self.original = original
        self.transient = transient
        super().__init__(f"Navigation failed for {url}: {original}")


class InsufficientContentError(LeadCrawlError):
    """Raised when a loaded page yields too little text to be useful."""

    def __init__(self, url: str, length: int, minimum: int):
        self.url = url
        self.length = length
        self.minimum = minimum
        super().__init__(f"Insufficient content extracted from {url}: {length} < {minimum} chars")


class ClassifierError(LeadCrawlError):
    """Raised when the content classifier call fails or returns unparseable output."""

    def __init__(self, message: str, original: Optional[Exception] = None, transient: bool = False):
        self.original = original
        self.transient = transient
        super().__init__(message if original is None else f"{message}: {original}")


class CircuitOpenError(LeadCrawlError):
    """Raised when a governed call is short-circuited and no fallback is available."""

    def __init__(self, name: str, retry_after: float):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit '{name}' is open; retry after {retry_after:.1f}s")


class CrawlAlreadyRunningError(LeadCrawlError):
    """Raised when walk() is called while another walk is active on the same walker."""


class SettingsError(LeadCrawlError):
    """Raised when a settings file or mapping is invalid."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid settings in {source}: {reason}")
