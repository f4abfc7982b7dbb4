import logging
from typing import NamedTuple, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from leadcrawl.domain.config import CrawlSettings
from leadcrawl.domain.fetch_result import ErrorKind
from leadcrawl.exceptions import InvalidUrlError

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")
REJECTED_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "#")
DEFAULT_PORTS = {"http": 80, "https": 443}
MIN_ANCHOR_TEXT_LENGTH = 3
DESCRIPTIVE_ANCHOR_LENGTH = 10

GENERIC_NAV_TEXTS = frozenset({
    "home", "main", "menu", "navigation", "nav", "skip", "top",
    "back", "next", "previous", "more", "less", "show", "hide",
})

RELEVANT_KEYWORDS = (
    "about", "contact", "services", "products", "team", "company",
    "blog", "news", "careers", "staff", "leadership", "management",
    "portfolio", "gallery", "testimonials", "reviews", "faq",
    "help", "support", "location", "address", "phone", "email",
)


class LinkDecision(NamedTuple):
    """Classification outcome: `url` is set when accepted, `reason` when rejected."""
    url: Optional[str]
    reason: Optional[ErrorKind] = None
    detail: str = ""

    @property
    def accepted(self) -> bool:
        return self.url is not None


def canonicalize_url(url: str) -> str:
    """Return the canonical form used as the visited-set key.

    Lower-cases scheme and host, drops default ports and the fragment, and
    gives an empty path a trailing slash. Raises `InvalidUrlError` for
    anything that is not an absolute http(s) URL.
    """
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError as e:
        raise InvalidUrlError(url, str(e)) from e
    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidUrlError(url, f"scheme {scheme or '(none)'} not allowed")
    host = (parts.hostname or "").lower()
    if not host:
        raise InvalidUrlError(url, "missing host")
    userinfo, _, _ = parts.netloc.rpartition("@")
    netloc = host if ":" not in host else f"[{host}]"
    if port is not None and port != DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"
    if userinfo:
        netloc = f"{userinfo}@{netloc}"
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))


def resolve_href(href: str, base_url: str) -> str:
    """Resolve `href` against `base_url` (relative, protocol-relative or absolute)."""
    href = (href or "").strip()
    if not href:
        raise InvalidUrlError(href, "empty href")
    if href.lower().startswith(REJECTED_HREF_PREFIXES):
        raise InvalidUrlError(href, "non-navigable href")
    try:
        resolved = urljoin(base_url, href)
    except ValueError as e:
        raise InvalidUrlError(href, str(e)) from e
    scheme = urlsplit(resolved).scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidUrlError(href, f"scheme {scheme or '(none)'} not allowed")
    return resolved


class LinkClassifier:
    """Decides whether an outbound link is worth following.

    Pure: the same inputs always give the same decision and nothing is
    recorded. Two variants exist:

    - open (default): any http(s) link that passes the exclude patterns and
      the anchor-text heuristics is accepted, including cross-domain links.
    - strict (`same_domain_only=True`): additionally requires the same
      hostname as the base page and either an include-pattern match, a
      relevance keyword in the anchor text, or a descriptive anchor text.
    """

    def __init__(self, settings: CrawlSettings):
        self.settings = settings
        self._exclude = tuple(p.lower() for p in settings.exclude_patterns if p)
        self._include = tuple(p.lower() for p in settings.include_patterns if p)

    def _same_host(self, base: str, other: str) -> bool:
        try:
            b = urlsplit(base).hostname
            o = urlsplit(other).hostname
            return b is not None and b == o
        except ValueError:
            logger.exception("Error comparing hosts: base=%s, other=%s", base, other)
            return False

    def _matching_exclude(self, url: str, text: str) -> Optional[str]:
        low_url = url.lower()
        for pattern in self._exclude:
            if pattern in low_url or pattern in text:
                return pattern
        return None

    def _text_rejection(self, text: str) -> Optional[str]:
        if len(text) < MIN_ANCHOR_TEXT_LENGTH:
            return "anchor text too short"
        if not any(ch.isalpha() for ch in text):
            return "anchor text has no letters"
        if text in GENERIC_NAV_TEXTS:
            return "generic navigation text"
        return None

    def _passes_strict(self, url: str, text: str, base_url: str) -> bool:
        if not self._same_host(base_url, url):
            return False
        low_url = url.lower()
        if any(pattern in low_url for pattern in self._include):
            return True
        if any(keyword in text for keyword in RELEVANT_KEYWORDS):
            return True
        return len(text) > DESCRIPTIVE_ANCHOR_LENGTH

    def classify(self, href: str, anchor_text: str, base_url: str) -> LinkDecision:
        try:
            resolved = resolve_href(href, base_url)
        except InvalidUrlError as e:
            return LinkDecision(None, ErrorKind.INVALID_URL, e.reason)

        text = " ".join((anchor_text or "").split()).lower()

        pattern = self._matching_exclude(resolved, text)
        if pattern is not None:
            return LinkDecision(None, ErrorKind.EXCLUDED_BY_POLICY, f"matches exclude pattern {pattern!r}")

        reason = self._text_rejection(text)
        if reason is not None:
            return LinkDecision(None, ErrorKind.EXCLUDED_BY_POLICY, reason)

        if self.settings.same_domain_only and not self._passes_strict(resolved, text, base_url):
            return LinkDecision(None, ErrorKind.EXCLUDED_BY_POLICY, "not a relevant same-host link")

        try:
            return LinkDecision(canonicalize_url(resolved))
        except InvalidUrlError as e:
            return LinkDecision(None, ErrorKind.INVALID_URL, e.reason)
